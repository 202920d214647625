"""CV structure planning

Ordering, detail levels, skill cap and section visibility are computed here.
Only the semantic grouping of the surfaced skills is delegated to the
generator, and its proposal is checked before it is accepted.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from .errors import PipelineError
from ..integrations.llm_api import StructuredGenerator
from ..models.analysis import AnalysisOutput
from ..models.cv import (
    CVSections, CVStructure, DEFAULT_SECTION_ORDER, DetailLevel, ExperienceOrderItem,
    SkillGroup, SkillGroupingDraft, SummaryLength
)
from ..models.job import JobRequirements
from ..models.scoring import ScoredExperience, ScoredSkill, SkillCategory
from ..utils.config import get_settings
from ..utils.logger import pipeline_logger

MIN_SKILLS_TO_SHOW = 10
MAX_SKILLS_TO_SHOW = 25
MIN_SKILL_GROUPS = 3
MAX_SKILL_GROUPS = 5
MIN_SURFACED_SKILLS = 15
MAX_SURFACED_SKILLS = 20
FALLBACK_GROUP_NAME = "Skills"
MEDIUM_SUMMARY_MIN_REQUIRED = 3

SYSTEM_PROMPT = (
    "You are an expert CV structure analyst. You group skills into clear, "
    "professional technology categories optimized for recruiters and ATS systems."
)

GROUPING_PROMPT = """Group the following skills into 3 to 5 categories by technology domain
(for example "Backend Technologies", "Cloud & Infrastructure", "Frontend Frameworks").

Job required skills: {required}
Job preferred skills: {preferred}
{focus}
Skills (id | name | relevance score):
{skills}

Rules:
- Use only the ids listed above
- Every listed skill goes into exactly one category
- No category may be empty
- Order categories by relevance to the job, most relevant first
{feedback}"""


def clamp_skill_cap(value: int) -> int:
    return max(MIN_SKILLS_TO_SHOW, min(MAX_SKILLS_TO_SHOW, int(value)))


def surfaced_skill_limit(max_skills_to_show: int) -> int:
    """Number of skills actually shown; the configured cap is held to 15..20"""
    return max(MIN_SURFACED_SKILLS, min(MAX_SURFACED_SKILLS, clamp_skill_cap(max_skills_to_show)))


def detail_level_for_score(score: float, threshold: Optional[float] = None) -> DetailLevel:
    threshold = get_settings().pipeline.detail_score_threshold if threshold is None else threshold
    return DetailLevel.DETAILED if score >= threshold else DetailLevel.BRIEF


def plan_experience_order(scored_experiences: List[ScoredExperience],
                          threshold: Optional[float] = None) -> List[ExperienceOrderItem]:
    """Keep the scored order; every experience is listed"""
    return [
        ExperienceOrderItem(
            experience_id=item.experience.id,
            relevance_score=item.score,
            detail_level=detail_level_for_score(item.score, threshold),
            order=index,
        )
        for index, item in enumerate(scored_experiences)
    ]


def flat_skill_groups(skills: List[ScoredSkill]) -> List[SkillGroup]:
    if not skills:
        return []
    return [SkillGroup(category=FALLBACK_GROUP_NAME, skill_ids=[s.skill.id for s in skills], order=0)]


def check_grouping(draft: SkillGroupingDraft, skills: List[ScoredSkill]) -> Tuple[List[SkillGroup], List[str]]:
    """Repair and check a grouping proposal; returns (groups, violations)"""
    rank = {item.skill.id: index for index, item in enumerate(skills)}
    violations: List[str] = []
    groups: List[SkillGroup] = []
    assigned: Dict[str, int] = {}

    for group in draft.groups:
        category = (group.category or "").strip()
        known = [skill_id for skill_id in group.skill_ids if skill_id in rank]
        dropped = len(group.skill_ids) - len(known)
        if dropped:
            pipeline_logger.debug(f"Dropped {dropped} unknown skill ids from group {category!r}")

        if not category:
            violations.append("Skill group without a category name")
        if not known:
            violations.append(f"Skill group {category!r} is empty")
            continue

        for skill_id in dict.fromkeys(known):
            if skill_id in assigned:
                violations.append(f"Skill {skill_id} appears in more than one group")
            assigned.setdefault(skill_id, len(groups))

        unique_ids = list(dict.fromkeys(known))
        unique_ids.sort(key=lambda skill_id: rank[skill_id])
        groups.append(SkillGroup(category=category or FALLBACK_GROUP_NAME, skill_ids=unique_ids, order=len(groups)))

    if len(groups) > MAX_SKILL_GROUPS:
        violations.append(f"{len(groups)} skill groups proposed, at most {MAX_SKILL_GROUPS} allowed")
    min_groups = min(MIN_SKILL_GROUPS, len(skills))
    if groups and len(groups) < min_groups:
        violations.append(f"{len(groups)} skill groups proposed, at least {min_groups} required")

    missing = [item.skill.id for item in skills if item.skill.id not in assigned]
    if missing:
        violations.append(f"Skills not assigned to any group: {', '.join(missing)}")

    if not groups and skills:
        violations.append("No skill groups proposed")

    return groups, violations


class StructurePlanner:
    """Builds a CVStructure from scored profile items"""

    def __init__(self, generator: StructuredGenerator, max_skills_to_show: Optional[int] = None,
                 detail_threshold: Optional[float] = None):
        config = get_settings().pipeline
        self.generator = generator
        self.max_skills_to_show = clamp_skill_cap(
            config.skill_max_count if max_skills_to_show is None else max_skills_to_show
        )
        self.detail_threshold = config.detail_score_threshold if detail_threshold is None else detail_threshold

    def _grouping_prompt(self, requirements: JobRequirements, analysis: Optional[AnalysisOutput],
                         skills: List[ScoredSkill], feedback: Optional[List[str]]) -> str:
        focus = ""
        if analysis is not None and analysis.suggested_focus_areas:
            focus = f"Focus areas: {', '.join(analysis.suggested_focus_areas)}\n"
        skill_lines = "\n".join(f"{s.skill.id} | {s.skill.name} | {s.score:g}" for s in skills)
        feedback_text = ""
        if feedback:
            feedback_text = "\nYour previous proposal was rejected:\n" + "\n".join(f"- {v}" for v in feedback)
        return GROUPING_PROMPT.format(
            required=", ".join(requirements.required_skills) or "none",
            preferred=", ".join(requirements.preferred_skills) or "none",
            focus=focus,
            skills=skill_lines,
            feedback=feedback_text,
        )

    async def group_skills(self, requirements: JobRequirements, analysis: Optional[AnalysisOutput],
                           skills: List[ScoredSkill]) -> List[SkillGroup]:
        """Generator grouping with one retry, then a flat fallback"""
        if not skills:
            return []

        feedback: Optional[List[str]] = None
        for attempt in (1, 2):
            try:
                draft = await self.generator.generate(
                    self._grouping_prompt(requirements, analysis, skills, feedback),
                    SkillGroupingDraft,
                    system_prompt=SYSTEM_PROMPT,
                )
            except (PipelineError, ValidationError) as e:
                pipeline_logger.warning(f"Skill grouping failed, using a flat skill list: {e}")
                return flat_skill_groups(skills)

            groups, violations = check_grouping(draft, skills)
            if not violations:
                return groups

            pipeline_logger.info(f"Skill grouping attempt {attempt} rejected: {'; '.join(violations)}")
            feedback = violations

        pipeline_logger.warning("Skill grouping still invalid after retry, using a flat skill list")
        return flat_skill_groups(skills)

    async def plan(self, requirements: JobRequirements, analysis: Optional[AnalysisOutput],
                   scored_experiences: List[ScoredExperience], filtered_skills: List[ScoredSkill],
                   profile_counts: Dict[str, int]) -> CVStructure:
        experience_order = plan_experience_order(scored_experiences, self.detail_threshold)
        surfaced = filtered_skills[:surfaced_skill_limit(self.max_skills_to_show)]
        skill_groups = await self.group_skills(requirements, analysis, surfaced)

        sections = CVSections(
            skills=bool(skill_groups),
            experience=bool(experience_order),
            education=profile_counts.get("education", 0) > 0,
            languages=profile_counts.get("languages", 0) > 0,
        )
        section_order = [name for name in DEFAULT_SECTION_ORDER if getattr(sections, name)]

        has_detailed = any(item.detail_level == DetailLevel.DETAILED for item in experience_order)
        required_matches = sum(1 for item in surfaced if item.category == SkillCategory.REQUIRED)
        summary_length = (
            SummaryLength.MEDIUM
            if has_detailed and required_matches >= MEDIUM_SUMMARY_MIN_REQUIRED
            else SummaryLength.SHORT
        )

        structure = CVStructure(
            sections=sections,
            section_order=section_order,
            experience_order=experience_order,
            skill_groups=skill_groups,
            max_skills_to_show=self.max_skills_to_show,
            summary_length=summary_length,
        )
        pipeline_logger.info(
            f"Planned CV structure: {len(experience_order)} experiences, "
            f"{len(structure.surfaced_skill_ids)} skills in {len(skill_groups)} groups"
        )
        return structure
