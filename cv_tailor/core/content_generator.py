"""CV content generation

Facts (companies, positions, dates, education, languages, skill names) are
copied from the profile snapshot. The generator only writes the summary and
the achievements of detailed experiences.
"""

import json
from typing import List, Optional

from pydantic import ValidationError

from .errors import GenerationError, PipelineError
from .relevance_scorer import RelevantExperience
from ..integrations.llm_api import StructuredGenerator
from ..models.cv import (
    CVContent, CVData, CVHeader, CVStructure, CVTextDraft, DetailLevel, EducationContent,
    ExperienceContent, LanguageContent, SkillGroupContent, SummaryLength
)
from ..models.job import JobRequirements
from ..models.profile import ProfileSnapshot, WorkExperience
from ..utils.helpers import clean_text, strip_markdown, to_iso_date
from ..utils.logger import pipeline_logger

SUMMARY_SENTENCES = {
    SummaryLength.SHORT: 2,
    SummaryLength.MEDIUM: 3,
}

SYSTEM_PROMPT = (
    "You are an expert CV writer. You write truthful, concise CV text in plain "
    "language with no markdown. You ONLY use facts from the supplied profile data "
    "and never add, invent or exaggerate anything."
)

CONTENT_PROMPT = """Write the text parts of a CV tailored to the job below.

Job required skills: {required}
Job key responsibilities: {responsibilities}

Profile summary written by the candidate:
{personal_summary}

Experiences to write achievements for (id, position, company, description):
{experiences}

Other profile facts:
{facts}

Relevant highlights: {relevant}

Rules:
- summary: exactly {sentences} sentences, plain text, tailored to the job
- experiences: one entry per experience id listed above, with 2 to 5 achievements each
- Achievements are short plain-text statements drawn only from the experience description
- Do not mention skills, employers, titles or numbers that are not in the profile
{feedback}"""


def _plain(text: str) -> str:
    return clean_text(strip_markdown(text or ""))


def _experience_content(experience: WorkExperience, achievements: List[str], is_brief: bool) -> ExperienceContent:
    return ExperienceContent(
        experience_id=experience.id,
        company=experience.company,
        position=experience.position,
        start_date=to_iso_date(experience.start_date),
        end_date=None if experience.current else to_iso_date(experience.end_date),
        current=experience.current,
        achievements=[] if is_brief else achievements,
        is_brief=is_brief,
    )


def education_content(profile: ProfileSnapshot) -> List[EducationContent]:
    return [
        EducationContent(
            institution=edu.institution,
            degree=edu.degree,
            field_of_study=edu.field_of_study,
            start_date=to_iso_date(edu.start_date),
            end_date=None if edu.current else to_iso_date(edu.end_date),
            current=edu.current,
            description=edu.description,
        )
        for edu in sorted(profile.education, key=lambda e: e.order_index)
    ]


def language_content(profile: ProfileSnapshot) -> List[LanguageContent]:
    return [LanguageContent(name=lang.name, proficiency_level=lang.proficiency_level or "") for lang in profile.languages]


def skill_group_content(profile: ProfileSnapshot, structure: CVStructure) -> List[SkillGroupContent]:
    groups = []
    for group in sorted(structure.skill_groups, key=lambda g: g.order):
        names = []
        for skill_id in group.skill_ids:
            skill = profile.skill_by_id(skill_id)
            if skill is not None:
                names.append(skill.name)
        groups.append(SkillGroupContent(category=group.category, skills=names))
    return groups


class ContentGenerator:
    """Writes CVContent for a planned structure"""

    def __init__(self, generator: StructuredGenerator):
        self.generator = generator

    def _prompt(self, profile: ProfileSnapshot, structure: CVStructure, requirements: JobRequirements,
                relevant: Optional[RelevantExperience], detailed: List[WorkExperience],
                feedback: Optional[List[str]]) -> str:
        experiences = "\n".join(
            f"- {exp.id} | {exp.position} | {exp.company} | {clean_text(exp.description)}" for exp in detailed
        ) or "none"
        facts = {
            "skills": [s.name for s in profile.skills],
            "otherPositions": [f"{e.position} at {e.company}" for e in profile.work_experiences if e not in detailed],
            "education": [f"{e.degree} at {e.institution}" for e in profile.education],
        }
        feedback_text = ""
        if feedback:
            feedback_text = "\nA previous draft was rejected for these problems; avoid them:\n" + "\n".join(
                f"- {item}" for item in feedback
            )
        return CONTENT_PROMPT.format(
            required=", ".join(requirements.required_skills) or "none",
            responsibilities="; ".join(requirements.key_responsibilities) or "none",
            personal_summary=profile.personal_summary or "none",
            experiences=experiences,
            facts=json.dumps(facts, ensure_ascii=False),
            relevant=relevant.model_dump_json() if relevant is not None else "{}",
            sentences=SUMMARY_SENTENCES[structure.summary_length],
            feedback=feedback_text,
        )

    async def generate(self, profile: ProfileSnapshot, structure: CVStructure, requirements: JobRequirements,
                       relevant: Optional[RelevantExperience] = None,
                       feedback: Optional[List[str]] = None) -> CVContent:
        """Build CVContent; raises GenerationError when the generator fails"""
        planned = []
        for item in sorted(structure.experience_order, key=lambda i: i.order):
            experience = profile.experience_by_id(item.experience_id)
            if experience is None:
                pipeline_logger.warning(f"Planned experience {item.experience_id} not found in profile")
                continue
            planned.append((experience, item.detail_level == DetailLevel.BRIEF))
        detailed = [experience for experience, is_brief in planned if not is_brief]

        try:
            draft = await self.generator.generate(
                self._prompt(profile, structure, requirements, relevant, detailed, feedback),
                CVTextDraft,
                system_prompt=SYSTEM_PROMPT,
            )
        except PipelineError as e:
            raise e.with_stage("generate-content")
        except ValidationError as e:
            raise GenerationError(f"Content draft does not match schema: {e.error_count()} errors",
                                  stage="generate-content")

        achievements_by_id = {}
        for item in draft.experiences:
            achievements = [_plain(a) for a in item.achievements]
            achievements_by_id[item.experience_id] = [a for a in achievements if a]

        experiences = [
            _experience_content(experience, achievements_by_id.get(experience.id, []), is_brief)
            for experience, is_brief in planned
        ]

        content = CVContent(
            summary=_plain(draft.summary),
            skill_groups=skill_group_content(profile, structure),
            experiences=experiences,
            education=education_content(profile),
            languages=language_content(profile),
        )
        pipeline_logger.info(
            f"Generated CV content: {len(experiences)} experiences, {len(detailed)} detailed"
        )
        return content


def header_role(profile: ProfileSnapshot) -> Optional[str]:
    """Position of the current job, else of the most recent one"""
    if not profile.work_experiences:
        return None
    current = [e for e in profile.work_experiences if e.current]
    pool = current or profile.work_experiences
    return max(pool, key=lambda e: (e.start_date, -e.order_index)).position


def header_location(profile: ProfileSnapshot) -> Optional[str]:
    if profile.location:
        return profile.location
    parts = [part for part in (profile.city, profile.country) if part]
    return ", ".join(parts) or None


def build_cv_data(profile: ProfileSnapshot, content: CVContent) -> CVData:
    """Final CV document; education and languages are always lists"""
    return CVData(
        header=CVHeader(
            name=profile.full_name,
            role=header_role(profile),
            location=header_location(profile),
            email=profile.email,
            phone=profile.phone,
            image_url=profile.profile_image_url,
        ),
        summary=content.summary,
        experiences=content.experiences,
        skill_groups=content.skill_groups,
        education=content.education or [],
        languages=content.languages or [],
    )
