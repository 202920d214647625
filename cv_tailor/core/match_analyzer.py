"""Profile/job match analysis"""

import json
from typing import Dict, List

from pydantic import ValidationError

from .content_validator import mentions_term
from .errors import PipelineError
from .relevance_scorer import names_match
from .skill_expander import expand_related_skills
from ..integrations.llm_api import StructuredGenerator
from ..models.analysis import (
    AnalysisOutput, Gap, GapSeverity, MatchScoreBreakdown, MatchScoreResult, ProfileValidation, Strength
)
from ..models.job import JobRequirements
from ..models.profile import ProfileSnapshot, Skill
from ..utils.helpers import normalize_skill_name, truncate_text
from ..utils.logger import pipeline_logger

NEUTRAL_COMPONENT_SCORE = 50
SKILLS_WEIGHT = 0.6
EXPERIENCE_WEIGHT = 0.25
EDUCATION_WEIGHT = 0.15

SYSTEM_PROMPT = """You are an expert CV and job description analyst. Your role is to:
1. Compare user profiles against job descriptions objectively
2. Identify strengths based ONLY on actual profile data
3. Identify gaps honestly without inventing information
4. Calculate accurate match scores (0-100)
5. Provide actionable recommendations

NEVER invent skills, experiences, or qualifications. If data is missing, say so."""

ANALYSIS_PROMPT = """Analyze this profile against the job requirements.

Profile: {profile}

Job requirements: {requirements}

Job description:
{job_description}

Provide:
1. matchScore (0-100)
2. strengths: [{{"title", "description"}}] based ONLY on profile data
3. gaps: [{{"title", "description", "severity": "low" | "medium" | "high"}}]
4. missingSkills: required or preferred skills the profile lacks
5. suggestedFocusAreas: what the candidate should emphasize or work on
"""


def validate_profile_data(profile: ProfileSnapshot) -> ProfileValidation:
    """Completeness check; only a missing personal summary makes a profile invalid"""
    missing_fields = []
    warnings = []

    if not profile.personal_summary:
        missing_fields.append("personalSummary")
    if not profile.work_experiences:
        warnings.append("No work experience provided")
    if not profile.skills:
        warnings.append("No skills provided")

    return ProfileValidation(is_valid=not missing_fields, missing_fields=missing_fields, warnings=warnings)


def calculate_match_score(profile: ProfileSnapshot, requirements: JobRequirements) -> MatchScoreResult:
    """Deterministic match score used when the generator is unavailable"""
    required = [normalize_skill_name(s) for s in requirements.required_skills]
    required_matches = sum(
        1 for skill in required if any(names_match(skill, own.name) for own in profile.skills)
    )

    skills_match = (required_matches / len(required)) * 100 if required else NEUTRAL_COMPONENT_SCORE
    experience_match = NEUTRAL_COMPONENT_SCORE if profile.work_experiences else 0
    education_match = NEUTRAL_COMPONENT_SCORE if profile.education else 0

    score = round(
        skills_match * SKILLS_WEIGHT + experience_match * EXPERIENCE_WEIGHT + education_match * EDUCATION_WEIGHT
    )
    return MatchScoreResult(
        match_score=min(100, max(0, score)),
        breakdown=MatchScoreBreakdown(
            skills_match=skills_match,
            experience_match=experience_match,
            education_match=education_match,
        ),
    )


def skill_coverage(requirements: JobRequirements, skills: List[Skill]) -> Dict[str, List[Skill]]:
    """Evidence per required skill: direct matches first, then related skills"""
    coverage = {}
    for required in requirements.required_skills:
        direct = [skill for skill in skills if names_match(required, skill.name)]
        coverage[required] = direct or expand_related_skills(required, skills)
    return coverage


def _profile_prompt_data(profile: ProfileSnapshot) -> str:
    data = {
        "personalSummary": profile.personal_summary,
        "workExperiences": [
            {
                "company": e.company,
                "position": e.position,
                "current": e.current,
                "description": truncate_text(e.description, 800),
            }
            for e in profile.work_experiences
        ],
        "skills": [{"name": s.name, "proficiencyLevel": s.proficiency_level} for s in profile.skills],
        "education": [{"institution": e.institution, "degree": e.degree} for e in profile.education],
        "languages": [{"name": lang.name, "proficiencyLevel": lang.proficiency_level} for lang in profile.languages],
    }
    return json.dumps(data, ensure_ascii=False)


def reconcile_skill_gaps(output: AnalysisOutput, coverage: Dict[str, List[Skill]]) -> AnalysisOutput:
    """Make missing skills and gaps agree with the profile's actual coverage"""
    covered = {normalize_skill_name(req) for req, evidence in coverage.items() if evidence}
    uncovered = [req for req, evidence in coverage.items() if not evidence]

    missing_skills = [
        name for name in output.missing_skills
        if normalize_skill_name(name) not in covered
    ]
    present = {normalize_skill_name(name) for name in missing_skills}
    for required in uncovered:
        if normalize_skill_name(required) not in present:
            missing_skills.append(required)
            present.add(normalize_skill_name(required))

    gaps = []
    for gap in output.gaps:
        if normalize_skill_name(gap.title) in covered:
            continue
        if any(mentions_term(gap.title, required) for required in uncovered):
            gap = gap.model_copy(update={"severity": GapSeverity.HIGH})
        gaps.append(gap)
    for required in uncovered:
        if not any(mentions_term(gap.title, required) for gap in gaps):
            gaps.append(Gap(
                title=required,
                description=f"{required} is a required skill and the profile shows no related experience",
                severity=GapSeverity.HIGH,
            ))

    return output.model_copy(update={"missing_skills": missing_skills, "gaps": gaps})


def fallback_analysis(profile: ProfileSnapshot, requirements: JobRequirements,
                      coverage: Dict[str, List[Skill]]) -> AnalysisOutput:
    """Analysis built from skill coverage alone"""
    score = calculate_match_score(profile, requirements)
    strengths = []
    for required, evidence in coverage.items():
        if not evidence:
            continue
        names = ", ".join(skill.name for skill in evidence)
        strengths.append(Strength(title=required, description=f"Backed by profile skills: {names}"))

    output = AnalysisOutput(
        match_score=score.match_score,
        strengths=strengths,
        gaps=[],
        missing_skills=[],
        suggested_focus_areas=[req for req, evidence in coverage.items() if not evidence],
    )
    return reconcile_skill_gaps(output, coverage)


class MatchAnalyzer:
    """Scores a profile against job requirements"""

    def __init__(self, generator: StructuredGenerator):
        self.generator = generator

    async def analyze(self, profile: ProfileSnapshot, requirements: JobRequirements,
                      job_description: str) -> AnalysisOutput:
        validation = validate_profile_data(profile)
        if not validation.is_valid or validation.warnings:
            pipeline_logger.warning(
                f"Profile {profile.user_id} incomplete: missing {validation.missing_fields}, "
                f"warnings {validation.warnings}"
            )

        coverage = skill_coverage(requirements, profile.skills)

        try:
            output = await self.generator.generate(
                ANALYSIS_PROMPT.format(
                    profile=_profile_prompt_data(profile),
                    requirements=requirements.model_dump_json(by_alias=True),
                    job_description=job_description,
                ),
                AnalysisOutput,
                system_prompt=SYSTEM_PROMPT,
            )
        except (PipelineError, ValidationError) as e:
            pipeline_logger.warning(f"Match analysis generation failed, using deterministic score: {e}")
            return fallback_analysis(profile, requirements, coverage)

        result = reconcile_skill_gaps(output, coverage)
        pipeline_logger.info(
            f"Match analysis done: score {result.match_score:g}, "
            f"{len(result.missing_skills)} missing skills"
        )
        return result
