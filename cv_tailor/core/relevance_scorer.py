"""Relevance scoring of work experiences and skills against job requirements"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models.job import JobRequirements
from ..models.profile import ProfileSnapshot, Skill, WorkExperience
from ..models.scoring import ScoredExperience, ScoredSkill, SkillCategory
from ..utils.config import PipelineConfig, get_settings
from ..utils.helpers import extract_keywords, normalize_skill_name, truncate_text

HIGH_PROFICIENCY_MARKERS = ("expert", "advanced", "senior")
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class ScoringWeights:
    """Points awarded per matching signal"""
    required_mention: float = 10
    preferred_mention: float = 5
    responsibility_match: float = 8
    current_position: float = 3
    recent_position: float = 2
    recent_position_years: float = 2
    required_skill: float = 20
    required_proficiency_bonus: float = 5
    preferred_skill: float = 10
    preferred_proficiency_bonus: float = 3
    related_skill: float = 8
    other_skill: float = 1

    @classmethod
    def from_config(cls, config: Optional[PipelineConfig] = None) -> "ScoringWeights":
        config = config or get_settings().pipeline
        return cls(
            required_mention=config.weight_required_mention,
            preferred_mention=config.weight_preferred_mention,
            responsibility_match=config.weight_responsibility_match,
            current_position=config.weight_current_position,
            recent_position=config.weight_recent_position,
            recent_position_years=config.recent_position_years,
            required_skill=config.score_required_skill,
            required_proficiency_bonus=config.score_required_proficiency_bonus,
            preferred_skill=config.score_preferred_skill,
            preferred_proficiency_bonus=config.score_preferred_proficiency_bonus,
            related_skill=config.score_related_skill,
            other_skill=config.score_other_skill,
        )


DEFAULT_WEIGHTS = ScoringWeights()


def _today(now: Optional[date]) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def names_match(a: str, b: str) -> bool:
    """Exact or either-direction substring match on normalized names"""
    a, b = normalize_skill_name(a), normalize_skill_name(b)
    if not a or not b:
        return False
    return a == b or a in b or b in a


def _is_high_proficiency(skill: Skill) -> bool:
    level = (skill.proficiency_level or "").lower()
    return any(marker in level for marker in HIGH_PROFICIENCY_MARKERS)


# ==================== Experiences ====================

def score_work_experience(experience: WorkExperience, requirements: JobRequirements,
                          weights: ScoringWeights = DEFAULT_WEIGHTS,
                          now: Optional[date] = None) -> Tuple[float, List[str]]:
    """Score one experience; returns (score, reasons)"""
    score = 0.0
    reasons: List[str] = []

    text = f"{experience.position} {experience.company} {experience.description}".lower()

    for skill in (s.lower().strip() for s in requirements.required_skills):
        if skill and skill in text:
            score += weights.required_mention
            reasons.append(f"Mentions required skill: {skill}")

    for skill in (s.lower().strip() for s in requirements.preferred_skills):
        if skill and skill in text:
            score += weights.preferred_mention
            reasons.append(f"Mentions preferred skill: {skill}")

    for responsibility in (r.lower() for r in requirements.key_responsibilities):
        keywords = extract_keywords(responsibility, min_length=4)
        if any(keyword in text for keyword in keywords):
            score += weights.responsibility_match
            reasons.append(f"Matches responsibility: {truncate_text(responsibility, 50)}")

    if experience.current:
        score += weights.current_position
        reasons.append("Current position")
    elif experience.end_date is not None:
        years_since = (_today(now) - experience.end_date).days / DAYS_PER_YEAR
        if years_since < weights.recent_position_years:
            score += weights.recent_position
            reasons.append(f"Recent position (within {weights.recent_position_years:g} years)")

    return score, reasons


def score_and_sort_work_experiences(experiences: Iterable[WorkExperience], requirements: JobRequirements,
                                    weights: ScoringWeights = DEFAULT_WEIGHTS,
                                    now: Optional[date] = None) -> List[ScoredExperience]:
    """Score every experience and sort by (score desc, order_index asc)

    Nothing is dropped here; trimming happens in structure planning.
    """
    scored = []
    for experience in experiences:
        score, reasons = score_work_experience(experience, requirements, weights, now)
        scored.append(ScoredExperience(experience=experience, score=score, reasons=reasons))

    return sorted(scored, key=lambda item: (-item.score, item.experience.order_index))


# ==================== Skills ====================

def score_skill(skill: Skill, required_skills: List[str], preferred_skills: List[str],
                related_skills: List[Skill],
                weights: ScoringWeights = DEFAULT_WEIGHTS) -> Tuple[float, SkillCategory, List[str]]:
    """Categorize and score one skill; the first matching category wins"""
    for required in required_skills:
        if names_match(skill.name, required):
            score = weights.required_skill
            if _is_high_proficiency(skill):
                score += weights.required_proficiency_bonus
            return score, SkillCategory.REQUIRED, [f"Required skill for the job: {required}"]

    for preferred in preferred_skills:
        if names_match(skill.name, preferred):
            score = weights.preferred_skill
            if _is_high_proficiency(skill):
                score += weights.preferred_proficiency_bonus
            return score, SkillCategory.PREFERRED, [f"Preferred skill for the job: {preferred}"]

    for related in related_skills:
        if names_match(skill.name, related.name):
            return weights.related_skill, SkillCategory.RELATED, ["Related to required skills"]

    return weights.other_skill, SkillCategory.OTHER, ["Not directly mentioned in job requirements"]


def score_and_sort_skills(skills: Iterable[Skill], required_skills: List[str], preferred_skills: List[str],
                          related_skills: List[Skill],
                          weights: ScoringWeights = DEFAULT_WEIGHTS) -> List[ScoredSkill]:
    """Score every skill and sort by (score desc, name asc)"""
    scored = []
    for skill in skills:
        score, category, reasons = score_skill(skill, required_skills, preferred_skills, related_skills, weights)
        scored.append(ScoredSkill(skill=skill, score=score, category=category, reasons=reasons))

    return sorted(scored, key=lambda item: (-item.score, item.skill.name.lower(), item.skill.name))


def filter_skills_by_relevance(scored_skills: List[ScoredSkill], min_score: float = 5,
                               max_skills: int = 20) -> List[ScoredSkill]:
    """Keep skills scoring at least min_score, capped at max_skills

    Expects a list already sorted by relevance. Re-applying with the same
    parameters returns the same list.
    """
    if max_skills <= 0:
        return []
    filtered = [item for item in scored_skills if item.score >= min_score]
    return filtered[:max_skills]


# ==================== Relevant highlights ====================

class RelevantExperience(BaseModel):
    """Profile items whose text overlaps the job description"""
    relevant_experiences: List[str] = Field(default_factory=list)
    relevant_skills: List[str] = Field(default_factory=list)
    relevant_education: List[str] = Field(default_factory=list)


def extract_relevant_experience(profile: ProfileSnapshot, job_description: str) -> RelevantExperience:
    """Keyword overlap between the job description and profile entries"""
    job_lower = job_description.lower()
    job_words = set(word for word in job_lower.split() if len(word) > 4)

    def overlaps(text: str) -> bool:
        text = text.lower()
        return any(word in text for word in job_words)

    experiences = [
        exp.id for exp in profile.work_experiences
        if overlaps(f"{exp.company} {exp.position} {exp.description}")
    ]
    skills = [
        skill.name for skill in profile.skills
        if normalize_skill_name(skill.name) and normalize_skill_name(skill.name) in job_lower
    ]
    education = [
        edu.id for edu in profile.education
        if overlaps(f"{edu.institution} {edu.degree} {edu.field_of_study or ''}")
    ]
    return RelevantExperience(
        relevant_experiences=experiences,
        relevant_skills=skills,
        relevant_education=education,
    )
