"""Grounding checks of generated CV content against the profile snapshot"""

import re
from typing import List, Optional

from .relevance_scorer import names_match
from ..models.cv import CVContent, ValidationResult
from ..models.job import JobRequirements
from ..models.profile import ProfileSnapshot
from ..utils.helpers import normalize_skill_name, to_iso_date
from ..utils.logger import pipeline_logger


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def mentions_term(text: str, term: str) -> bool:
    """Whole-word, case-insensitive mention"""
    term = normalize_skill_name(term)
    if not term:
        return False
    return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", (text or "").lower()) is not None


def _check_structure(content: CVContent, profile: ProfileSnapshot, violations: List[str]):
    if not (content.summary or "").strip():
        violations.append("Summary is empty")
    if content.education is None:
        violations.append("Education list is missing")
    if content.languages is None:
        violations.append("Languages list is missing")

    seen = set()
    for experience in content.experiences:
        if not experience.company.strip() or not experience.position.strip() or not experience.start_date:
            violations.append(f"Experience {experience.experience_id} is missing company, position or start date")
        if experience.experience_id in seen:
            violations.append(f"Experience {experience.experience_id} appears more than once")
        seen.add(experience.experience_id)
        if profile.experience_by_id(experience.experience_id) is None:
            violations.append(f"Experience {experience.experience_id} does not exist in the profile")


def _check_experiences(content: CVContent, profile: ProfileSnapshot, violations: List[str]):
    for experience in content.experiences:
        source = profile.experience_by_id(experience.experience_id)
        if source is None:
            continue
        label = f"Experience {experience.experience_id}"
        if not _same(experience.company, source.company):
            violations.append(f"{label}: company {experience.company!r} does not match profile {source.company!r}")
        if not _same(experience.position, source.position):
            violations.append(f"{label}: position {experience.position!r} does not match profile {source.position!r}")
        if experience.start_date != to_iso_date(source.start_date):
            violations.append(f"{label}: start date {experience.start_date} does not match profile")
        expected_end = None if source.current else to_iso_date(source.end_date)
        if experience.end_date != expected_end:
            violations.append(f"{label}: end date {experience.end_date} does not match profile")
        if experience.current != source.current:
            violations.append(f"{label}: current flag does not match profile")
        if experience.is_brief and experience.achievements:
            violations.append(f"{label}: brief experience carries achievements")


def _check_skills(content: CVContent, profile: ProfileSnapshot, violations: List[str], warnings: List[str]):
    known = {normalize_skill_name(skill.name) for skill in profile.skills}
    for group in content.skill_groups:
        if not group.skills:
            warnings.append(f"Skill group {group.category!r} is empty")
        for name in group.skills:
            if normalize_skill_name(name) not in known:
                violations.append(f"Skill {name!r} is not in the profile")


def _check_education(content: CVContent, profile: ProfileSnapshot, violations: List[str]):
    sources = [(e.institution, e.degree) for e in profile.education]
    for entry in content.education or []:
        if not any(_same(entry.institution, inst) and _same(entry.degree, deg) for inst, deg in sources):
            violations.append(f"Education {entry.degree!r} at {entry.institution!r} is not in the profile")

    languages = {normalize_skill_name(lang.name) for lang in profile.languages}
    for entry in content.languages or []:
        if normalize_skill_name(entry.name) not in languages:
            violations.append(f"Language {entry.name!r} is not in the profile")


def _check_summary_claims(content: CVContent, profile: ProfileSnapshot,
                          requirements: Optional[JobRequirements], warnings: List[str]):
    if requirements is None:
        return
    for term in requirements.required_skills + requirements.preferred_skills:
        if not mentions_term(content.summary, term):
            continue
        if any(names_match(term, skill.name) for skill in profile.skills):
            continue
        warnings.append(f"Summary mentions {term!r}, which is not among the profile skills")


def validate_cv_content(content: CVContent, profile: ProfileSnapshot,
                        requirements: Optional[JobRequirements] = None) -> ValidationResult:
    """Check that every fact in the content comes from the profile"""
    violations: List[str] = []
    warnings: List[str] = []

    _check_structure(content, profile, violations)
    _check_experiences(content, profile, violations)
    _check_skills(content, profile, violations, warnings)
    _check_education(content, profile, violations)
    _check_summary_claims(content, profile, requirements, warnings)

    result = ValidationResult(is_valid=not violations, violations=violations, warnings=warnings)
    if violations:
        pipeline_logger.warning(f"CV content failed validation: {'; '.join(violations)}")
    elif warnings:
        pipeline_logger.info(f"CV content validated with warnings: {'; '.join(warnings)}")
    return result
