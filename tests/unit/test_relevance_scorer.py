"""
Unit tests for experience and skill relevance scoring.
"""

from datetime import date

import pytest

from cv_tailor.core.relevance_scorer import (
    ScoringWeights, extract_relevant_experience, filter_skills_by_relevance, names_match,
    score_and_sort_skills, score_and_sort_work_experiences, score_skill, score_work_experience
)
from cv_tailor.core.structure_planner import plan_experience_order
from cv_tailor.models.cv import DetailLevel
from cv_tailor.models.job import JobRequirements
from cv_tailor.models.profile import Skill, WorkExperience
from cv_tailor.models.scoring import SkillCategory

TODAY = date(2024, 6, 1)


def make_experience(id, description="", current=False, end_date=None, order_index=0, position="Engineer"):
    return WorkExperience(
        id=id,
        company="Company",
        position=position,
        start_date=date(2015, 1, 1),
        end_date=end_date,
        current=current,
        description=description,
        order_index=order_index,
    )


@pytest.mark.unit
def test_current_role_with_required_matches_is_detailed_and_first():
    requirements = JobRequirements(required_skills=["Java", "Kubernetes", "PostgreSQL"])
    past = make_experience("past", "Organised team events.", end_date=date(2023, 6, 1), order_index=0)
    current = make_experience(
        "current", "Java services on Kubernetes backed by PostgreSQL.", current=True, order_index=1
    )

    scored = score_and_sort_work_experiences([past, current], requirements, now=TODAY)
    order = plan_experience_order(scored, threshold=10)

    assert [item.experience.id for item in scored] == ["current", "past"]
    assert scored[0].score >= 13
    # Only the recency bonus applies to the past role
    assert scored[1].score == 2
    assert order[0].detail_level == DetailLevel.DETAILED
    assert order[1].detail_level == DetailLevel.BRIEF


@pytest.mark.unit
def test_experience_score_components():
    requirements = JobRequirements(
        required_skills=["Python"],
        preferred_skills=["Airflow"],
        key_responsibilities=["Maintain data pipelines"],
    )
    experience = make_experience("e", "Python and Airflow data pipelines.", current=True)

    score, reasons = score_work_experience(experience, requirements, now=TODAY)

    assert score == 10 + 5 + 8 + 3
    assert "Current position" in reasons


@pytest.mark.unit
def test_old_role_gets_no_recency_bonus():
    experience = make_experience("old", end_date=date(2019, 1, 1))
    score, reasons = score_work_experience(experience, JobRequirements(), now=TODAY)
    assert score == 0
    assert reasons == []


@pytest.mark.unit
def test_score_independent_of_requirement_order():
    experience = make_experience("e", "Go and Rust tooling", current=True)
    forward = JobRequirements(required_skills=["Go", "Rust"])
    backward = JobRequirements(required_skills=["Rust", "Go"])

    assert score_work_experience(experience, forward, now=TODAY)[0] == \
        score_work_experience(experience, backward, now=TODAY)[0]


@pytest.mark.unit
def test_ties_keep_declared_order_and_nothing_is_dropped():
    experiences = [make_experience(f"e{i}", order_index=i) for i in (2, 0, 1)]
    scored = score_and_sort_work_experiences(experiences, JobRequirements(), now=TODAY)
    assert [item.experience.id for item in scored] == ["e0", "e1", "e2"]


@pytest.mark.unit
def test_configured_weights_are_used():
    weights = ScoringWeights(required_mention=1, current_position=0)
    experience = make_experience("e", "java", current=True)
    score, _ = score_work_experience(experience, JobRequirements(required_skills=["Java"]), weights, now=TODAY)
    assert score == 1


@pytest.mark.unit
def test_skill_categories_first_match_wins():
    related = [Skill(id="r", name="Maven")]
    required = ["Java"]
    preferred = ["Java", "Kotlin"]

    score, category, _ = score_skill(Skill(id="1", name="Java", proficiency_level="Expert"), required, preferred, related)
    assert (score, category) == (25, SkillCategory.REQUIRED)

    score, category, _ = score_skill(Skill(id="2", name="Kotlin", proficiency_level="Advanced"), required, preferred, related)
    assert (score, category) == (13, SkillCategory.PREFERRED)

    score, category, _ = score_skill(Skill(id="3", name="Maven"), required, preferred, related)
    assert (score, category) == (8, SkillCategory.RELATED)

    score, category, _ = score_skill(Skill(id="4", name="Figma"), required, preferred, related)
    assert (score, category) == (1, SkillCategory.OTHER)


@pytest.mark.unit
def test_skills_sorted_by_score_then_name_and_filtered():
    skills = [
        Skill(id="1", name="Zig"),
        Skill(id="2", name="Docker"),
        Skill(id="3", name="AWS"),
        Skill(id="4", name="Ansible"),
    ]
    scored = score_and_sort_skills(skills, ["Docker", "AWS"], [], [])

    assert [item.skill.name for item in scored] == ["AWS", "Docker", "Ansible", "Zig"]

    filtered = filter_skills_by_relevance(scored, min_score=5, max_skills=20)
    assert [item.skill.name for item in filtered] == ["AWS", "Docker"]
    assert filter_skills_by_relevance(filtered, min_score=5, max_skills=20) == filtered
    assert filter_skills_by_relevance(scored, min_score=0, max_skills=0) == []
    assert len(filter_skills_by_relevance(scored, min_score=0, max_skills=3)) == 3


@pytest.mark.unit
def test_names_match_is_substring_either_way():
    assert names_match("React", "react.js")
    assert names_match("Spring Boot Framework", "spring boot")
    assert not names_match("Go", "")
    assert not names_match("Rust", "Java")


@pytest.mark.unit
def test_extract_relevant_experience(backend_profile):
    relevant = extract_relevant_experience(
        backend_profile, "We need engineers for microservices with Docker and payments."
    )
    assert relevant.relevant_experiences == ["exp-1"]
    assert relevant.relevant_skills == ["Docker"]
