"""
Unit tests for CV content generation and the final CV document.
"""

import asyncio

import pytest

from cv_tailor.core.content_generator import ContentGenerator, build_cv_data, header_location, header_role
from cv_tailor.core.errors import GenerationError
from cv_tailor.models.cv import (
    CVSections, CVStructure, CVTextDraft, DetailLevel, ExperienceOrderItem, SkillGroup, SummaryLength
)
from cv_tailor.models.job import JobRequirements

REQUIREMENTS = JobRequirements(required_skills=["Java", "AWS"], key_responsibilities=["Design payment APIs"])


def make_structure(summary_length=SummaryLength.SHORT):
    return CVStructure(
        sections=CVSections(),
        experience_order=[
            ExperienceOrderItem(experience_id="exp-1", relevance_score=23, detail_level=DetailLevel.DETAILED, order=0),
            ExperienceOrderItem(experience_id="exp-2", relevance_score=0, detail_level=DetailLevel.BRIEF, order=1),
        ],
        skill_groups=[SkillGroup(category="Backend", skill_ids=["s-1", "s-2"], order=0)],
        summary_length=summary_length,
    )


def text_draft():
    return CVTextDraft(
        summary="**Backend engineer** with a focus on payments. Builds reliable services.",
        experiences=[
            {"experienceId": "exp-1", "achievements": ["- Designed *Spring Boot* microservices", "  "]},
            {"experienceId": "exp-2", "achievements": ["Should not appear"]},
        ],
    )


@pytest.mark.unit
def test_facts_come_from_profile(fake_generator, backend_profile):
    fake_generator.script(CVTextDraft, text_draft())
    content = asyncio.run(ContentGenerator(fake_generator).generate(backend_profile, make_structure(), REQUIREMENTS))

    detailed, brief = content.experiences
    assert (detailed.company, detailed.position) == ("Acme Payments", "Backend Engineer")
    assert detailed.start_date == "2021-03-01"
    assert detailed.end_date is None and detailed.current is True
    assert detailed.achievements == ["Designed Spring Boot microservices"]

    assert brief.is_brief is True
    assert brief.achievements == []
    assert brief.end_date == "2020-06-30"

    assert content.summary == "Backend engineer with a focus on payments. Builds reliable services."
    assert content.skill_groups[0].skills == ["Spring Boot", "Docker"]
    assert [e.institution for e in content.education] == ["University of Lisbon"]
    assert [lang.name for lang in content.languages] == ["English", "Portuguese"]


@pytest.mark.unit
def test_prompt_asks_for_planned_sentence_count(fake_generator, backend_profile):
    fake_generator.script(CVTextDraft, text_draft())
    generator = ContentGenerator(fake_generator)

    asyncio.run(generator.generate(backend_profile, make_structure(SummaryLength.MEDIUM), REQUIREMENTS,
                                   feedback=["Skill 'Kafka' is not in the profile"]))

    prompt = fake_generator.calls_for(CVTextDraft)[0]
    assert "exactly 3 sentences" in prompt
    assert "Skill 'Kafka' is not in the profile" in prompt
    # Only detailed experiences are sent for achievements
    assert "exp-1 | Backend Engineer" in prompt
    assert "exp-2 | Junior Developer" not in prompt


@pytest.mark.unit
def test_generator_failure_is_tagged(fake_generator, backend_profile):
    fake_generator.script(CVTextDraft, GenerationError("upstream down"))

    with pytest.raises(GenerationError) as excinfo:
        asyncio.run(ContentGenerator(fake_generator).generate(backend_profile, make_structure(), REQUIREMENTS))

    assert excinfo.value.stage == "generate-content"


@pytest.mark.unit
def test_build_cv_data_header(fake_generator, backend_profile, bare_profile):
    fake_generator.script(CVTextDraft, text_draft())
    content = asyncio.run(ContentGenerator(fake_generator).generate(backend_profile, make_structure(), REQUIREMENTS))

    cv = build_cv_data(backend_profile, content)
    assert cv.header.name == "Ada Moreira"
    assert cv.header.role == "Backend Engineer"
    assert cv.header.location == "Lisbon, Portugal"

    assert header_role(bare_profile) == "Data Engineer"
    assert header_location(bare_profile) is None


@pytest.mark.unit
def test_cv_data_serializes_empty_sections(fake_generator, bare_profile):
    structure = CVStructure(
        experience_order=[
            ExperienceOrderItem(experience_id="exp-9", relevance_score=13, detail_level=DetailLevel.DETAILED, order=0),
        ],
    )
    fake_generator.script(CVTextDraft, {"summary": "Data engineer. Builds pipelines.", "experiences": []})
    content = asyncio.run(ContentGenerator(fake_generator).generate(bare_profile, structure, REQUIREMENTS))

    dumped = build_cv_data(bare_profile, content).model_dump(mode="json", by_alias=True)
    assert dumped["education"] == []
    assert dumped["languages"] == []
    assert dumped["skillGroups"] == []
    assert dumped["experiences"][0]["achievements"] == []
