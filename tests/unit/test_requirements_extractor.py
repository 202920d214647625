"""
Unit tests for requirements extraction and its caching.
"""

import asyncio

import pytest

from cv_tailor.core.errors import TransientError
from cv_tailor.core.requirements_extractor import RequirementsExtractor
from cv_tailor.models.job import ExperienceLevel, JobRequirements

JD = "Senior Java engineer. Must know Java and AWS; Terraform is a plus."


@pytest.mark.unit
def test_result_is_cached_for_identical_text(fake_generator, caches):
    fake_generator.script(JobRequirements, {
        "requiredSkills": ["Java", "AWS", "java"],
        "preferredSkills": ["Terraform"],
        "experienceLevel": "Senior",
    })
    extractor = RequirementsExtractor(fake_generator, caches)

    first = asyncio.run(extractor.extract(JD))
    second = asyncio.run(extractor.extract(JD))

    assert first is second
    assert first.required_skills == ["Java", "AWS"]
    assert first.experience_level == ExperienceLevel.SENIOR
    assert len(fake_generator.calls) == 1


@pytest.mark.unit
def test_failure_returns_empty_requirements(fake_generator, caches):
    fake_generator.script(JobRequirements, TransientError("rate limited"))
    extractor = RequirementsExtractor(fake_generator, caches, fallback_ttl=60)

    result = asyncio.run(extractor.extract(JD))

    assert result.is_empty()
    assert result.required_skills == []
    assert result.experience_level == ""


@pytest.mark.unit
def test_fallback_expires_sooner_than_success(fake_generator, caches, clock):
    fake_generator.script(JobRequirements, TransientError("rate limited"))
    extractor = RequirementsExtractor(fake_generator, caches, fallback_ttl=60)
    asyncio.run(extractor.extract(JD))

    clock.advance(30)
    asyncio.run(extractor.extract(JD))
    assert len(fake_generator.calls) == 1

    clock.advance(31)
    fake_generator.script(JobRequirements, JobRequirements(required_skills=["Java"]))
    recovered = asyncio.run(extractor.extract(JD))

    assert len(fake_generator.calls) == 2
    assert recovered.required_skills == ["Java"]

    clock.advance(3000)
    asyncio.run(extractor.extract(JD))
    assert len(fake_generator.calls) == 2


@pytest.mark.unit
def test_malformed_reply_falls_back(fake_generator, caches):
    fake_generator.script(JobRequirements, {"requiredSkills": "Java, AWS"})
    result = asyncio.run(RequirementsExtractor(fake_generator, caches).extract(JD))
    assert result.is_empty()


@pytest.mark.unit
def test_unknown_experience_level_becomes_blank():
    assert JobRequirements(experience_level="wizard").experience_level == ""
    assert JobRequirements(experience_level="Junior").experience_level == ExperienceLevel.ENTRY
    assert JobRequirements(required_skills=None).required_skills == []
