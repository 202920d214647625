"""Fixtures wiring the workflow over temporary storage and a scripted generator"""

import asyncio

import pytest

from cv_tailor.models.analysis import AnalysisOutput
from cv_tailor.models.cv import CVTextDraft, SkillGroupingDraft
from cv_tailor.models.job import JobRequirements
from cv_tailor.services.workflow_service import WorkflowService

JOB_DESCRIPTION = (
    "Backend engineer for our payments platform. Required: Java, AWS. "
    "Docker experience is a plus. You will design payment APIs."
)


def script_happy_path(generator):
    generator.script(JobRequirements, {
        "requiredSkills": ["Java", "AWS"],
        "preferredSkills": ["Docker"],
        "keyResponsibilities": ["Design payment APIs"],
        "experienceLevel": "mid",
    })
    generator.script(AnalysisOutput, {
        "matchScore": 64,
        "strengths": [{"title": "Payments domain", "description": "Current role at Acme Payments"}],
        "gaps": [{"title": "AWS", "description": "No cloud experience listed", "severity": "medium"}],
        "missingSkills": ["AWS", "Java"],
        "suggestedFocusAreas": ["Microservice design"],
    })
    generator.script(SkillGroupingDraft, {
        "groups": [
            {"category": "DevOps", "skillIds": ["s-2"]},
            {"category": "Backend Frameworks", "skillIds": ["s-1"]},
        ],
    })
    generator.script(CVTextDraft, {
        "summary": "Backend engineer building payment microservices. Designs APIs for card payments.",
        "experiences": [
            {"experienceId": "exp-1", "achievements": [
                "Designed Java microservices with Spring Boot and Docker",
                "Led API design for card payments",
            ]},
        ],
    })
    return generator


@pytest.fixture
def workflow(data_manager, fake_generator, caches, runner):
    return WorkflowService(data_manager=data_manager, generator=fake_generator, caches=caches, runner=runner)


@pytest.fixture
def stored_profile(data_manager, backend_profile):
    asyncio.run(data_manager.save_profile(backend_profile))
    return backend_profile


@pytest.fixture
def job_description():
    return JOB_DESCRIPTION


@pytest.fixture
def happy_generator(fake_generator):
    """Generator scripted for a successful analyze and generate-CV run"""
    return script_happy_path(fake_generator)
