"""
Integration tests for sqlite persistence of profiles and task records.
"""

import asyncio
from datetime import date

import pytest

from cv_tailor.core.data_manager import DataManager
from cv_tailor.models.analysis import Gap, GapSeverity
from cv_tailor.models.cv import CVData, CVHeader
from cv_tailor.models.job import ExperienceLevel, JobRequirements
from cv_tailor.models.profile_import import ImportProfileData
from cv_tailor.models.task import TaskStatus


@pytest.mark.integration
def test_profile_round_trip(data_manager, backend_profile):
    counts = asyncio.run(data_manager.save_profile(backend_profile))
    loaded = asyncio.run(data_manager.get_profile_snapshot("user-1"))

    assert counts == {"work_experiences": 2, "skills": 2, "education": 1, "languages": 2}
    assert loaded == backend_profile
    assert asyncio.run(data_manager.get_profile_snapshot("nobody")) is None


@pytest.mark.integration
def test_saving_again_replaces_all_items(data_manager, backend_profile):
    asyncio.run(data_manager.save_profile(backend_profile))
    trimmed = backend_profile.model_copy(update={"skills": backend_profile.skills[:1], "languages": []})
    asyncio.run(data_manager.save_profile(trimmed))

    loaded = asyncio.run(data_manager.get_profile_snapshot("user-1"))
    assert [s.name for s in loaded.skills] == ["Spring Boot"]
    assert loaded.languages == []
    assert len(loaded.work_experiences) == 2


@pytest.mark.integration
def test_replace_profile_assigns_fresh_ids_and_order(data_manager, backend_profile):
    asyncio.run(data_manager.save_profile(backend_profile))
    imported = ImportProfileData.model_validate({
        "firstName": "Ada",
        "lastName": "Moreira",
        "workExperiences": [
            {"company": "Initech", "position": "Staff Engineer", "startDate": "2023-01-01", "current": True},
            {"company": "Acme Payments", "position": "Backend Engineer", "startDate": "2021-03-01",
             "endDate": "2022-12-31"},
        ],
        "skills": [{"name": "Kotlin", "category": "Programming Language", "proficiencyLevel": "Advanced"}],
    })

    counts = asyncio.run(data_manager.replace_profile("user-1", imported))
    loaded = asyncio.run(data_manager.get_profile_snapshot("user-1"))

    assert counts == {"work_experiences": 2, "skills": 1, "education": 0, "languages": 0}
    assert [e.company for e in loaded.work_experiences] == ["Initech", "Acme Payments"]
    assert [e.order_index for e in loaded.work_experiences] == [0, 1]
    assert loaded.work_experiences[1].end_date == date(2022, 12, 31)
    assert {e.id for e in loaded.work_experiences}.isdisjoint({"exp-1", "exp-2"})
    assert loaded.skills[0].category == "Programming Language"
    assert loaded.education == [] and loaded.languages == []
    assert loaded.personal_summary is None


@pytest.mark.integration
def test_analysis_record_round_trip(data_manager):
    created = asyncio.run(data_manager.create_analysis_record("a-1", "user-1", "jd-1"))
    assert created.status == TaskStatus.PENDING
    assert created.created_at is not None

    completed = created.model_copy(update={
        "status": TaskStatus.COMPLETED,
        "match_score": 72.5,
        "gaps": [Gap(title="AWS", severity=GapSeverity.HIGH)],
        "missing_skills": ["AWS"],
        "job_requirements": JobRequirements(required_skills=["Java", "AWS"], experience_level="senior"),
        "raw_analysis": {"matchScore": 72.5},
    })
    asyncio.run(data_manager.save_analysis_record(completed))
    loaded = asyncio.run(data_manager.get_analysis_record("a-1"))

    assert loaded.status == TaskStatus.COMPLETED
    assert loaded.match_score == 72.5
    assert loaded.gaps[0].severity == GapSeverity.HIGH
    assert loaded.job_requirements.required_skills == ["Java", "AWS"]
    assert loaded.job_requirements.experience_level == ExperienceLevel.SENIOR
    assert loaded.created_at == created.created_at
    assert asyncio.run(data_manager.get_analysis_record("missing")) is None


@pytest.mark.integration
def test_cv_record_write_replaces_whole_row(data_manager):
    asyncio.run(data_manager.create_cv_record("cv-1", "user-1", "jd-1", "a-1"))
    cv_data = CVData(header=CVHeader(name="Ada Moreira"), summary="Engineer. Builds things.")

    record = asyncio.run(data_manager.get_cv_record("cv-1"))
    asyncio.run(data_manager.save_cv_record(record.model_copy(update={
        "status": TaskStatus.FAILED,
        "error_message": "[generate-content] boom",
        "error_context": {"stage": "generate-content"},
    })))
    record = asyncio.run(data_manager.get_cv_record("cv-1"))
    asyncio.run(data_manager.save_cv_record(record.model_copy(update={
        "status": TaskStatus.COMPLETED,
        "cv_data": cv_data,
        "error_message": None,
        "error_context": None,
    })))

    loaded = asyncio.run(data_manager.get_cv_record("cv-1"))
    assert loaded.status == TaskStatus.COMPLETED
    assert loaded.cv_data == cv_data
    assert loaded.cv_data.education == [] and loaded.cv_data.languages == []
    assert loaded.error_message is None and loaded.error_context is None
    assert loaded.analysis_result_id == "a-1"


@pytest.mark.integration
def test_tables_survive_reopen(tmp_path, backend_profile):
    path = str(tmp_path / "reopen.db")
    asyncio.run(DataManager(path).save_profile(backend_profile))

    assert asyncio.run(DataManager(path).get_profile_snapshot("user-1")) == backend_profile
