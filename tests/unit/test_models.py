"""
Unit tests for payload and record validation.
"""

import pytest
from pydantic import ValidationError

from cv_tailor.models.cv import CVStructure, SkillGroup
from cv_tailor.models.profile_import import ImportProfileData
from cv_tailor.models.task import AnalyzePayload, FileType, ImportProfilePayload


@pytest.mark.unit
def test_payload_accepts_camel_case_and_rejects_blank_fields():
    payload = AnalyzePayload.model_validate({
        "userId": "u-1",
        "jobDescriptionId": "jd-1",
        "jobDescription": "Python developer",
        "analysisResultId": "a-1",
    })
    assert payload.user_id == "u-1"

    with pytest.raises(ValidationError):
        AnalyzePayload(user_id="u-1", job_description_id="jd-1", job_description="   ", analysis_result_id="a-1")


@pytest.mark.unit
def test_import_payload_file_type():
    payload = ImportProfilePayload(user_id="u", file_url="https://x/cv.md", file_type="markdown")
    assert payload.file_type == FileType.MARKDOWN

    with pytest.raises(ValidationError):
        ImportProfilePayload(user_id="u", file_url="https://x/cv.docx", file_type="docx")


@pytest.mark.unit
def test_structure_rejects_skill_in_two_groups():
    with pytest.raises(ValidationError):
        CVStructure(skill_groups=[
            SkillGroup(category="A", skill_ids=["s1"], order=0),
            SkillGroup(category="B", skill_ids=["s1"], order=1),
        ])


@pytest.mark.unit
def test_structure_skill_cap_bounds():
    with pytest.raises(ValidationError):
        CVStructure(max_skills_to_show=30)
    assert CVStructure().max_skills_to_show == 20


@pytest.mark.unit
def test_imported_profile_enums_and_null_lists():
    data = ImportProfileData.model_validate({
        "firstName": "Ada",
        "skills": [{"name": "Python", "category": "Programming Language", "proficiencyLevel": "Expert"}],
        "education": None,
        "languages": None,
    })
    assert data.education == []
    assert data.languages == []

    with pytest.raises(ValidationError):
        ImportProfileData.model_validate({"skills": [{"name": "Python", "category": "Languages"}]})
