"""Schema for profile data extracted from an uploaded CV"""

from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


SkillCategoryName = Literal["Programming Language", "Technical", "Soft Skills"]
ProficiencyLevel = Literal["Expert", "Advanced", "Intermediate", "Beginner"]


class ImportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImportedWorkExperience(ImportModel):
    company: str
    position: str
    start_date: date
    end_date: Optional[date] = None
    current: bool = False
    description: str = ""


class ImportedSkill(ImportModel):
    name: str = Field(..., min_length=1)
    category: SkillCategoryName
    proficiency_level: Optional[ProficiencyLevel] = None


class ImportedEducation(ImportModel):
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    current: bool = False
    description: Optional[str] = None


class ImportedLanguage(ImportModel):
    name: str
    proficiency_level: str = ""


class ImportProfileData(ImportModel):
    """Everything extracted from an uploaded CV document"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    profile_image_url: Optional[str] = None
    personal_summary: Optional[str] = None

    work_experiences: List[ImportedWorkExperience] = Field(default_factory=list)
    skills: List[ImportedSkill] = Field(default_factory=list)
    education: List[ImportedEducation] = Field(default_factory=list)
    languages: List[ImportedLanguage] = Field(default_factory=list)

    @field_validator("work_experiences", "skills", "education", "languages", mode="before")
    @classmethod
    def default_to_empty(cls, v):
        return [] if v is None else v
