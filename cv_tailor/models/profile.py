"""Profile snapshot models"""

from datetime import date
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ProfileItem(BaseModel):
    """Base for profile entries: immutable, accepts snake_case or camelCase keys"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class WorkExperience(ProfileItem):
    """Work experience entry"""
    id: str = Field(..., description="Stable identifier")
    company: str = Field(..., description="Company name")
    position: str = Field(..., description="Job title")
    start_date: date = Field(..., alias="startDate", description="Start date")
    end_date: Optional[date] = Field(None, alias="endDate", description="End date, None when current")
    current: bool = Field(False, description="Whether this is the current position")
    description: str = Field("", description="Free-text description")
    order_index: int = Field(0, alias="orderIndex", description="User-declared order")


class Skill(ProfileItem):
    """Skill entry"""
    id: str = Field(..., description="Stable identifier")
    name: str = Field(..., description="Skill name")
    category: Optional[str] = Field(None, description="Skill category")
    proficiency_level: Optional[str] = Field(None, alias="proficiencyLevel", description="Proficiency level")


class Education(ProfileItem):
    """Education entry"""
    id: str = Field(..., description="Stable identifier")
    institution: str = Field(..., description="Institution name")
    degree: str = Field(..., description="Degree")
    field_of_study: Optional[str] = Field(None, alias="fieldOfStudy", description="Field of study")
    start_date: date = Field(..., alias="startDate", description="Start date")
    end_date: Optional[date] = Field(None, alias="endDate", description="End date")
    current: bool = Field(False, description="Currently studying")
    description: Optional[str] = Field(None, description="Additional details")
    order_index: int = Field(0, alias="orderIndex", description="User-declared order")


class Language(ProfileItem):
    """Spoken language"""
    id: str = Field(..., description="Stable identifier")
    name: str = Field(..., description="Language name")
    proficiency_level: str = Field("", alias="proficiencyLevel", description="e.g. Native, Fluent")


class ProfileSnapshot(ProfileItem):
    """Read-only view of a user's profile at pipeline start"""
    user_id: str = Field("", alias="userId")
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = Field(None, alias="postalCode")
    profile_image_url: Optional[str] = Field(None, alias="profileImageUrl")
    personal_summary: Optional[str] = Field(None, alias="personalSummary")

    work_experiences: List[WorkExperience] = Field(default_factory=list, alias="workExperiences")
    skills: List[Skill] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    def experience_by_id(self, experience_id: str) -> Optional[WorkExperience]:
        for experience in self.work_experiences:
            if experience.id == experience_id:
                return experience
        return None

    def skill_by_id(self, skill_id: str) -> Optional[Skill]:
        for skill in self.skills:
            if skill.id == skill_id:
                return skill
        return None

    def summary_counts(self) -> dict:
        """Item counts handed to structure planning"""
        return {
            "work_experiences": len(self.work_experiences),
            "skills": len(self.skills),
            "education": len(self.education),
            "languages": len(self.languages),
            "has_summary": bool(self.personal_summary),
        }
