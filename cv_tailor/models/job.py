"""Job requirement models"""

from enum import Enum
from typing import List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.helpers import dedupe_preserving_order


class ExperienceLevel(str, Enum):
    """Seniority expected by the job"""
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


# Common phrasings mapped onto the four levels
_LEVEL_SYNONYMS = {
    "entry": ExperienceLevel.ENTRY,
    "entry-level": ExperienceLevel.ENTRY,
    "entry level": ExperienceLevel.ENTRY,
    "junior": ExperienceLevel.ENTRY,
    "graduate": ExperienceLevel.ENTRY,
    "intern": ExperienceLevel.ENTRY,
    "mid": ExperienceLevel.MID,
    "mid-level": ExperienceLevel.MID,
    "mid level": ExperienceLevel.MID,
    "intermediate": ExperienceLevel.MID,
    "senior": ExperienceLevel.SENIOR,
    "lead": ExperienceLevel.SENIOR,
    "staff": ExperienceLevel.SENIOR,
    "principal": ExperienceLevel.SENIOR,
    "executive": ExperienceLevel.EXECUTIVE,
    "director": ExperienceLevel.EXECUTIVE,
    "vp": ExperienceLevel.EXECUTIVE,
    "c-level": ExperienceLevel.EXECUTIVE,
}


class JobRequirements(BaseModel):
    """Structured requirements extracted from a job description"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills", description="Must-have skills")
    preferred_skills: List[str] = Field(default_factory=list, alias="preferredSkills", description="Nice-to-have skills")
    qualifications: List[str] = Field(default_factory=list, description="Degrees, certifications, other qualifications")
    experience_level: Union[ExperienceLevel, Literal[""]] = Field("", alias="experienceLevel", description="Expected seniority")
    key_responsibilities: List[str] = Field(default_factory=list, alias="keyResponsibilities", description="Main duties")

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def dedupe_skills(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple, set)):
            raise ValueError("skills must be a list of strings")
        return dedupe_preserving_order(v)

    @field_validator("qualifications", "key_responsibilities", mode="before")
    @classmethod
    def clean_lists(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError("expected a list of strings")
        return [item.strip() for item in v if isinstance(item, str) and item.strip()]

    @field_validator("experience_level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if v is None:
            return ""
        if isinstance(v, ExperienceLevel):
            return v
        return _LEVEL_SYNONYMS.get(str(v).lower().strip(), "")

    @classmethod
    def empty(cls) -> "JobRequirements":
        """Fallback value used when extraction fails"""
        return cls()

    def is_empty(self) -> bool:
        return not (
            self.required_skills or self.preferred_skills or self.qualifications
            or self.key_responsibilities or self.experience_level
        )
