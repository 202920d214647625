"""CV structure and content models"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CVModel(BaseModel):
    """Base for CV models: camelCase on the wire, snake_case in code"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DetailLevel(str, Enum):
    """How much of an experience is shown"""
    DETAILED = "detailed"  # achievements included
    BRIEF = "brief"  # company, position and dates only


class SummaryLength(str, Enum):
    """Summary length"""
    SHORT = "short"  # 2 sentences
    MEDIUM = "medium"  # 3 sentences


DEFAULT_SECTION_ORDER = ["header", "summary", "skills", "experience", "education", "languages"]


# ==================== Structure ====================

class CVSections(CVModel):
    """Section visibility"""
    header: bool = True
    summary: bool = True
    skills: bool = True
    experience: bool = True
    education: bool = True
    languages: bool = True
    contact: bool = True


class ExperienceOrderItem(CVModel):
    """Placement of one experience in the CV"""
    experience_id: str
    relevance_score: float = Field(..., ge=0)
    detail_level: DetailLevel
    order: int = Field(..., ge=0)


class SkillGroup(CVModel):
    """Skill category with the ids of its skills"""
    category: str = Field(..., min_length=1)
    skill_ids: List[str] = Field(default_factory=list)
    order: int = Field(..., ge=0)


class CVStructure(CVModel):
    """Layout decisions for a tailored CV"""
    sections: CVSections = Field(default_factory=CVSections)
    section_order: List[str] = Field(default_factory=lambda: list(DEFAULT_SECTION_ORDER))
    experience_order: List[ExperienceOrderItem] = Field(default_factory=list)
    skill_groups: List[SkillGroup] = Field(default_factory=list)
    max_skills_to_show: int = Field(20, ge=10, le=25)
    summary_length: SummaryLength = SummaryLength.SHORT

    @model_validator(mode="after")
    def check_skill_groups(self):
        seen = set()
        for group in self.skill_groups:
            for skill_id in group.skill_ids:
                if skill_id in seen:
                    raise ValueError(f"skill {skill_id} assigned to more than one group")
                seen.add(skill_id)
        return self

    @property
    def surfaced_skill_ids(self) -> List[str]:
        return [skill_id for group in self.skill_groups for skill_id in group.skill_ids]

    def detail_level_for(self, experience_id: str) -> Optional[DetailLevel]:
        for item in self.experience_order:
            if item.experience_id == experience_id:
                return item.detail_level
        return None


# ==================== Generator drafts ====================

class SkillGroupDraft(CVModel):
    """Skill group proposed by the generator"""
    category: str
    skill_ids: List[str] = Field(default_factory=list)


class SkillGroupingDraft(CVModel):
    """Grouping proposal returned by the generator"""
    groups: List[SkillGroupDraft] = Field(default_factory=list)


class ExperienceTextDraft(CVModel):
    """Achievements written by the generator for one experience"""
    experience_id: str
    achievements: List[str] = Field(default_factory=list)


class CVTextDraft(CVModel):
    """Free-text parts of the CV written by the generator"""
    summary: str
    experiences: List[ExperienceTextDraft] = Field(default_factory=list)


# ==================== Content ====================

class SkillGroupContent(CVModel):
    """Skill category with plain skill names"""
    category: str
    skills: List[str] = Field(default_factory=list)


class ExperienceContent(CVModel):
    """Experience entry as rendered"""
    experience_id: str
    company: str
    position: str
    start_date: str  # YYYY-MM-DD
    end_date: Optional[str] = None
    current: bool = False
    achievements: List[str] = Field(default_factory=list)
    is_brief: bool = False


class EducationContent(CVModel):
    """Education entry as rendered"""
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None


class LanguageContent(CVModel):
    """Language entry as rendered"""
    name: str
    proficiency_level: str = ""


class CVContent(CVModel):
    """Structured CV sections"""
    summary: str
    skill_groups: List[SkillGroupContent] = Field(default_factory=list)
    experiences: List[ExperienceContent] = Field(default_factory=list)
    education: List[EducationContent] = Field(default_factory=list)
    languages: List[LanguageContent] = Field(default_factory=list)


class CVHeader(CVModel):
    """Header block"""
    name: str
    role: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None


class CVData(CVModel):
    """Final CV document handed to downstream consumers"""
    header: CVHeader
    summary: str
    experiences: List[ExperienceContent] = Field(default_factory=list)
    skill_groups: List[SkillGroupContent] = Field(default_factory=list)
    # Always serialized, even when empty
    education: List[EducationContent] = Field(default_factory=list)
    languages: List[LanguageContent] = Field(default_factory=list)

    @field_validator("education", "languages", mode="before")
    @classmethod
    def default_to_empty(cls, v):
        return [] if v is None else v


class ValidationResult(CVModel):
    """Outcome of content validation"""
    is_valid: bool
    violations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
