"""Relevance scoring models"""

from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field

from .profile import Skill, WorkExperience


class SkillCategory(str, Enum):
    """Relevance category of a skill, in priority order"""
    REQUIRED = "required"
    PREFERRED = "preferred"
    RELATED = "related"
    OTHER = "other"


class ScoredExperience(BaseModel):
    """Work experience with its relevance score"""
    model_config = ConfigDict(frozen=True)

    experience: WorkExperience
    score: float = Field(..., ge=0)
    reasons: List[str] = Field(default_factory=list)


class ScoredSkill(BaseModel):
    """Skill with its relevance score and category"""
    model_config = ConfigDict(frozen=True)

    skill: Skill
    score: float = Field(..., ge=0)
    category: SkillCategory
    reasons: List[str] = Field(default_factory=list)
