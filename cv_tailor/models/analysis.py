"""Profile/job match analysis models"""

from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AnalysisModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GapSeverity(str, Enum):
    """Gap severity"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Strength(AnalysisModel):
    """Strength backed by profile data"""
    title: str
    description: str = ""


class Gap(AnalysisModel):
    """Unmet requirement"""
    title: str
    description: str = ""
    severity: GapSeverity = GapSeverity.MEDIUM

    @field_validator("severity", mode="before")
    @classmethod
    def lower_severity(cls, v):
        return v.lower().strip() if isinstance(v, str) else v


class AnalysisOutput(AnalysisModel):
    """Match analysis of a profile against a job"""
    match_score: float = Field(..., ge=0, le=100, description="Match score (0-100)")
    strengths: List[Strength] = Field(default_factory=list)
    gaps: List[Gap] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    suggested_focus_areas: List[str] = Field(default_factory=list)


class MatchScoreBreakdown(AnalysisModel):
    """Components of the deterministic match score"""
    skills_match: float
    experience_match: float
    education_match: float


class MatchScoreResult(AnalysisModel):
    """Deterministic match score"""
    match_score: int = Field(..., ge=0, le=100)
    breakdown: MatchScoreBreakdown


class ProfileValidation(AnalysisModel):
    """Completeness check of a profile"""
    is_valid: bool
    missing_fields: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
