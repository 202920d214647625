"""Data models"""

from .profile import ProfileSnapshot, WorkExperience, Skill, Education, Language
from .job import JobRequirements, ExperienceLevel
from .scoring import ScoredExperience, ScoredSkill, SkillCategory
from .cv import CVStructure, CVContent, CVData, ValidationResult, DetailLevel, SummaryLength
from .analysis import AnalysisOutput, Gap, GapSeverity, Strength
from .task import (
    TaskStatus, AnalyzePayload, GenerateCVPayload, ImportProfilePayload,
    AnalysisRecord, CVRecord, FileType
)
from .profile_import import ImportProfileData

__all__ = [
    "ProfileSnapshot",
    "WorkExperience",
    "Skill",
    "Education",
    "Language",
    "JobRequirements",
    "ExperienceLevel",
    "ScoredExperience",
    "ScoredSkill",
    "SkillCategory",
    "CVStructure",
    "CVContent",
    "CVData",
    "ValidationResult",
    "DetailLevel",
    "SummaryLength",
    "AnalysisOutput",
    "Gap",
    "GapSeverity",
    "Strength",
    "TaskStatus",
    "AnalyzePayload",
    "GenerateCVPayload",
    "ImportProfilePayload",
    "AnalysisRecord",
    "CVRecord",
    "FileType",
    "ImportProfileData",
]
