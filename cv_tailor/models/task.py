"""Task payloads and persisted task records"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .analysis import Gap, Strength
from .cv import CVData
from .job import JobRequirements


class TaskModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskStatus(str, Enum):
    """Task lifecycle: pending -> processing -> completed | failed"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileType(str, Enum):
    """Supported import formats"""
    PDF = "pdf"
    MARKDOWN = "markdown"


def _require_text(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be empty")
    return v


RequiredText = Annotated[str, AfterValidator(_require_text)]


# ==================== Payloads ====================

class AnalyzePayload(TaskModel):
    """Payload of the analyze task"""
    user_id: RequiredText
    job_description_id: RequiredText
    job_description: RequiredText
    analysis_result_id: RequiredText


class GenerateCVPayload(TaskModel):
    """Payload of the generate-CV task"""
    user_id: RequiredText
    job_description_id: RequiredText
    analysis_result_id: RequiredText
    job_description: RequiredText
    cv_id: RequiredText


class ImportProfilePayload(TaskModel):
    """Payload of the profile import task"""
    user_id: RequiredText
    file_url: RequiredText
    file_content: Optional[str] = None
    file_type: FileType
    file_name: Optional[str] = None


# ==================== Records ====================

class AnalysisRecord(TaskModel):
    """Persisted analysis result"""
    id: str
    user_id: str
    job_description_id: str
    status: TaskStatus = TaskStatus.PENDING
    match_score: Optional[float] = Field(None, ge=0, le=100)
    strengths: List[Strength] = Field(default_factory=list)
    gaps: List[Gap] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    suggested_focus_areas: List[str] = Field(default_factory=list)
    job_requirements: Optional[JobRequirements] = None
    raw_analysis: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    error_context: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CVRecord(TaskModel):
    """Persisted generated CV"""
    id: str
    user_id: str
    job_description_id: str
    analysis_result_id: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    cv_data: Optional[CVData] = None
    error_message: Optional[str] = None
    error_context: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
