"""Pipeline exceptions"""

from typing import Any, Dict, List, Optional


class PipelineError(Exception):
    """Base error carrying the stage it came from and serializable context"""

    retryable = True

    def __init__(self, message: str, stage: str = "unknown", context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.context = context or {}

    def with_stage(self, stage: str) -> "PipelineError":
        """Set the stage if none was recorded yet"""
        if self.stage == "unknown":
            self.stage = stage
        return self

    def to_diagnostic(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "message": self.message,
            "error_type": type(self).__name__,
            "context": self.context,
        }

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class InputError(PipelineError):
    """Bad payload or missing referenced record"""
    retryable = False


class GenerationError(PipelineError):
    """Generator failed or returned output that violates the schema"""


class ContentValidationError(PipelineError):
    """Generated content is not grounded in the profile"""
    retryable = False

    def __init__(self, message: str, violations: List[str], stage: str = "validate-content",
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context["violations"] = list(violations)
        super().__init__(message, stage, context)
        self.violations = list(violations)


class TransientError(PipelineError):
    """Network failures and timeouts"""


class InternalError(PipelineError):
    """Unexpected exception inside the pipeline, usually a bug; never retried"""
    retryable = False
