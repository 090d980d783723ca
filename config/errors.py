"""ShouldCost error handling.

Custom exceptions and error codes for the cost decomposition pipeline.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Pipeline Stage Errors (2xxx)
    CLASSIFICATION_FAILED = "CLASSIFICATION_FAILED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    MATERIAL_RESOLUTION_GAP = "MATERIAL_RESOLUTION_GAP"
    BREAKDOWN_DEGENERATE = "BREAKDOWN_DEGENERATE"
    REPORT_FAILED = "REPORT_FAILED"

    # Firestore Errors (5xxx)
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"

    # LLM Errors (6xxx)
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"

    # External Service Errors (7xxx)
    EMBEDDING_ERROR = "EMBEDDING_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ShouldCostError(Exception):
    """Base exception for ShouldCost errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize ShouldCostError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(ShouldCostError):
    """Request validation error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class StageError(ShouldCostError):
    """Error raised by a single pipeline stage."""

    def __init__(
        self,
        code: str,
        message: str,
        stage: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "stage": stage}
        )
        self.stage = stage


class ClassificationError(StageError):
    """Classification response could not be parsed or validated."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(ErrorCode.CLASSIFICATION_FAILED, message, "classify", details)


class ExtractionError(StageError):
    """Structured data could not be recovered from a model response."""

    def __init__(self, message: str, stage: str = "analysis", details: Optional[Dict] = None):
        super().__init__(ErrorCode.EXTRACTION_FAILED, message, stage, details)


class BreakdownError(StageError):
    """Cost percentages cannot anchor a breakdown."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(ErrorCode.BREAKDOWN_DEGENERATE, message, "breakdown", details)


class PersistenceError(ShouldCostError):
    """Historical record could not be written."""

    def __init__(self, message: str, collection: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.PERSISTENCE_FAILED,
            message=message,
            details={**(details or {}), "collection": collection}
        )
        self.collection = collection
