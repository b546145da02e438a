"""
Custom exceptions for Treadmill Coach.

Every error raised by the package derives from TreadmillCoachError and carries:
- A human-readable message
- An error code for API responses
- An HTTP status code
- Optional details for debugging

Validation errors propagate to the caller. Errors from the external plan
assistant are recovered by the plan generator, which falls back to the
deterministic plan builder.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Profile errors
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Plan errors
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    PLAN_VALIDATION_ERROR = "PLAN_VALIDATION_ERROR"
    PLAN_GENERATION_FAILED = "PLAN_GENERATION_FAILED"

    # Session errors
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_VALIDATION_ERROR = "SESSION_VALIDATION_ERROR"
    SESSION_FINISHED = "SESSION_FINISHED"

    # LLM errors
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_API_ERROR = "LLM_API_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class TreadmillCoachError(Exception):
    """
    Base exception for all Treadmill Coach errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(TreadmillCoachError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class PlanValidationError(ValidationError):
    """Raised when a plan generation request is invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field=field, details=details)
        self.code = ErrorCode.PLAN_VALIDATION_ERROR


class SessionValidationError(ValidationError):
    """Raised when a session event is invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field=field, details=details)
        self.code = ErrorCode.SESSION_VALIDATION_ERROR


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(TreadmillCoachError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class PlanNotFoundError(NotFoundError):
    """Raised when a training plan is not found."""

    def __init__(self, plan_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Training Plan",
            resource_id=plan_id,
            details=details,
        )
        self.code = ErrorCode.PLAN_NOT_FOUND


class SessionNotFoundError(NotFoundError):
    """Raised when a workout session is not found."""

    def __init__(self, session_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Workout Session",
            resource_id=session_id,
            details=details,
        )
        self.code = ErrorCode.SESSION_NOT_FOUND


class ProfileNotFoundError(NotFoundError):
    """Raised when a user has not completed onboarding."""

    def __init__(self, user_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="User Profile",
            resource_id=user_id,
            details=details,
        )
        self.code = ErrorCode.PROFILE_NOT_FOUND


# ============================================================================
# Conflict Errors (409)
# ============================================================================

class ConflictError(TreadmillCoachError):
    """Raised when there's a resource conflict."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


class SessionFinishedError(ConflictError):
    """Raised when an event is recorded on a session that already finished."""

    def __init__(
        self,
        session_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if session_id:
            error_details["session_id"] = session_id
        super().__init__(
            message="Session has already finished; no further events can be recorded.",
            details=error_details,
        )
        self.code = ErrorCode.SESSION_FINISHED


# ============================================================================
# Plan Generation Errors
# ============================================================================

class PlanGenerationError(TreadmillCoachError):
    """Raised when plan generation fails."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if phase:
            error_details["failed_at_phase"] = phase
        super().__init__(
            message=message,
            code=ErrorCode.PLAN_GENERATION_FAILED,
            status_code=500,
            details=error_details,
        )


# ============================================================================
# LLM Service Errors (500/503)
# ============================================================================

class LLMError(TreadmillCoachError):
    """Base class for LLM-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_API_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details,
        )


class LLMServiceUnavailableError(LLMError):
    """Raised when the LLM service is unavailable."""

    def __init__(
        self,
        message: str = "LLM service is currently unavailable",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_SERVICE_UNAVAILABLE,
            status_code=503,
            details=details,
        )


class LLMRateLimitError(LLMError):
    """Raised when LLM rate limits are hit."""

    def __init__(
        self,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if retry_after:
            error_details["retry_after_seconds"] = retry_after
        super().__init__(
            message="LLM service rate limit exceeded. Please try again later.",
            code=ErrorCode.LLM_RATE_LIMITED,
            status_code=429,
            details=error_details,
        )


class LLMTimeoutError(LLMError):
    """Raised when the assistant run does not finish in time."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if timeout_seconds:
            error_details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message="LLM request timed out",
            code=ErrorCode.LLM_TIMEOUT,
            status_code=504,
            details=error_details,
        )


class LLMResponseInvalidError(LLMError):
    """Raised when LLM response cannot be parsed or fails validation."""

    def __init__(
        self,
        message: str = "Failed to parse LLM response",
        raw_response: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if raw_response:
            error_details["raw_response_preview"] = raw_response[:500]
        super().__init__(
            message=message,
            code=ErrorCode.LLM_RESPONSE_INVALID,
            status_code=500,
            details=error_details,
        )


# ============================================================================
# Database Errors
# ============================================================================

class DatabaseError(TreadmillCoachError):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=error_details,
        )
