"""
General error handling for TimeHatch.

This module provides error categorization and the exception hierarchy raised
by services. The API layer maps each exception to an HTTP status and a JSON
error body.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    """Types of errors that can occur in the system."""

    VALIDATION_ERROR = "validation_error"  # Invalid input/data format
    AUTHENTICATION_ERROR = "authentication_error"  # Authentication failure
    AUTHORIZATION_ERROR = "authorization_error"  # Plan or ownership failure
    NOT_FOUND_ERROR = "not_found_error"  # Missing record
    RATE_LIMIT_ERROR = "rate_limit_error"  # Too many attempts
    CONFIGURATION_ERROR = "configuration_error"  # Configuration issue
    EXTERNAL_SERVICE_ERROR = "external_service_error"  # Stripe or similar failure
    UNKNOWN_ERROR = "unknown_error"  # Unexpected errors


class TimeHatchError(Exception):
    """Base exception for errors surfaced to API clients."""

    error_type: ErrorType = ErrorType.UNKNOWN_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for a JSON response."""
        return create_error_response(self.error_type, self.message, self.context)


class ValidationError(TimeHatchError):
    """Request data failed validation."""

    error_type = ErrorType.VALIDATION_ERROR
    status_code = 400


class AuthenticationError(TimeHatchError):
    """Credentials or second factor were rejected."""

    error_type = ErrorType.AUTHENTICATION_ERROR
    status_code = 401


class PlanLimitError(TimeHatchError):
    """The current subscription plan does not allow the operation."""

    error_type = ErrorType.AUTHORIZATION_ERROR
    status_code = 403


class NotFoundError(TimeHatchError):
    """Requested record does not exist for the current user."""

    error_type = ErrorType.NOT_FOUND_ERROR
    status_code = 404


class RateLimitError(TimeHatchError):
    """Too many attempts within the current window."""

    error_type = ErrorType.RATE_LIMIT_ERROR
    status_code = 429

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error, including the retry hint."""
        data = super().to_dict()
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        return data


class ConfigurationError(TimeHatchError):
    """A required setting is missing."""

    error_type = ErrorType.CONFIGURATION_ERROR
    status_code = 500


class ExternalServiceError(TimeHatchError):
    """A third-party API call failed."""

    error_type = ErrorType.EXTERNAL_SERVICE_ERROR
    status_code = 502


def create_error_response(
    error_type: ErrorType,
    error_message: str,
    error_context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create error response data structure."""
    return {
        "detail": error_message,
        "error_type": error_type.value,
        "error_context": error_context or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
