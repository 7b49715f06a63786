"""
Tests for the error hierarchy and error response bodies.
"""

import pytest

from timehatch.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorType,
    ExternalServiceError,
    NotFoundError,
    PlanLimitError,
    RateLimitError,
    TimeHatchError,
    ValidationError,
    create_error_response,
)


@pytest.mark.unit
class TestErrorHandling:
    """Test the error handling implementation."""

    def test_error_type_values(self) -> None:
        """Error types serialize to snake case names."""
        assert ErrorType.VALIDATION_ERROR.value == "validation_error"
        assert ErrorType.RATE_LIMIT_ERROR.value == "rate_limit_error"
        assert ErrorType.UNKNOWN_ERROR.value == "unknown_error"

    @pytest.mark.parametrize(
        "error_class,status_code",
        [
            (ValidationError, 400),
            (AuthenticationError, 401),
            (PlanLimitError, 403),
            (NotFoundError, 404),
            (RateLimitError, 429),
            (ConfigurationError, 500),
            (ExternalServiceError, 502),
        ],
    )
    def test_status_codes(self, error_class, status_code) -> None:
        """Each error class maps to one HTTP status."""
        error = error_class("boom")
        assert isinstance(error, TimeHatchError)
        assert error.status_code == status_code

    def test_to_dict(self) -> None:
        """Errors serialize with their type and context."""
        error = NotFoundError("Client not found", {"client_id": "abc"})
        data = error.to_dict()

        assert data["detail"] == "Client not found"
        assert data["error_type"] == "not_found_error"
        assert data["error_context"] == {"client_id": "abc"}
        assert "timestamp" in data

    def test_rate_limit_includes_retry_after(self) -> None:
        """The retry hint is part of the body when known."""
        data = RateLimitError("slow down", retry_after=30).to_dict()
        assert data["retry_after"] == 30

    def test_rate_limit_without_retry_after(self) -> None:
        """No retry hint is sent when unknown."""
        assert "retry_after" not in RateLimitError("slow down").to_dict()

    def test_create_error_response_defaults(self) -> None:
        """Missing context becomes an empty dict."""
        data = create_error_response(ErrorType.UNKNOWN_ERROR, "oops")
        assert data["error_context"] == {}
