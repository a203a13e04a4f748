"""
Shared error handling for the Search Operations layer.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class SearchOpsException(Exception):
    """Base exception for Search Operations services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(SearchOpsException):
    """The request carries no usable credential."""

    status_code = 401

    def __init__(
        self,
        message: str = "The Authorization header is missing. It must use the bearer authorization method.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__("MISSING_AUTHORIZATION_HEADER", message, details)


class InvalidApiKey(SearchOpsException):
    """The credential is unknown or lacks the required action."""

    status_code = 403
    base_message = "The provided API key is invalid."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_API_KEY", message or self.base_message, details)


class FeatureDisabled(SearchOpsException):
    """An experimental feature is not enabled for this deployment."""

    def __init__(self, feature: str, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("feature", feature)
        super().__init__("FEATURE_NOT_ENABLED", message, details)


class ExternalServiceError(SearchOpsException):
    """A collaborating subsystem failed."""

    status_code = 500

    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
        code: str = "EXTERNAL_SERVICE_ERROR"
    ):
        self.service = service
        super().__init__(code, f"{service}: {message}", details)
