"""
Shared error handling for the MaxMovies Access Gateway.

Every failure path in the gateway resolves to exactly one ``ErrorKind``.
Errors are classified once, where they happen (validation in the
dispatcher, upstream failures in the movie API client), and are only
mapped to a response status afterwards.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Failure kinds shared by every gateway component."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    REQUEST_SETUP_ERROR = "REQUEST_SETUP_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard failure envelope."""

    status: int
    success: bool = False
    message: str
    stack: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GatewayError(Exception):
    """Base exception for classified gateway failures."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    default_status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return self.default_status

    def to_response(self) -> ErrorResponse:
        """Convert to failure envelope."""
        return ErrorResponse(status=self.status_code, message=self.message)


class ValidationError(GatewayError):
    """A required request parameter is missing or malformed."""

    kind = ErrorKind.VALIDATION_ERROR
    default_status = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message, details={"field": field} if field else None)


class RateLimitError(GatewayError):
    """The caller has exhausted its quota for the current window."""

    kind = ErrorKind.RATE_LIMITED
    default_status = 429
    default_message = "Too many requests, please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(message, details={"retry_after": retry_after} if retry_after is not None else None)


class UpstreamUnavailableError(GatewayError):
    """The request was sent but no response arrived."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    default_status = 503
    default_message = "No response from movie API - Service Unavailable"


class UpstreamError(GatewayError):
    """The movie API responded with a failure status."""

    kind = ErrorKind.UPSTREAM_ERROR
    default_status = 502
    default_message = "API request failed"

    def __init__(self, upstream_status: int, message: Optional[str] = None, payload: Any = None):
        self.upstream_status = upstream_status
        self.payload = payload
        super().__init__(message, details={"upstream_status": upstream_status})

    @property
    def status_code(self) -> int:
        # A non-2xx below 400 (e.g. an unfollowed redirect) is still a failure.
        if self.upstream_status >= 400:
            return self.upstream_status
        return self.default_status


class RequestSetupError(GatewayError):
    """The outbound request could not be constructed or sent."""

    kind = ErrorKind.REQUEST_SETUP_ERROR
    default_status = 500
    default_message = "Error setting up request to movie API"


class NotFoundError(GatewayError):
    """No route matches the requested path."""

    kind = ErrorKind.NOT_FOUND
    default_status = 404
    default_message = "Endpoint not found. Please check the API documentation."


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid."""
