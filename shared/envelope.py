"""
Uniform response envelope for every gateway reply.

Success: ``{status, success: True, creator, ...echo, ...payload}``.
Failure: ``{status, success: False, message}``.

The ``status`` field always equals the transport status code and
``success`` is true exactly when ``status < 400``.
"""

import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from fastapi.responses import JSONResponse

from shared.errors import ErrorResponse, GatewayError

CREATOR = "GiftedTech"
RESERVED_KEYS = ("status", "success", "creator")


@dataclass(frozen=True)
class Envelope:
    """A finished response: transport status plus JSON body."""

    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    def to_response(self, headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
        return JSONResponse(status_code=self.status, content=self.body, headers=dict(headers or {}))


def success_envelope(payload: Optional[Mapping[str, Any]] = None, status: int = 200, **echo: Any) -> Envelope:
    """Merge an upstream payload into a success envelope.

    Echo fields and the reserved envelope keys take precedence over
    same-named keys from the upstream payload.
    """
    if status >= 400:
        raise ValueError(f"success envelope cannot carry status {status}")

    body: Dict[str, Any] = {"status": status, "success": True, "creator": CREATOR}
    body.update((key, value) for key, value in echo.items() if key not in RESERVED_KEYS)
    for key, value in (payload or {}).items():
        body.setdefault(key, value)
    return Envelope(status=status, body=body)


def failure_envelope(error: GatewayError) -> Envelope:
    """Build the failure envelope for an already-classified error."""
    response = error.to_response()
    return Envelope(status=response.status, body=response.to_dict())


def internal_error_envelope(
    exc: BaseException,
    include_detail: bool = False,
    message: str = "Internal server error",
    status: int = 500,
) -> Envelope:
    """Envelope for an unclassified fault; detail only when ``include_detail``."""
    if include_detail:
        response = ErrorResponse(
            status=status,
            message=str(exc) or message,
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )
    else:
        response = ErrorResponse(status=status, message=message)
    return Envelope(status=status, body=response.to_dict())


def error_envelope(status: int, message: str) -> Envelope:
    """Failure envelope for framework-level errors (unmatched route, bad method)."""
    if status < 400:
        status = 500
    return Envelope(status=status, body=ErrorResponse(status=status, message=message).to_dict())
