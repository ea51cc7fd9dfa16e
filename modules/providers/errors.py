"""Error taxonomy shared by every generation adapter.

Four codes only: INVALID_REQUEST, INVALID_API_KEY, RATE_LIMIT_EXCEEDED and
INTERNAL_ERROR. The HTTP layer renders any ``GenerationError`` as
``{"error": ..., "code": ..., "status": ...}``.
"""
from __future__ import annotations

from typing import Any

INVALID_REQUEST = "INVALID_REQUEST"
INVALID_API_KEY = "INVALID_API_KEY"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
INTERNAL_ERROR = "INTERNAL_ERROR"

ERROR_CODES = (INVALID_REQUEST, INVALID_API_KEY, RATE_LIMIT_EXCEEDED, INTERNAL_ERROR)


class GenerationError(Exception):
    code: str = INTERNAL_ERROR
    status: int = 500

    def __init__(self, message: str, *, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "status": self.status}


class ValidationError(GenerationError):
    """Caller input is missing or malformed; raised before any upstream call."""

    code = INVALID_REQUEST
    status = 400

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        out = super().to_payload()
        if self.field:
            out["field"] = self.field
        return out


class UpstreamRejected(GenerationError):
    pass


class NoImageReturned(GenerationError):
    """The upstream call succeeded but carried no usable image."""


class InternalError(GenerationError):
    pass


def from_status(status_code: int, provider: str, message: str | None = None) -> GenerationError:
    if status_code == 400:
        return UpstreamRejected(f"Bad Request - Invalid request to {provider} API", code=INVALID_REQUEST, status=400)
    if status_code == 401:
        return UpstreamRejected(f"Unauthorized - Invalid {provider} API key", code=INVALID_API_KEY, status=401)
    if status_code == 429:
        return UpstreamRejected("Rate Limit Exceeded - Please try again later", code=RATE_LIMIT_EXCEEDED, status=429)
    return InternalError(message or f"{provider} API request failed with status {status_code}")
