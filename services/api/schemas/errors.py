from __future__ import annotations

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Body FastAPI renders for an ``HTTPException`` raised with a dict detail."""

    detail: ErrorDetail
