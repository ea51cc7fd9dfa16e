from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class GenerationResponse(BaseModel):
    url: str
    prompt: str
    demo: bool
    metadata: dict[str, Any] | None = None


class GenerationErrorResponse(BaseModel):
    error: str
    code: str
    status: int
    field: str | None = None
