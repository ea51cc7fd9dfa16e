from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from modules.providers.base import UploadedImage
from modules.providers.errors import GenerationError
from modules.providers.gemini import MAX_UPLOAD_BYTES
from modules.providers.registry import get_adapter
from modules.retention import executor
from services.api.metrics import CLEANUP_DELETED, CLEANUP_FREED, GENERATIONS
from services.api.schemas.generation import GenerationErrorResponse, GenerationResponse


router = APIRouter(prefix="", tags=["generate"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": GenerationErrorResponse},
    401: {"model": GenerationErrorResponse},
    429: {"model": GenerationErrorResponse},
    500: {"model": GenerationErrorResponse},
}


def _auto_cleanup(directory: Path, max_age_hours: float) -> None:
    result = executor.cleanup_in_background(directory, max_age_hours=max_age_hours)
    if result is not None:
        CLEANUP_DELETED.inc(result.total_deleted)
        CLEANUP_FREED.inc(result.total_size)


async def _json_payload(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        # Left to the adapter: demo mode still answers, validation rejects it otherwise
        return None


async def _form_payload(request: Request) -> Any:
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException):
        # Starlette reports a malformed body as a 400 inside an app; the adapter
        # decides between a demo answer and INVALID_REQUEST
        return None
    payload: dict[str, Any] = {}
    try:
        for key, value in form.multi_items():
            if key in payload:
                continue
            if isinstance(value, UploadFile):
                # One byte past the limit is enough for the adapter to reject it
                data = await value.read(MAX_UPLOAD_BYTES + 1)
                payload[key] = UploadedImage(data=data, mime_type=value.content_type or "image/png", filename=value.filename)
            else:
                payload[key] = value
    finally:
        await form.close()
    return payload


async def _generate(request: Request, background_tasks: BackgroundTasks, name: str, payload: Any) -> GenerationResponse:
    adapter = get_adapter(request.app.state.adapters, name)
    try:
        result = await run_in_threadpool(adapter.generate, payload)
    except GenerationError as exc:
        GENERATIONS.labels(provider=name, outcome=exc.code).inc()
        logger.error("%s generation failed (%s, %s): %s", name, exc.code, exc.status, exc.message)
        raise
    GENERATIONS.labels(provider=name, outcome="demo" if result.demo else "ok").inc()

    if result.saved_asset:
        settings = request.app.state.settings
        # Not awaited by this request; the outcome is only logged
        background_tasks.add_task(_auto_cleanup, settings.output_dir, settings.retention_hours)
    return GenerationResponse(**result.to_dict())


@router.post(
    "/generate-image",
    response_model=GenerationResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def generate_image(request: Request, background_tasks: BackgroundTasks) -> GenerationResponse:
    return await _generate(request, background_tasks, "gemini-image", await _json_payload(request))


@router.post(
    "/generate-product-image",
    response_model=GenerationResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def generate_product_image(request: Request, background_tasks: BackgroundTasks) -> GenerationResponse:
    return await _generate(request, background_tasks, "product-image", await _json_payload(request))


@router.post(
    "/fashion-try-on",
    response_model=GenerationResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def fashion_try_on(request: Request, background_tasks: BackgroundTasks) -> GenerationResponse:
    return await _generate(request, background_tasks, "fashion-tryOn", await _form_payload(request))


@router.post(
    "/openai/generate-image",
    response_model=GenerationResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def openai_generate_image(request: Request, background_tasks: BackgroundTasks) -> GenerationResponse:
    return await _generate(request, background_tasks, "openai-image", await _json_payload(request))
