from __future__ import annotations

import logging

from fastapi import APIRouter, Body, HTTPException, Request

from modules.retention import executor
from modules.retention import stats as retention_stats
from services.api.metrics import CLEANUP_DELETED, CLEANUP_FREED
from services.api.schemas.cleanup import (
    CleanupOut,
    CleanupRequest,
    CleanupResponse,
    FileStatOut,
    ForceDeleteRequest,
    StatsOut,
    StatsResponse,
)
from services.api.schemas.errors import ErrorResponse


router = APIRouter(prefix="", tags=["cleanup"])
logger = logging.getLogger(__name__)


def _kb(n: int) -> int:
    return round(n / 1024)


def _mb(n: int) -> float:
    return round(n / (1024 * 1024), 2)


def _cleanup_out(result: executor.CleanupResult, message: str | None = None) -> CleanupOut:
    return CleanupOut(
        deleted_files=list(result.deleted_files),
        total_deleted=result.total_deleted,
        total_size_freed=result.total_size,
        total_size_freed_kb=_kb(result.total_size),
        total_size_freed_mb=_mb(result.total_size),
        errors=list(result.errors),
        dry_run=result.dry_run,
        message=message,
    )


def _record(result: executor.CleanupResult) -> None:
    if result.dry_run:
        return
    CLEANUP_DELETED.inc(result.total_deleted)
    CLEANUP_FREED.inc(result.total_size)


@router.get("/cleanup", response_model=StatsResponse)
def get_stats(request: Request) -> StatsResponse:
    settings = request.app.state.settings
    s = retention_stats.stats(settings.output_dir)
    return StatsResponse(
        stats=StatsOut(
            total_files=s.total_files,
            total_size=s.total_size,
            total_size_kb=_kb(s.total_size),
            total_size_mb=_mb(s.total_size),
            files=[
                FileStatOut(name=f.name, size_kb=_kb(f.size_bytes), age_hours=f.age_hours, can_delete=f.can_delete)
                for f in s.files
            ],
            errors=list(s.errors),
        )
    )


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    response_model_exclude_none=True,
    responses={422: {"description": "maxAgeHours is not a non-negative number"}},
)
def run_cleanup(
    request: Request,
    req: CleanupRequest | None = Body(
        default=None,
        examples=[{"maxAgeHours": 24, "dryRun": True}],
    ),
) -> CleanupResponse:
    req = req or CleanupRequest()
    settings = request.app.state.settings
    logger.info("Starting cleanup: maxAge=%sh, dryRun=%s", req.max_age_hours, req.dry_run)
    result = executor.run(
        settings.output_dir,
        executor.RetentionConfig(max_age_hours=req.max_age_hours, dry_run=req.dry_run),
    )
    _record(result)
    return CleanupResponse(cleanup=_cleanup_out(result))


@router.delete(
    "/cleanup",
    response_model=CleanupResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
def force_cleanup(request: Request, req: ForceDeleteRequest | None = Body(default=None)) -> CleanupResponse:
    if req is None or req.confirm != executor.CONFIRM_TOKEN:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "invalid_input",
                "message": f'Missing confirmation. Send {{"confirm": "{executor.CONFIRM_TOKEN}"}} to proceed.',
            },
        )
    settings = request.app.state.settings
    logger.warning("Force cleanup: deleting all generated images in %s", settings.output_dir)
    # max_age_hours=0 is the force-delete switch of the retention policy
    result = executor.run(settings.output_dir, executor.RetentionConfig(max_age_hours=0, dry_run=False))
    _record(result)
    return CleanupResponse(cleanup=_cleanup_out(result, message="All generated images have been deleted"))
