from __future__ import annotations

import logging
import math
import os
import time
from dataclasses import dataclass
from typing import Iterable

from .patterns import DEFAULT_PATTERNS
from .policy import SECONDS_PER_HOUR, is_expired
from .scanner import scan

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_HOURS = 24

# Required by the force-delete entry points (DELETE /v1/cleanup, CLI purge)
CONFIRM_TOKEN = "DELETE_ALL_IMAGES"


@dataclass(frozen=True)
class RetentionConfig:
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS
    dry_run: bool = False
    patterns: tuple[str, ...] = DEFAULT_PATTERNS

    def __post_init__(self) -> None:
        if math.isnan(self.max_age_hours) or self.max_age_hours < 0:
            raise ValueError("max_age_hours must be a non-negative number")
        # Accept any iterable of patterns but store a tuple
        object.__setattr__(self, "patterns", tuple(self.patterns))


@dataclass(frozen=True)
class CleanupResult:
    deleted_files: tuple[str, ...] = ()
    total_size: int = 0
    errors: tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def total_deleted(self) -> int:
        return len(self.deleted_files)


def run(
    directory: str | os.PathLike[str],
    config: RetentionConfig | None = None,
    now: float | None = None,
) -> CleanupResult:
    """Delete expired generated assets from ``directory``.

    Works on a fresh scan every call, so concurrent runs on the same directory
    are fine: whichever run loses the race records an error for that file and
    moves on. Filesystem problems are collected in ``errors``, never raised.
    """
    cfg = config or RetentionConfig()
    ts = time.time() if now is None else now

    snapshot = scan(directory, cfg.patterns)
    deleted: list[str] = []
    errors: list[str] = list(snapshot.errors)
    total_size = 0

    for asset in snapshot.assets:
        if not is_expired(asset, cfg.max_age_hours, ts):
            continue
        hours = round(asset.age_seconds(ts) / SECONDS_PER_HOUR)
        kb = round(asset.size / 1024)
        if not cfg.dry_run:
            try:
                asset.path.unlink()
            except FileNotFoundError:
                msg = f"Error processing file {asset.name}: already removed"
                logger.info(msg)
                errors.append(msg)
                continue
            except OSError as exc:
                msg = f"Error processing file {asset.name}: {exc.strerror or exc}"
                logger.error(msg)
                errors.append(msg)
                continue
        deleted.append(asset.name)
        total_size += asset.size
        logger.info("%s: %s (%sh old, %sKB)", "[DRY RUN] Would delete" if cfg.dry_run else "Deleted", asset.name, hours, kb)

    for err in snapshot.errors:
        logger.error(err)
    logger.info("Cleanup completed: %d files deleted, %dKB freed", len(deleted), round(total_size / 1024))

    return CleanupResult(
        deleted_files=tuple(deleted),
        total_size=total_size,
        errors=tuple(errors),
        dry_run=cfg.dry_run,
    )


def cleanup_in_background(
    directory: str | os.PathLike[str],
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    patterns: Iterable[str] = DEFAULT_PATTERNS,
) -> CleanupResult | None:
    """Fire-and-forget cleanup run after an asset is saved.

    The outcome is only logged; any failure is swallowed so it cannot reach the
    generation request that scheduled it.
    """
    try:
        result = run(directory, RetentionConfig(max_age_hours=max_age_hours, patterns=tuple(patterns)))
    except Exception:  # noqa: BLE001
        logger.exception("Auto cleanup error")
        return None
    if result.total_deleted or result.errors:
        logger.info(
            "Auto cleanup: %d deleted, %d bytes freed, %d errors",
            result.total_deleted,
            result.total_size,
            len(result.errors),
        )
    return result
