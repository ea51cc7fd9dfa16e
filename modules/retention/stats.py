from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Iterable

from .executor import DEFAULT_MAX_AGE_HOURS
from .patterns import DEFAULT_PATTERNS
from .policy import SECONDS_PER_HOUR
from .scanner import scan


@dataclass(frozen=True)
class AssetStat:
    name: str
    size_bytes: int
    age_seconds: float
    age_hours: float
    # Informational only; stats never deletes
    can_delete: bool


@dataclass(frozen=True)
class AssetStats:
    files: tuple[AssetStat, ...] = ()
    total_size: int = 0
    errors: tuple[str, ...] = ()

    @property
    def total_files(self) -> int:
        return len(self.files)


def stats(
    directory: str | os.PathLike[str],
    patterns: Iterable[str] = DEFAULT_PATTERNS,
    now: float | None = None,
) -> AssetStats:
    """Inventory of generated assets, oldest first."""
    ts = time.time() if now is None else now
    snapshot = scan(directory, patterns)

    files: list[AssetStat] = []
    for a in snapshot.assets:
        age = a.age_seconds(ts)
        age_hours = round(age / SECONDS_PER_HOUR, 2)
        files.append(
            AssetStat(
                name=a.name,
                size_bytes=a.size,
                age_seconds=age,
                age_hours=age_hours,
                can_delete=age_hours >= DEFAULT_MAX_AGE_HOURS,
            )
        )
    files.sort(key=lambda f: (-f.age_seconds, f.name))

    return AssetStats(
        files=tuple(files),
        total_size=sum(f.size_bytes for f in files),
        errors=snapshot.errors,
    )
