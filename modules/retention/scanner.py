from __future__ import annotations

import os
import stat as _stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .patterns import DEFAULT_PATTERNS, matches_any


@dataclass(frozen=True)
class Asset:
    name: str
    path: Path
    size: int
    mtime: float

    def age_seconds(self, now: float) -> float:
        # Clock skew can put mtime in the future; age never goes negative.
        return max(0.0, now - self.mtime)


@dataclass(frozen=True)
class ScanResult:
    assets: tuple[Asset, ...] = ()
    errors: tuple[str, ...] = field(default_factory=tuple)


def scan(directory: str | os.PathLike[str], patterns: Iterable[str] = DEFAULT_PATTERNS) -> ScanResult:
    """List generated assets directly inside ``directory``.

    Only regular files whose name matches one of ``patterns`` are returned. A
    failure to stat one entry is recorded and that entry skipped; a missing or
    unreadable directory gives no assets and a single error.
    """
    root = Path(directory)
    pats = tuple(patterns)
    assets: list[Asset] = []
    errors: list[str] = []

    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as exc:
        return ScanResult(assets=(), errors=(f"Error during scan of {root}: {exc.strerror or exc}",))

    for entry in entries:
        if not matches_any(entry.name, pats):
            continue
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as exc:
            errors.append(f"Error processing file {entry.name}: {exc.strerror or exc}")
            continue
        if not _stat.S_ISREG(st.st_mode):
            continue
        assets.append(Asset(name=entry.name, path=root / entry.name, size=int(st.st_size), mtime=float(st.st_mtime)))

    return ScanResult(assets=tuple(assets), errors=tuple(errors))
