from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path

from modules.retention.patterns import PROVIDER_PREFIXES


@dataclass
class LocalStoreConfig:
    output_dir: Path
    public_path: str = "/generated"


def from_env() -> LocalStoreConfig:
    output_dir = os.getenv("GS_OUTPUT_DIR") or "public"
    public_path = os.getenv("GS_PUBLIC_PATH") or "/generated"
    return LocalStoreConfig(output_dir=Path(output_dir).expanduser().resolve(), public_path=public_path)


def _now_ms() -> int:
    return int(time.time() * 1000)


def save_png(cfg: LocalStoreConfig, prefix: str, data: bytes) -> str:
    """Write PNG bytes as ``<prefix>-<millis>.png`` and return the filename.

    The token is bumped until an unused name is found; ``open(..., "xb")`` makes
    the claim atomic so two concurrent saves never share a file.
    """
    if prefix not in PROVIDER_PREFIXES:
        raise ValueError(f"unknown asset prefix: {prefix}")
    cfg.output_dir.mkdir(parents=True, exist_ok=True)
    token = _now_ms()
    while True:
        name = f"{prefix}-{token}.png"
        try:
            with open(cfg.output_dir / name, "xb") as f:
                f.write(data)
            return name
        except FileExistsError:
            token += 1


def public_url(cfg: LocalStoreConfig, filename: str) -> str:
    base = cfg.public_path.rstrip("/")
    return f"{base}/{filename}"
