from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from modules.providers import gemini, openai_images
from modules.providers.base import ProviderConfig
from modules.storage.local import LocalStoreConfig


class Settings(BaseModel):
    env: Literal["dev", "test", "staging", "prod"] = Field(
        default="dev", description="Deployment environment label"
    )

    # Readiness checks: comma-separated list of checks to perform: output_dir
    ready_checks: str = Field(default="", description="Comma-separated readiness checks: output_dir")

    # Generated assets
    output_dir: Path = Field(default=Path("public"), description="Directory holding generated images")
    public_path: str = Field(default="/generated", description="URL prefix the output directory is served under")
    retention_hours: float = Field(default=24, ge=0, description="Retention window for auto cleanup after a save")
    tryon_persist: bool = False

    # Upstream providers; a missing key switches that provider to demo mode
    google_api_key: str | None = None
    gemini_base_url: str = gemini.DEFAULT_BASE_URL
    gemini_model: str = gemini.DEFAULT_MODEL
    openai_api_key: str | None = None
    openai_base_url: str = openai_images.DEFAULT_BASE_URL
    openai_model: str = openai_images.DEFAULT_MODEL
    upstream_timeout_s: float = Field(default=120.0, gt=0)

    log_level: str = "INFO"
    cors_origins: str = Field(default="", description="Comma-separated CORS origins; empty disables CORS")

    # Metrics
    metrics_enabled: bool = True

    def store_config(self) -> LocalStoreConfig:
        return LocalStoreConfig(output_dir=Path(self.output_dir), public_path=self.public_path)

    def gemini_config(self) -> ProviderConfig:
        return ProviderConfig(
            api_key=self.google_api_key or None,
            base_url=self.gemini_base_url,
            model=self.gemini_model,
            timeout_s=self.upstream_timeout_s,
        )

    def openai_config(self) -> ProviderConfig:
        return ProviderConfig(
            api_key=self.openai_api_key or None,
            base_url=self.openai_base_url,
            model=self.openai_model,
            timeout_s=self.upstream_timeout_s,
        )


def _env_truthy(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or "").lower() in {"1", "true", "yes", "on"}


def from_env() -> Settings:
    values: dict[str, object] = {
        "google_api_key": os.getenv("GOOGLE_AI_API_KEY") or os.getenv("GEMINI_API_KEY"),
        "openai_api_key": os.getenv("OPENAI_API_KEY"),
        "tryon_persist": _env_truthy("GS_TRYON_PERSIST"),
        "metrics_enabled": _env_truthy("GS_METRICS_ENABLED", "1"),
    }
    optional = {
        "env": "GS_ENV",
        "ready_checks": "GS_READY_CHECKS",
        "output_dir": "GS_OUTPUT_DIR",
        "public_path": "GS_PUBLIC_PATH",
        "retention_hours": "GS_RETENTION_HOURS",
        "gemini_base_url": "GS_GEMINI_BASE_URL",
        "gemini_model": "GS_GEMINI_MODEL",
        "openai_base_url": "GS_OPENAI_BASE_URL",
        "openai_model": "GS_OPENAI_MODEL",
        "upstream_timeout_s": "GS_UPSTREAM_TIMEOUT_S",
        "log_level": "GS_LOG_LEVEL",
        "cors_origins": "GS_CORS_ORIGINS",
    }
    for field_name, env_name in optional.items():
        val = os.getenv(env_name)
        if val:
            values[field_name] = val
    return Settings(**values)  # type: ignore[arg-type]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return from_env()
