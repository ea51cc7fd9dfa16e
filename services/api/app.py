from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from modules.providers.errors import GenerationError
from modules.providers.registry import build_adapters
from .config import Settings, get_settings
from .metrics import HEALTH_HITS, READY_GAUGE, REGISTRY
from .routes import router as v1_router
from .utils.logs import configure_logging


def _check_output_dir(path: Path) -> None:
    if not path.is_dir():
        raise RuntimeError(f"output directory does not exist: {path}")
    if not os.access(path, os.W_OK | os.X_OK):
        raise RuntimeError(f"output directory is not writable: {path}")


def create_app(settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="genstudio API", version="0.1.0", docs_url=None, redoc_url=None)
    store_cfg = settings.store_config()
    app.state.settings = settings
    app.state.adapters = build_adapters(
        gemini=settings.gemini_config(),
        openai=settings.openai_config(),
        store_cfg=store_cfg,
        transport=transport,
        tryon_persist=settings.tryon_persist,
    )

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if origins:
        app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(GenerationError)
    async def generation_error(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=exc.status, content=exc.to_payload())

    @app.get("/healthz")
    def healthz() -> dict[str, Any]:
        HEALTH_HITS.inc()
        adapters = app.state.adapters
        return {
            "status": "ok",
            "ts": int(time.time()),
            "providers": {
                "gemini": adapters["gemini-image"].configured,
                "openai": adapters["openai-image"].configured,
            },
        }

    @app.get("/readyz")
    def readyz() -> Any:
        checks = {c.strip() for c in settings.ready_checks.split(",") if c.strip()}
        try:
            if "output_dir" in checks:
                _check_output_dir(store_cfg.output_dir)
            READY_GAUGE.set(1)
            return {"status": "ready"}
        except Exception as exc:  # noqa: BLE001
            READY_GAUGE.set(0)
            return Response(content=f"not ready: {exc}", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    if settings.metrics_enabled:

        @app.get("/metrics")
        def metrics() -> Response:
            output = generate_latest(REGISTRY)
            return Response(output, media_type=CONTENT_TYPE_LATEST)

    app.include_router(v1_router)

    # Saved assets are downloadable from the URL the generation routes return
    app.mount(settings.public_path, StaticFiles(directory=store_cfg.output_dir, check_dir=False), name="generated")

    return app


app = create_app()
