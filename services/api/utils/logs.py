from __future__ import annotations

import logging


def configure_logging(level: str = "INFO") -> None:
    # No-op when the host (e.g. uvicorn) already installed handlers on the root logger
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
