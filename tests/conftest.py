import base64
from pathlib import Path
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from services.api.app import create_app
from services.api.config import Settings

PNG = b"\x89PNG\r\n\x1a\nfake"


def gemini_image_response(request: httpx.Request) -> httpx.Response:
    part = {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(PNG).decode()}}
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [part]}}]})


@pytest.fixture()
def make_client(tmp_path: Path) -> Callable[..., TestClient]:
    """Build a TestClient over a fresh app writing into ``tmp_path``."""

    def _make(handler=gemini_image_response, **overrides) -> TestClient:
        values = {"env": "test", "output_dir": tmp_path}
        values.update(overrides)
        app = create_app(Settings(**values), transport=httpx.MockTransport(handler))
        return TestClient(app)

    return _make
