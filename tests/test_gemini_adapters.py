import base64
import json
from pathlib import Path

import httpx
import pytest

from modules.providers.base import DEMO_IMAGES, DEMO_PROMPT, ProviderConfig, UploadedImage
from modules.providers.errors import (
    INTERNAL_ERROR,
    INVALID_API_KEY,
    INVALID_REQUEST,
    RATE_LIMIT_EXCEEDED,
    GenerationError,
    NoImageReturned,
    ValidationError,
)
from modules.providers.gemini import (
    GeminiFashionAdapter,
    GeminiImageAdapter,
    GeminiProductAdapter,
    extract_inline_image,
)
from modules.storage.local import LocalStoreConfig

PNG = b"\x89PNG\r\n\x1a\nfake"
KEYED = ProviderConfig(api_key="k-123", base_url="https://gemini.test", model="gemini-test")
NO_KEY = ProviderConfig(api_key=None, base_url="https://gemini.test", model="gemini-test")


def _image_body(data: bytes = PNG) -> dict:
    return {
        "candidates": [
            {"content": {"parts": [{"text": "here you go"}, {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(data).decode()}}]}}
        ]
    }


class Recorder:
    def __init__(self, status: int = 200, body: object | None = None) -> None:
        self.status = status
        self.body = _image_body() if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture()
def store_cfg(tmp_path: Path) -> LocalStoreConfig:
    return LocalStoreConfig(output_dir=tmp_path)


def test_image_success_saves_asset(store_cfg: LocalStoreConfig) -> None:
    rec = Recorder()
    adapter = GeminiImageAdapter(KEYED, store_cfg, transport=rec.transport)
    res = adapter.generate({"prompt": "  a red fox  "})

    assert res.demo is False
    assert res.prompt == "a red fox"
    assert res.saved_asset and res.saved_asset.startswith("gemini-image-")
    assert res.url == f"/generated/{res.saved_asset}"
    assert (store_cfg.output_dir / res.saved_asset).read_bytes() == PNG

    (req,) = rec.requests
    assert str(req.url) == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert req.headers["x-goog-api-key"] == "k-123"
    assert json.loads(req.content) == {"contents": [{"parts": [{"text": "a red fox"}]}]}


@pytest.mark.parametrize(
    "status,code",
    [(400, INVALID_REQUEST), (401, INVALID_API_KEY), (429, RATE_LIMIT_EXCEEDED), (500, INTERNAL_ERROR)],
)
def test_upstream_status_mapping(store_cfg: LocalStoreConfig, status: int, code: str) -> None:
    rec = Recorder(status=status, body={"error": {"message": "nope"}})
    adapter = GeminiImageAdapter(KEYED, store_cfg, transport=rec.transport)
    with pytest.raises(GenerationError) as ei:
        adapter.generate({"prompt": "x"})
    assert ei.value.code == code
    assert ei.value.status == status
    assert list(store_cfg.output_dir.iterdir()) == []


def test_no_image_in_response(store_cfg: LocalStoreConfig) -> None:
    rec = Recorder(body={"candidates": [{"content": {"parts": [{"text": "I can't draw that"}]}}]})
    adapter = GeminiImageAdapter(KEYED, store_cfg, transport=rec.transport)
    with pytest.raises(NoImageReturned) as ei:
        adapter.generate({"prompt": "x"})
    assert ei.value.code == INTERNAL_ERROR
    assert ei.value.status == 500
    assert list(store_cfg.output_dir.iterdir()) == []


def test_blocked_prompt_reason_in_message() -> None:
    with pytest.raises(NoImageReturned, match="blocked: SAFETY"):
        extract_inline_image({"promptFeedback": {"blockReason": "SAFETY"}})


def test_snake_case_inline_data_accepted() -> None:
    img = extract_inline_image(
        {"candidates": [{"content": {"parts": [{"inline_data": {"mime_type": "image/jpeg", "data": base64.b64encode(b"j").decode()}}]}}]}
    )
    assert img.data == b"j"
    assert img.mime_type == "image/jpeg"


def test_transport_failure_is_internal(store_cfg: LocalStoreConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    adapter = GeminiImageAdapter(KEYED, store_cfg, transport=httpx.MockTransport(handler))
    with pytest.raises(GenerationError) as ei:
        adapter.generate({"prompt": "x"})
    assert ei.value.code == INTERNAL_ERROR


def test_demo_mode_never_calls_upstream(store_cfg: LocalStoreConfig) -> None:
    rec = Recorder()
    adapter = GeminiImageAdapter(NO_KEY, store_cfg, transport=rec.transport)
    res = adapter.generate({"prompt": "sunset"})
    assert res.demo is True
    assert res.url in DEMO_IMAGES
    assert res.prompt == "sunset"
    # invalid bodies still get a demo answer
    assert adapter.generate(None).demo is True
    assert adapter.generate({}).prompt == ""
    assert rec.requests == []
    assert list(store_cfg.output_dir.iterdir()) == []


@pytest.mark.parametrize("payload", [{}, {"prompt": ""}, {"prompt": "   "}, {"prompt": 7}, None, ["prompt"]])
def test_validation_happens_before_network(store_cfg: LocalStoreConfig, payload: object) -> None:
    rec = Recorder()
    adapter = GeminiImageAdapter(KEYED, store_cfg, transport=rec.transport)
    with pytest.raises(ValidationError) as ei:
        adapter.generate(payload)
    assert ei.value.code == INVALID_REQUEST
    assert ei.value.status == 400
    assert rec.requests == []


def test_product_prompt_sent_upstream(store_cfg: LocalStoreConfig) -> None:
    rec = Recorder()
    adapter = GeminiProductAdapter(KEYED, store_cfg, transport=rec.transport)
    res = adapter.generate({"productDescription": "a leather bag", "backgroundSurface": "oak table"})
    sent = json.loads(rec.requests[0].content)["contents"][0]["parts"][0]["text"]
    assert sent == res.prompt
    assert sent.startswith("A high-resolution, studio-lit product photograph of a leather bag, presented on oak table")
    assert res.saved_asset and res.saved_asset.startswith("product-image-")


def test_product_requires_description(store_cfg: LocalStoreConfig) -> None:
    adapter = GeminiProductAdapter(KEYED, store_cfg, transport=Recorder().transport)
    with pytest.raises(ValidationError, match="Product description is required") as ei:
        adapter.generate({"backgroundSurface": "oak"})
    assert ei.value.field == "productDescription"


def test_product_demo_shows_built_prompt(store_cfg: LocalStoreConfig) -> None:
    adapter = GeminiProductAdapter(NO_KEY, store_cfg)
    res = adapter.generate({"productDescription": "a mug"})
    assert res.demo is True
    assert res.url == "/placeholder.svg"
    assert res.prompt.startswith("A high-resolution, studio-lit product photograph of a mug")
    assert adapter.generate({}).prompt == DEMO_PROMPT
    assert adapter.generate("not an object").prompt == DEMO_PROMPT


def _fashion_payload(**overrides: object) -> dict:
    payload = {
        "productImage": UploadedImage(data=b"garment", mime_type="image/jpeg"),
        "personImage": UploadedImage(data=b"person", mime_type="image/png"),
        "description": "smart casual outfit",
        "lighting": "golden-hour",
        "modelType": "male model",
        "clothingType": "blazer",
    }
    payload.update(overrides)
    return payload


def test_fashion_inline_result_and_part_order(store_cfg: LocalStoreConfig) -> None:
    rec = Recorder()
    adapter = GeminiFashionAdapter(KEYED, store_cfg, transport=rec.transport)
    res = adapter.generate(_fashion_payload())

    assert res.url == "data:image/png;base64," + base64.b64encode(PNG).decode()
    assert res.saved_asset is None
    assert res.metadata == {
        "lighting": "Golden hour lighting",
        "modelType": "male model",
        "clothingType": "blazer",
        "description": "smart casual outfit",
    }
    parts = json.loads(rec.requests[0].content)["contents"][0]["parts"]
    assert parts[0]["inlineData"] == {"mimeType": "image/jpeg", "data": base64.b64encode(b"garment").decode()}
    assert parts[1]["inlineData"]["data"] == base64.b64encode(b"person").decode()
    assert parts[2]["text"] == res.prompt
    assert list(store_cfg.output_dir.iterdir()) == []


def test_fashion_persist_variant(store_cfg: LocalStoreConfig) -> None:
    adapter = GeminiFashionAdapter(KEYED, store_cfg, transport=Recorder().transport, persist=True)
    res = adapter.generate(_fashion_payload())
    assert res.saved_asset and res.saved_asset.startswith("fashion-tryOn-")
    assert res.url.startswith("/generated/fashion-tryOn-")


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"productImage": None}, "productImage"),
        ({"personImage": UploadedImage(data=b"")}, "personImage"),
        ({"description": " "}, "description"),
        ({"lighting": None}, "lighting"),
        ({"clothingType": ""}, "clothingType"),
    ],
)
def test_fashion_validation(store_cfg: LocalStoreConfig, overrides: dict, field: str) -> None:
    rec = Recorder()
    adapter = GeminiFashionAdapter(KEYED, store_cfg, transport=rec.transport)
    with pytest.raises(ValidationError) as ei:
        adapter.generate(_fashion_payload(**overrides))
    assert ei.value.field == field
    assert rec.requests == []


def test_fashion_upload_limit(store_cfg: LocalStoreConfig) -> None:
    adapter = GeminiFashionAdapter(KEYED, store_cfg, transport=Recorder().transport)
    adapter.max_upload_bytes = 4
    with pytest.raises(ValidationError, match="upload limit"):
        adapter.generate(_fashion_payload())


def test_fashion_demo(store_cfg: LocalStoreConfig) -> None:
    res = GeminiFashionAdapter(NO_KEY, store_cfg).generate({})
    assert (res.url, res.prompt, res.demo) == ("/demo-fashion.jpg", DEMO_PROMPT, True)


def test_save_failure_is_internal_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    adapter = GeminiImageAdapter(KEYED, LocalStoreConfig(output_dir=blocker), transport=Recorder().transport)
    with pytest.raises(GenerationError, match="Failed to save generated image") as ei:
        adapter.generate({"prompt": "x"})
    assert ei.value.code == INTERNAL_ERROR


def test_persist_needs_store() -> None:
    with pytest.raises(ValueError):
        GeminiImageAdapter(KEYED, None)
