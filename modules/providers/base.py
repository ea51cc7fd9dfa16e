from __future__ import annotations

import abc
import base64
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from modules.storage import local as store
from .errors import GenerationError, InternalError, ValidationError, from_status

logger = logging.getLogger(__name__)

# Stock images returned in demo mode by the text-to-image adapters
DEMO_IMAGES: tuple[str, ...] = (
    "https://images.unsplash.com/photo-1560472354-b33ff0c44a43?w=1024&h=1024&fit=crop",
    "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=1024&h=1024&fit=crop",
    "https://images.unsplash.com/photo-1500375592092-40eb2168fd21?w=1024&h=1024&fit=crop",
    "https://images.unsplash.com/photo-1439066615861-d1af74d74000?w=1024&h=1024&fit=crop",
    "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=1024&h=1024&fit=crop",
)

DEMO_PROMPT = "Demo mode - API key not configured"


@dataclass(frozen=True)
class ProviderConfig:
    api_key: str | None
    base_url: str
    model: str
    timeout_s: float = 120.0


@dataclass(frozen=True)
class UploadedImage:
    data: bytes
    mime_type: str = "image/png"
    filename: str | None = None

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class UpstreamImage:
    """What an upstream returned: raw bytes or a URL it hosts."""

    data: bytes | None = None
    mime_type: str = "image/png"
    url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GenerationResult:
    url: str
    prompt: str
    demo: bool
    metadata: dict[str, Any] | None = None
    # Filename in the output directory when the image was persisted
    saved_asset: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"url": self.url, "prompt": self.prompt, "demo": self.demo}
        if self.metadata:
            out["metadata"] = self.metadata
        return out


def require_text(payload: Mapping[str, Any], key: str, message: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, field=key)
    return value.strip()


def optional_text(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string", field=key)
    return value.strip() or None


def ensure_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body is missing or malformed")
    return payload


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] or f"HTTP {resp.status_code}"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    if isinstance(err, str):
        return err
    return f"HTTP {resp.status_code}"


class ProviderAdapter(abc.ABC):
    """Normalizes one upstream image API into ``GenerationResult``.

    ``generate`` is the only entry point. The credential check comes first, so a
    request without a configured key gets a demo result even when its body is
    invalid. Everything after that either returns a real result or raises a
    ``GenerationError``.
    """

    name: str = ""
    provider_label: str = ""
    asset_prefix: str | None = None
    persist: bool = False

    def __init__(
        self,
        config: ProviderConfig,
        store_cfg: store.LocalStoreConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        persist: bool | None = None,
    ) -> None:
        self.config = config
        self.store_cfg = store_cfg
        self._transport = transport
        if persist is not None:
            self.persist = persist
        if self.persist and (store_cfg is None or not self.asset_prefix):
            raise ValueError(f"{type(self).__name__} needs a store config and asset prefix to persist")

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    def generate(self, payload: Any) -> GenerationResult:
        if not self.configured:
            logger.info("No %s API key found, using demo mode", self.provider_label)
            return self.demo_result(payload)

        request = self.validate(ensure_mapping(payload))
        prompt = self.resolve_prompt(request)
        logger.info("Sending %s request (model=%s)", self.name, self.config.model)
        try:
            image = self.call_upstream(request, prompt)
            return self.finalize(request, prompt, image)
        except GenerationError:
            raise
        except httpx.HTTPError as exc:
            raise InternalError(str(exc) or f"{self.provider_label} API request failed") from exc
        except Exception as exc:  # noqa: BLE001
            raise InternalError(str(exc) or "Internal server error") from exc

    @abc.abstractmethod
    def validate(self, payload: Mapping[str, Any]) -> Any:
        ...

    @abc.abstractmethod
    def resolve_prompt(self, request: Any) -> str:
        ...

    @abc.abstractmethod
    def call_upstream(self, request: Any, prompt: str) -> UpstreamImage:
        ...

    @abc.abstractmethod
    def demo_result(self, payload: Any) -> GenerationResult:
        """Placeholder result for a provider without credentials. Must not raise."""

    def metadata(self, request: Any) -> dict[str, Any] | None:
        return None

    def finalize(self, request: Any, prompt: str, image: UpstreamImage) -> GenerationResult:
        meta = {**(self.metadata(request) or {}), **image.extra} or None
        if image.url:
            return GenerationResult(url=image.url, prompt=prompt, demo=False, metadata=meta)
        if image.data is None:
            raise InternalError(f"{self.provider_label} API returned an empty image")
        if self.persist:
            assert self.store_cfg is not None and self.asset_prefix is not None
            try:
                filename = store.save_png(self.store_cfg, self.asset_prefix, image.data)
            except OSError as exc:
                raise InternalError(f"Failed to save generated image: {exc.strerror or exc}") from exc
            logger.info("Saved %s (%d bytes)", filename, len(image.data))
            return GenerationResult(
                url=store.public_url(self.store_cfg, filename),
                prompt=prompt,
                demo=False,
                metadata=meta,
                saved_asset=filename,
            )
        encoded = base64.b64encode(image.data).decode("ascii")
        return GenerationResult(url=f"data:{image.mime_type};base64,{encoded}", prompt=prompt, demo=False, metadata=meta)

    def _post_json(
        self,
        url: str,
        *,
        json: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        with httpx.Client(timeout=self.config.timeout_s, transport=self._transport) as client:
            resp = client.post(url, json=json, headers=headers)
        if resp.status_code >= 400:
            msg = _error_message(resp)
            logger.error("%s API error %s: %s", self.provider_label, resp.status_code, msg)
            raise from_status(resp.status_code, self.provider_label, msg)
        try:
            return resp.json()
        except ValueError as exc:
            raise InternalError(f"{self.provider_label} API returned a non-JSON response") from exc


def demo_stock_result(payload: Any) -> GenerationResult:
    prompt = payload.get("prompt") if isinstance(payload, Mapping) else None
    return GenerationResult(
        url=random.choice(DEMO_IMAGES),
        prompt=prompt.strip() if isinstance(prompt, str) else "",
        demo=True,
    )
