from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Mapping

from .base import GenerationResult, ProviderAdapter, UpstreamImage, demo_stock_result, optional_text, require_text
from .errors import InternalError, NoImageReturned, ValidationError

DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_MODEL = "dall-e-3"

SIZES = ("1024x1024", "1024x1792", "1792x1024")
QUALITIES = ("standard", "hd")
STYLES = ("vivid", "natural")


@dataclass(frozen=True)
class OpenAIImageRequest:
    prompt: str
    size: str = "1024x1024"
    quality: str = "standard"
    style: str = "vivid"


def _choice(payload: Mapping[str, Any], key: str, allowed: tuple[str, ...]) -> str:
    value = optional_text(payload, key)
    if value is None:
        return allowed[0]
    if value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(allowed)}", field=key)
    return value


class OpenAIImageAdapter(ProviderAdapter):
    """DALL·E text-to-image. OpenAI hosts the result, so its URL is passed through."""

    name = "openai-image"
    provider_label = "OpenAI"

    def validate(self, payload: Mapping[str, Any]) -> OpenAIImageRequest:
        return OpenAIImageRequest(
            prompt=require_text(payload, "prompt", "Prompt is required"),
            size=_choice(payload, "size", SIZES),
            quality=_choice(payload, "quality", QUALITIES),
            style=_choice(payload, "style", STYLES),
        )

    def resolve_prompt(self, request: OpenAIImageRequest) -> str:
        return request.prompt

    def call_upstream(self, request: OpenAIImageRequest, prompt: str) -> UpstreamImage:
        base = self.config.base_url.rstrip("/")
        body = self._post_json(
            f"{base}/v1/images/generations",
            json={
                "model": self.config.model,
                "prompt": prompt,
                "n": 1,
                "size": request.size,
                "quality": request.quality,
                "style": request.style,
            },
            headers={"Authorization": f"Bearer {self.config.api_key}"},
        )
        data = body.get("data") if isinstance(body, dict) else None
        first = data[0] if isinstance(data, list) and data and isinstance(data[0], dict) else None
        if first is None:
            raise NoImageReturned("Invalid response from OpenAI API")

        extra: dict[str, Any] = {}
        if first.get("revised_prompt"):
            extra["revisedPrompt"] = first["revised_prompt"]
        if first.get("url"):
            return UpstreamImage(url=str(first["url"]), extra=extra)
        if first.get("b64_json"):
            try:
                raw = base64.b64decode(first["b64_json"], validate=True)
            except (binascii.Error, ValueError) as exc:
                raise InternalError("OpenAI API returned malformed image data") from exc
            return UpstreamImage(data=raw, extra=extra)
        raise NoImageReturned("Invalid response from OpenAI API")

    def metadata(self, request: OpenAIImageRequest) -> dict[str, Any]:
        return {"size": request.size, "quality": request.quality, "style": request.style}

    def demo_result(self, payload: Any) -> GenerationResult:
        return demo_stock_result(payload)
