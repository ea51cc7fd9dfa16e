from __future__ import annotations

import base64
import binascii
from typing import Any, Mapping

from .base import (
    DEMO_PROMPT,
    GenerationResult,
    ProviderAdapter,
    UploadedImage,
    UpstreamImage,
    demo_stock_result,
    optional_text,
    require_text,
)
from .errors import InternalError, NoImageReturned, ValidationError
from .prompts import (
    FashionTryOnRequest,
    ProductImageRequest,
    build_fashion_prompt,
    build_product_prompt,
)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-2.5-flash-image"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def extract_inline_image(body: Any) -> UpstreamImage:
    """First inline image of the first candidate in a generateContent response."""
    if not isinstance(body, dict):
        raise InternalError("Unexpected response shape from Gemini API")
    candidates = body.get("candidates") or []
    if not candidates:
        reason = (body.get("promptFeedback") or {}).get("blockReason")
        suffix = f" (blocked: {reason})" if reason else ""
        raise NoImageReturned(f"No image data received from Gemini API{suffix}")
    first = candidates[0]
    if not isinstance(first, dict):
        raise InternalError("Unexpected response shape from Gemini API")
    parts = (first.get("content") or {}).get("parts") or []
    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not inline or not inline.get("data"):
            continue
        try:
            data = base64.b64decode(inline["data"], validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InternalError("Gemini API returned malformed image data") from exc
        mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
        return UpstreamImage(data=data, mime_type=mime)
    raise NoImageReturned("No image data received from Gemini API")


class _GeminiAdapter(ProviderAdapter):
    provider_label = "Gemini"

    def _generate_content(self, parts: list[dict[str, Any]]) -> UpstreamImage:
        base = self.config.base_url.rstrip("/")
        url = f"{base}/v1beta/models/{self.config.model}:generateContent"
        body = self._post_json(
            url,
            json={"contents": [{"parts": parts}]},
            headers={"x-goog-api-key": str(self.config.api_key)},
        )
        return extract_inline_image(body)


class GeminiImageAdapter(_GeminiAdapter):
    """Free-form text prompt, saved as ``gemini-image-<t>.png``."""

    name = "gemini-image"
    asset_prefix = "gemini-image"
    persist = True

    def validate(self, payload: Mapping[str, Any]) -> str:
        return require_text(payload, "prompt", "Prompt is required")

    def resolve_prompt(self, request: str) -> str:
        return request

    def call_upstream(self, request: str, prompt: str) -> UpstreamImage:
        return self._generate_content([{"text": prompt}])

    def demo_result(self, payload: Any) -> GenerationResult:
        return demo_stock_result(payload)


class GeminiProductAdapter(_GeminiAdapter):
    """Templated product photograph, saved as ``product-image-<t>.png``."""

    name = "product-image"
    asset_prefix = "product-image"
    persist = True

    def validate(self, payload: Mapping[str, Any]) -> ProductImageRequest:
        return ProductImageRequest(
            product_description=require_text(payload, "productDescription", "Product description is required"),
            background_surface=optional_text(payload, "backgroundSurface"),
            specific_feature=optional_text(payload, "specificFeature"),
            main_detail=optional_text(payload, "mainDetail"),
            lighting_setup=optional_text(payload, "lightingSetup"),
            camera_angle=optional_text(payload, "cameraAngle"),
            aspect_ratio=optional_text(payload, "aspectRatio"),
        )

    def resolve_prompt(self, request: ProductImageRequest) -> str:
        return build_product_prompt(request)

    def call_upstream(self, request: ProductImageRequest, prompt: str) -> UpstreamImage:
        return self._generate_content([{"text": prompt}])

    def demo_result(self, payload: Any) -> GenerationResult:
        # Show the caller the prompt they would have sent when the body allows it
        try:
            prompt = build_product_prompt(self.validate(payload))
        except (ValidationError, AttributeError):
            prompt = DEMO_PROMPT
        return GenerationResult(url="/placeholder.svg", prompt=prompt, demo=True)


def _require_image(payload: Mapping[str, Any], key: str, max_bytes: int) -> UploadedImage:
    img = payload.get(key)
    if not isinstance(img, UploadedImage) or not img.data:
        raise ValidationError("Both product and person images are required", field=key)
    if len(img.data) > max_bytes:
        raise ValidationError(f"{key} exceeds the {max_bytes // (1024 * 1024)}MB upload limit", field=key)
    return img


class GeminiFashionAdapter(_GeminiAdapter):
    """Virtual try-on from a garment photo and a person photo.

    Returned inline as a data URI unless persistence is switched on, in which
    case it is saved as ``fashion-tryOn-<t>.png``.
    """

    name = "fashion-tryOn"
    asset_prefix = "fashion-tryOn"
    persist = False
    max_upload_bytes = MAX_UPLOAD_BYTES

    def validate(self, payload: Mapping[str, Any]) -> FashionTryOnRequest:
        product = _require_image(payload, "productImage", self.max_upload_bytes)
        person = _require_image(payload, "personImage", self.max_upload_bytes)
        description = require_text(payload, "description", "Description is required")
        enum_msg = "Lighting, model type, and clothing type are required"
        return FashionTryOnRequest(
            product_image=product,
            person_image=person,
            description=description,
            lighting=require_text(payload, "lighting", enum_msg),
            model_type=require_text(payload, "modelType", enum_msg),
            clothing_type=require_text(payload, "clothingType", enum_msg),
        )

    def resolve_prompt(self, request: FashionTryOnRequest) -> str:
        return build_fashion_prompt(request)

    def call_upstream(self, request: FashionTryOnRequest, prompt: str) -> UpstreamImage:
        parts = [
            {"inlineData": {"mimeType": request.product_image.mime_type, "data": request.product_image.b64()}},
            {"inlineData": {"mimeType": request.person_image.mime_type, "data": request.person_image.b64()}},
            {"text": prompt},
        ]
        return self._generate_content(parts)

    def metadata(self, request: FashionTryOnRequest) -> dict[str, Any]:
        return {
            "lighting": request.lighting_label,
            "modelType": request.model_type,
            "clothingType": request.clothing_type,
            "description": request.description,
        }

    def demo_result(self, payload: Any) -> GenerationResult:
        return GenerationResult(url="/demo-fashion.jpg", prompt=DEMO_PROMPT, demo=True)
