from __future__ import annotations

from dataclasses import dataclass

from .base import UploadedImage


# Product photography: lighting setup -> purpose clause
PRODUCT_LIGHTING_PURPOSE: dict[str, str] = {
    "three-point softbox setup": "designed to create soft, diffused highlights and eliminate harsh shadows",
    "dramatic side lighting": "designed to create dramatic contrast and prominent texture",
    "ring light setup": "designed to create even, shadowless illumination",
    "natural window lighting": "designed to create soft, natural illumination",
    "overhead diffused lighting": "designed to create even top-down illumination",
    "single key light with reflector": "designed to create controlled directional lighting with fill",
}

PRODUCT_CAMERA_ANGLES = (
    "slightly elevated 45-degree shot",
    "straight-on eye level",
    "overhead flat lay",
    "low angle hero shot",
    "three-quarter angle",
    "profile side view",
)

PRODUCT_ASPECT_RATIOS = (
    "Square image",
    "Landscape image",
    "Portrait image",
    "Wide landscape image",
    "Standard photo",
)

# Fashion try-on: form key -> label used in the prompt
FASHION_LIGHTING_LABELS: dict[str, str] = {
    "three-point-softbox": "Three-point softbox setup",
    "natural-window": "Natural window lighting",
    "studio-professional": "Professional studio lighting",
    "outdoor-natural": "Outdoor natural lighting",
    "golden-hour": "Golden hour lighting",
    "ring-light": "Ring light setup",
    "dramatic-side": "Dramatic side lighting",
}


@dataclass(frozen=True)
class ProductImageRequest:
    product_description: str
    background_surface: str | None = None
    specific_feature: str | None = None
    main_detail: str | None = None
    lighting_setup: str | None = None
    camera_angle: str | None = None
    aspect_ratio: str | None = None


@dataclass(frozen=True)
class FashionTryOnRequest:
    product_image: UploadedImage
    person_image: UploadedImage
    description: str
    lighting: str
    model_type: str
    clothing_type: str

    @property
    def lighting_label(self) -> str:
        return FASHION_LIGHTING_LABELS.get(self.lighting, self.lighting)


def build_product_prompt(req: ProductImageRequest) -> str:
    purpose = PRODUCT_LIGHTING_PURPOSE.get(req.lighting_setup or "", "for optimal lighting")

    prompt = f"A high-resolution, studio-lit product photograph of {req.product_description}"
    if req.background_surface:
        prompt += f", presented on {req.background_surface}"
    prompt += f". The lighting is {req.lighting_setup or 'professional studio lighting'} {purpose}"
    if req.camera_angle:
        prompt += f". The camera angle is {req.camera_angle}"
        if req.specific_feature:
            prompt += f" to showcase {req.specific_feature}"
    prompt += ". Ultra-realistic, with sharp focus"
    if req.main_detail:
        prompt += f" on {req.main_detail}"
    prompt += f". {req.aspect_ratio or 'Square image'}"
    return prompt


def build_fashion_prompt(req: FashionTryOnRequest) -> str:
    return (
        "Create a new image by combining the elements from the provided images. "
        f"Take the {req.clothing_type} from the first image and place it with/on the {req.model_type} "
        f"from the second image. The final image should be a {req.description}. "
        f"Use {req.lighting_label} for professional photography quality."
    )
