from __future__ import annotations

from typing import Dict

import httpx

from modules.storage.local import LocalStoreConfig
from .base import ProviderAdapter, ProviderConfig
from .gemini import GeminiFashionAdapter, GeminiImageAdapter, GeminiProductAdapter
from .openai_images import OpenAIImageAdapter


def build_adapters(
    *,
    gemini: ProviderConfig,
    openai: ProviderConfig,
    store_cfg: LocalStoreConfig,
    transport: httpx.BaseTransport | None = None,
    tryon_persist: bool = False,
) -> Dict[str, ProviderAdapter]:
    adapters: list[ProviderAdapter] = [
        GeminiImageAdapter(gemini, store_cfg, transport=transport),
        GeminiProductAdapter(gemini, store_cfg, transport=transport),
        GeminiFashionAdapter(gemini, store_cfg, transport=transport, persist=tryon_persist),
        OpenAIImageAdapter(openai, store_cfg, transport=transport),
    ]
    return {a.name: a for a in adapters}


def get_adapter(adapters: Dict[str, ProviderAdapter], name: str) -> ProviderAdapter:
    key = name.strip()
    if key not in adapters:
        raise ValueError(f"unknown provider adapter: {name}")
    return adapters[key]
