"""Image generator kind to constructor registry."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

import httpx

from config.resolver import PrioritizedConfigResolver
from utils.exceptions import UnsupportedProviderError

from .base import ImageGenerator
from .dashscope import DashScopeImageGenerator


class ImageGeneratorKind(str, Enum):
    DASHSCOPE = "DASHSCOPE"


IMAGE_GENERATOR_REGISTRY: Dict[ImageGeneratorKind, Callable[..., ImageGenerator]] = {
    ImageGeneratorKind.DASHSCOPE: DashScopeImageGenerator,
}


def create_image_generator(
    kind: str,
    resolver: PrioritizedConfigResolver,
    client: Optional[httpx.AsyncClient] = None,
) -> ImageGenerator:
    try:
        generator_kind = ImageGeneratorKind(str(getattr(kind, "value", kind)).strip().upper())
    except ValueError:
        raise UnsupportedProviderError(str(kind), registry="image generator") from None
    return IMAGE_GENERATOR_REGISTRY[generator_kind](resolver, client=client)
