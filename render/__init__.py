"""Document rendering and cover image generation."""

from .base import DocumentRenderer
from .html import HtmlDigestRenderer
from .cover import DashScopeImageGenerator, ImageGenerator, ImageGeneratorKind, create_image_generator

__all__ = [
    "DocumentRenderer",
    "HtmlDigestRenderer",
    "ImageGenerator",
    "DashScopeImageGenerator",
    "ImageGeneratorKind",
    "create_image_generator",
]
