"""Cover image generation."""

from .base import ImageGenerator
from .dashscope import DashScopeImageGenerator
from .factory import IMAGE_GENERATOR_REGISTRY, ImageGeneratorKind, create_image_generator

__all__ = [
    "ImageGenerator",
    "DashScopeImageGenerator",
    "IMAGE_GENERATOR_REGISTRY",
    "ImageGeneratorKind",
    "create_image_generator",
]
