"""Publishing targets."""

from .base import ContentPublisher
from .weixin import WeixinPublisher

__all__ = [
    "ContentPublisher",
    "WeixinPublisher",
]
