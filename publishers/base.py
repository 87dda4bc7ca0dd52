"""Publisher interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from core import PublishResult


class ContentPublisher(ABC):
    """Uploads media and publishes a rendered document to one platform."""

    platform: str = "publisher"

    @abstractmethod
    async def upload_image(self, url: str) -> str:
        """Upload the image at ``url`` and return the platform asset id."""

    @abstractmethod
    async def publish(
        self,
        document: str,
        title: str,
        digest: str,
        cover_asset_id: Optional[str] = None,
    ) -> PublishResult:
        """Publish ``document``; raise ``PublishError`` on failure."""

    async def aclose(self) -> None:
        return None
