"""Bark push notifications (https://github.com/Finb/Bark)."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from utils.http import describe_http_error, open_client

from .base import Notifier, NotifyLevel


logger = logging.getLogger(__name__)

# Bark interruption levels
_BARK_LEVELS = {
    NotifyLevel.INFO: "passive",
    NotifyLevel.SUCCESS: "active",
    NotifyLevel.WARNING: "active",
    NotifyLevel.ERROR: "timeSensitive",
}


class BarkNotifier(Notifier):
    name = "bark"

    def __init__(
        self,
        key: str,
        url: str = "https://api.day.app",
        group: str = "digest",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.key = key
        self.url = url.rstrip("/")
        self.group = group
        self._client = client
        self.timeout = timeout

    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        payload = {
            "title": title,
            "body": body or title,
            "group": self.group,
            "level": _BARK_LEVELS[level],
        }
        try:
            async with open_client(self._client, timeout=self.timeout) as client:
                response = await client.post(f"{self.url}/{self.key}", json=payload)
        except httpx.RequestError as exc:
            logger.error("bark push failed: %s", exc)
            return False
        if response.status_code >= 400:
            logger.error("bark push %s", describe_http_error(response))
            return False
        return True
