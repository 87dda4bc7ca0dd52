"""Notifier interface and fan-out."""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from enum import Enum
import logging
from typing import Iterable, List


logger = logging.getLogger(__name__)


class NotifyLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(ABC):
    """Delivers operator notifications; returns whether delivery succeeded."""

    name: str = "notifier"

    @abstractmethod
    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        """Deliver one notification. Implementations report failure as ``False``."""

    async def info(self, title: str, body: str = "") -> bool:
        return await self.notify(NotifyLevel.INFO, title, body)

    async def success(self, title: str, body: str = "") -> bool:
        return await self.notify(NotifyLevel.SUCCESS, title, body)

    async def warning(self, title: str, body: str = "") -> bool:
        return await self.notify(NotifyLevel.WARNING, title, body)

    async def error(self, title: str, body: str = "") -> bool:
        return await self.notify(NotifyLevel.ERROR, title, body)


class LoggingNotifier(Notifier):
    """Writes notifications to the application log."""

    name = "log"

    _LOG_LEVELS = {
        NotifyLevel.INFO: logging.INFO,
        NotifyLevel.SUCCESS: logging.INFO,
        NotifyLevel.WARNING: logging.WARNING,
        NotifyLevel.ERROR: logging.ERROR,
    }

    def __init__(self, logger_name: str = "notify") -> None:
        self._logger = logging.getLogger(logger_name)

    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        self._logger.log(self._LOG_LEVELS[level], "[%s] %s: %s", level.value, title, body)
        return True


class CompositeNotifier(Notifier):
    """Sends every notification to all children concurrently."""

    name = "composite"

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self.notifiers: List[Notifier] = list(notifiers)

    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        if not self.notifiers:
            return False
        results = await asyncio.gather(
            *[n.notify(level, title, body) for n in self.notifiers],
            return_exceptions=True,
        )
        delivered = False
        for notifier, result in zip(self.notifiers, results):
            if isinstance(result, BaseException):
                logger.error("[%s] notification failed: %s", notifier.name, result)
                continue
            delivered = delivered or bool(result)
        return delivered
