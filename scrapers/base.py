"""
Base Scraper
Abstract base for every content source
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TypeVar
import asyncio
import logging
import time

from core import ContentItem, ScraperOptions, SourceKind


logger = logging.getLogger(__name__)

R = TypeVar("R")


class ContentScraper(ABC):
    """
    Fetches raw items from one named source.

    ``scrape`` raises on transport or parse failure; there is no partial
    result contract.
    """

    def __init__(self):
        self._session = None

    @property
    @abstractmethod
    def kind(self) -> SourceKind:
        """Source family served by this scraper"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name"""
        pass

    @abstractmethod
    async def scrape(self, identifier: str, options: Optional[ScraperOptions] = None) -> List[ContentItem]:
        """
        Fetch items for one source identifier

        Args:
            identifier: source-specific id (handle, query, feed tag)
            options: date window, limit and filters

        Returns:
            Scraped items
        """
        pass

    def is_configured(self) -> bool:
        """Subclasses override to check API keys"""
        return True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    async def _run_blocking(self, func: Callable[..., R], *args, **kwargs) -> R:
        """Run a blocking SDK call in the default thread pool."""
        return await asyncio.to_thread(func, *args, **kwargs)

    def _log_scrape(self, identifier: str, count: int):
        logger.info(f"[{self.name}] '{identifier}' returned {count} items")

    def _log_error(self, message: str, error: Exception):
        logger.error(f"[{self.name}] {message}: {error}")


class RateLimitedScraper(ContentScraper):
    """
    Scraper with a minimum interval between requests
    """

    def __init__(self, requests_per_second: float = 1.0):
        super().__init__()
        self._rate_limit = requests_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            min_interval = 1.0 / self._rate_limit

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

            self._last_request_time = time.monotonic()
