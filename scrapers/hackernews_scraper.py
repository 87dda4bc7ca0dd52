"""
Hacker News Scraper
Stories via the Algolia HN Search API
API docs: https://hn.algolia.com/api
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Any
import logging

import aiohttp

from .base import RateLimitedScraper
from core import ContentItem, ScraperOptions, SourceKind
from utils.exceptions import SourceFailureError


logger = logging.getLogger(__name__)

FRONT_PAGE = "front_page"

TYPE_PRIORITY = (("show_hn", "show"), ("ask_hn", "ask"), ("job", "job"), ("poll", "poll"))


class HackerNewsScraper(RateLimitedScraper):
    """
    Hacker News scraper (Algolia API)

    Identifiers:
    - ``front_page``: stories currently on the front page
    - anything else: full-text story search, newest first
    No API key required.
    """

    ALGOLIA_URL = "https://hn.algolia.com/api/v1"

    def __init__(
        self,
        max_results: int = 30,
        request_timeout: float = 30.0,
        lookback_hours: int = 24,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(requests_per_second=5.0)
        self.max_results = max_results
        self.request_timeout = request_timeout
        self.lookback_hours = lookback_hours
        self._session = session

    @property
    def kind(self) -> SourceKind:
        return SourceKind.HACKERNEWS

    @property
    def name(self) -> str:
        return "Hacker News"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            )
        return self._session

    def _build_request(self, identifier: str, options: ScraperOptions) -> tuple:
        limit = options.limit or self.max_results
        params: Dict[str, Any] = {"hitsPerPage": min(limit, 100)}

        if identifier == FRONT_PAGE:
            endpoint = "search"
            params["tags"] = FRONT_PAGE
        else:
            endpoint = "search_by_date"
            params["tags"] = "story"
            params["query"] = identifier

        # the front page is already recent; searches default to the lookback window
        numeric = []
        start = options.start_date
        if start is None and identifier != FRONT_PAGE:
            start = datetime.now(timezone.utc) - timedelta(hours=self.lookback_hours)
        if start is not None:
            numeric.append(f"created_at_i>{int(start.timestamp())}")
        if options.end_date:
            numeric.append(f"created_at_i<{int(options.end_date.timestamp())}")
        if options.filters.get("min_points"):
            numeric.append(f"points>={int(options.filters['min_points'])}")
        if numeric:
            params["numericFilters"] = ",".join(numeric)
        return endpoint, params

    async def scrape(self, identifier: str, options: Optional[ScraperOptions] = None) -> List[ContentItem]:
        options = options or ScraperOptions()
        endpoint, params = self._build_request(identifier, options)

        await self._wait_for_rate_limit()
        session = await self._get_session()

        try:
            async with session.get(f"{self.ALGOLIA_URL}/{endpoint}", params=params) as response:
                response.raise_for_status()
                data = await response.json()
        except aiohttp.ClientError as e:
            self._log_error(f"Fetching '{identifier}' failed", e)
            raise SourceFailureError(f"hacker news request failed: {e}", source=identifier) from e

        items = []
        for hit in data.get("hits", []):
            item = self._convert_algolia_to_item(hit, identifier)
            if item:
                items.append(item)

        self._log_scrape(identifier, len(items))
        return items

    def _convert_algolia_to_item(self, data: Dict[str, Any], identifier: str) -> Optional[ContentItem]:
        """Algolia hit -> ContentItem"""
        if not data or not data.get("objectID"):
            return None

        item_id = str(data["objectID"])
        hn_url = f"https://news.ycombinator.com/item?id={item_id}"
        title = data.get("title") or "Untitled"

        return ContentItem(
            id=f"hn_{item_id}",
            title=title,
            body=data.get("story_text") or title,
            source_url=data.get("url") or hn_url,
            published_at=datetime.fromtimestamp(data["created_at_i"], tz=timezone.utc) if data.get("created_at_i") else None,
            metadata={
                "platform": SourceKind.HACKERNEWS.value,
                "source": identifier,
                "author": data.get("author", "Unknown"),
                "points": data.get("points") or 0,
                "comment_count": data.get("num_comments") or 0,
                "hn_url": hn_url,
                "item_type": self._parse_item_type(data.get("_tags", [])),
            },
        )

    def _parse_item_type(self, tags: List[str]) -> str:
        # Algolia lists "story" alongside the specific tag, so specific tags win
        for tag, item_type in TYPE_PRIORITY:
            if tag in tags:
                return item_type

        return "story"
