"""
Twitter/X Scraper
Recent posts from a user timeline
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging
import re

from scrapers.base import RateLimitedScraper
from core import ContentItem, MediaRef, ScraperOptions, SourceKind
from utils.exceptions import SourceFailureError


logger = logging.getLogger(__name__)

_HANDLE_RE = re.compile(r"(?:(?:twitter|x)\.com/)?@?([A-Za-z0-9_]{1,15})/?$")


def parse_handle(identifier: str) -> str:
    """``https://x.com/OpenAI``, ``@OpenAI`` and ``OpenAI`` all name the same user."""
    match = _HANDLE_RE.search((identifier or "").strip())
    if not match:
        raise SourceFailureError(f"invalid twitter source identifier: {identifier!r}", source=identifier)
    return match.group(1)


class TwitterScraper(RateLimitedScraper):
    """
    Twitter/X scraper
    Uses Twitter API v2 through tweepy (needs a bearer token)
    """

    def __init__(
        self,
        bearer_token: Optional[str] = None,
        max_results: int = 20,
        lookback_hours: int = 24,
        client: Any = None,
    ):
        super().__init__(requests_per_second=0.5)
        self.bearer_token = bearer_token
        self.max_results = max_results
        self.lookback_hours = lookback_hours
        self._client = client

    @property
    def kind(self) -> SourceKind:
        return SourceKind.TWITTER

    @property
    def name(self) -> str:
        return "Twitter/X"

    def is_configured(self) -> bool:
        return bool(self.bearer_token) or self._client is not None

    def _get_client(self):
        if self._client is None:
            import tweepy
            self._client = tweepy.Client(
                bearer_token=self.bearer_token,
                wait_on_rate_limit=True,
            )
        return self._client

    async def scrape(self, identifier: str, options: Optional[ScraperOptions] = None) -> List[ContentItem]:
        if not self.is_configured():
            raise SourceFailureError("twitter bearer token not configured", source=identifier)

        options = options or ScraperOptions()
        username = parse_handle(identifier)
        limit = max(5, min(options.limit or self.max_results, 100))
        start = options.start_date or (datetime.now(timezone.utc) - timedelta(hours=self.lookback_hours))

        await self._wait_for_rate_limit()
        try:
            tweets, media_map = await self._run_blocking(
                self._sync_user_timeline, username, limit, start, options.end_date
            )
        except SourceFailureError:
            raise
        except Exception as e:
            self._log_error(f"Timeline fetch failed for @{username}", e)
            raise SourceFailureError(f"twitter request failed: {e}", source=identifier) from e

        items = [self._convert_to_item(tweet, username, media_map) for tweet in tweets]
        self._log_scrape(username, len(items))
        return items

    def _sync_user_timeline(self, username: str, limit: int, start: datetime, end: Optional[datetime]) -> tuple:
        client = self._get_client()

        user_response = client.get_user(username=username)
        if not user_response.data:
            raise SourceFailureError(f"twitter user @{username} not found", source=username)

        params: Dict[str, Any] = {
            "max_results": limit,
            "start_time": start,
            "exclude": ["replies", "retweets"],
            "tweet_fields": ["created_at", "public_metrics", "attachments"],
            "expansions": ["attachments.media_keys"],
            "media_fields": ["url", "preview_image_url", "type", "width", "height"],
        }
        if end is not None:
            params["end_time"] = end

        response = client.get_users_tweets(user_response.data.id, **params)

        media_map = {}
        if response.includes and "media" in response.includes:
            for media in response.includes["media"]:
                media_map[media.media_key] = media

        return list(response.data or []), media_map

    def _convert_to_item(self, tweet, username: str, media_map: Dict[str, Any]) -> ContentItem:
        metrics = tweet.public_metrics or {}
        text = tweet.text or ""

        media = []
        attachments = getattr(tweet, "attachments", None) or {}
        for key in attachments.get("media_keys", []):
            entry = media_map.get(key)
            url = getattr(entry, "url", None) or getattr(entry, "preview_image_url", None)
            if entry is None or not url:
                continue
            media.append(MediaRef(
                url=url,
                type=getattr(entry, "type", None) or "photo",
                width=getattr(entry, "width", None),
                height=getattr(entry, "height", None),
            ))

        return ContentItem(
            id=str(tweet.id),
            title=text.split("\n")[0],
            body=text,
            source_url=f"https://x.com/{username}/status/{tweet.id}",
            published_at=tweet.created_at,
            media=media,
            metadata={
                "platform": SourceKind.TWITTER.value,
                "username": username,
                "likes": metrics.get("like_count", 0),
                "reposts": metrics.get("retweet_count", 0),
                "comments": metrics.get("reply_count", 0),
            },
        )
