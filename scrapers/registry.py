"""Source kind to scraper constructor registry."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from config.settings import Settings
from core import SourceKind
from utils.exceptions import UnsupportedProviderError

from .base import ContentScraper
from .hackernews_scraper import HackerNewsScraper
from .social.twitter_scraper import TwitterScraper


logger = logging.getLogger(__name__)


def _hackernews(settings: Settings) -> ContentScraper:
    return HackerNewsScraper(
        max_results=settings.hackernews.max_results,
        request_timeout=settings.hackernews.request_timeout,
    )


def _twitter(settings: Settings) -> ContentScraper:
    return TwitterScraper(
        bearer_token=settings.twitter.bearer_token,
        max_results=settings.twitter.max_results,
    )


SCRAPER_REGISTRY: Dict[SourceKind, Callable[[Settings], ContentScraper]] = {
    SourceKind.HACKERNEWS: _hackernews,
    SourceKind.TWITTER: _twitter,
}


def create_scraper(kind: SourceKind | str, settings: Settings) -> ContentScraper:
    try:
        source_kind = SourceKind(str(getattr(kind, "value", kind)).lower())
    except ValueError:
        raise UnsupportedProviderError(str(kind), registry="source") from None
    return SCRAPER_REGISTRY[source_kind](settings)


def build_scrapers(settings: Settings, kinds: Optional[Iterable[SourceKind]] = None) -> Dict[SourceKind, ContentScraper]:
    """One scraper per requested kind (default: every registered kind)."""
    scrapers: Dict[SourceKind, ContentScraper] = {}
    for kind in kinds or SCRAPER_REGISTRY.keys():
        if kind in scrapers:
            continue
        scraper = create_scraper(kind, settings)
        if not scraper.is_configured():
            logger.warning("[%s] scraper is not configured; its sources will fail", scraper.name)
        scrapers[kind] = scraper
    return scrapers
