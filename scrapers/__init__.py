"""
Scrapers Module
"""
from .base import ContentScraper, RateLimitedScraper
from .hackernews_scraper import HackerNewsScraper
from .social import TwitterScraper
from .registry import SCRAPER_REGISTRY, build_scrapers, create_scraper

__all__ = [
    # Base
    "ContentScraper",
    "RateLimitedScraper",
    # Hacker News
    "HackerNewsScraper",
    # Social
    "TwitterScraper",
    # Registry
    "SCRAPER_REGISTRY",
    "build_scrapers",
    "create_scraper",
]
