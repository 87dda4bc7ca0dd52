"""
Social Media Scrapers
"""
from .twitter_scraper import TwitterScraper, parse_handle

__all__ = [
    "TwitterScraper",
    "parse_handle",
]
