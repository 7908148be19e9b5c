"""
Scraping layer: browser control, pacing and HTML extraction
"""

from .errors import (
    ScraperError, NotAuthenticated, SourceBlocked, SearchFailed, BrowserUnavailable, ProfileStoreError,
)
from .browser_controller import BrowserController, make_browser_factory
from .human_behavior import HumanBehavior
from .page_extractor import PageExtractor, company_from_headline
from .detail_extractor import DetailExtractor
from .search_query import build_search_url

__all__ = [
    "ScraperError",
    "NotAuthenticated",
    "SourceBlocked",
    "SearchFailed",
    "BrowserUnavailable",
    "ProfileStoreError",
    "BrowserController",
    "make_browser_factory",
    "HumanBehavior",
    "PageExtractor",
    "company_from_headline",
    "DetailExtractor",
    "build_search_url",
]
