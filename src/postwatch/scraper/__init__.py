"""Carrier page retrieval for postwatch.

Playwright drives a stealth-configured Chromium to query the tracking page;
the rendered document is handed to the tracking extractor.
"""

from .browser import StealthBrowser
from .fetcher import IsraelPostFetcher
from .types import BotProtectionError, FetchError, PageLoadError, ScrapingError

__all__ = [
    "ScrapingError",
    "FetchError",
    "PageLoadError",
    "BotProtectionError",
    "StealthBrowser",
    "IsraelPostFetcher",
]
