"""Type definitions for the scraper module."""


class ScrapingError(Exception):
    """Base exception for scraping-related errors."""

    pass


class FetchError(ScrapingError):
    """The tracking page could not be retrieved for this check.

    Covers network failures, timeouts and bot-protection pages alike; callers
    only need to know that this identifier's check failed.
    """

    pass


class PageLoadError(FetchError):
    """Navigation or page interaction failed; worth retrying."""

    pass


class BotProtectionError(FetchError):
    """The carrier served a CAPTCHA or access-denied page."""

    pass
