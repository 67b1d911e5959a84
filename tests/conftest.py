"""Test configuration and fixtures for postwatch test suite."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest
import structlog

from src.postwatch.config.settings import get_settings
from src.postwatch.storage import TrackedPackage, WatchlistStore
from src.postwatch.tracking import PageSnapshot, reset_locales

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "asyncio: mark test to run with asyncio")
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture(scope="session", autouse=True)
def global_browser_patch():
    """Never launch a real browser during test runs."""
    with patch("src.postwatch.scraper.browser.async_playwright") as mock_playwright:
        mock_playwright.return_value.start = AsyncMock(return_value=AsyncMock())
        yield mock_playwright


@pytest.fixture(autouse=True)
def isolated_registries(monkeypatch):
    """Reset process-wide caches so tests do not leak into each other."""
    for name in ("POSTWATCH_LOG_LEVEL", "POSTWATCH_CONFIG_FILE", "CHROME_PATH"):
        monkeypatch.delenv(name, raising=False)
    reset_locales()
    get_settings.cache_clear()
    yield
    reset_locales()
    get_settings.cache_clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def state_file(tmp_path):
    """Path to a watchlist file that does not exist yet."""
    return tmp_path / "state.json"


@pytest.fixture
def store(state_file):
    """Empty watchlist store backed by a temporary file."""
    return WatchlistStore(state_file)


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_package():
    """Factory for tracked package records."""

    def _make(package_id="RR123456789IL", **kwargs):
        kwargs.setdefault("display_name", "Headphones")
        kwargs.setdefault("added_at", datetime(2026, 2, 1, tzinfo=timezone.utc))
        return TrackedPackage(id=package_id, **kwargs)

    return _make


@pytest.fixture
def transit_snapshot():
    """Tracking page with two dated events, the package still on its way."""
    return PageSnapshot(
        found=True,
        events=(
            ("01/02/2026", "התקבל במרכז מיון", "מודיעין"),
            ("03/02/2026", "בדרך ליחידת המסירה", "תל אביב"),
        ),
        raw="התקבל במרכז מיון\nבדרך ליחידת המסירה",
    )


@pytest.fixture
def delivered_snapshot():
    """Tracking page whose latest event is delivery to the addressee."""
    return PageSnapshot(
        found=True,
        events=(
            ("01/02/2026", "התקבל במרכז מיון", "מודיעין"),
            ("03/02/2026", "בדרך ליחידת המסירה", "תל אביב"),
            ("05/02/2026", "נמסר לנמען", "תל אביב"),
        ),
        raw="נמסר לנמען",
    )


@pytest.fixture
def mock_fetcher():
    """Fetcher whose lookups are scripted per test."""
    fetcher = Mock()
    fetcher.fetch_tracking_page = AsyncMock()
    return fetcher


@pytest.fixture
def mock_notifier():
    """Notifier that records messages and always succeeds."""
    from src.postwatch.notification import MessageResult

    notifier = Mock()
    notifier.notify = Mock(return_value=MessageResult(success=True, channel="test"))
    return notifier
