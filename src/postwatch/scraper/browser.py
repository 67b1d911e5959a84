"""Playwright browser automation with stealth configuration."""

import asyncio
import random
from contextlib import asynccontextmanager
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..config.settings import ScrapingSettings
from ..utils.async_utils import AsyncContextManager
from ..utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
    });
    Object.defineProperty(navigator, 'languages', {
        get: () => ['he-IL', 'he', 'en-US', 'en'],
    });
    window.chrome = {
        runtime: {},
    };
"""


class StealthBrowser(AsyncContextManager):
    """Headless Chromium with anti-detection tweaks."""

    def __init__(self, settings: Optional[ScrapingSettings] = None):
        self.settings = settings or ScrapingSettings()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._browser_lock = asyncio.Lock()

    async def setup(self) -> None:
        """Start Playwright and launch the browser."""
        if self.browser:
            return

        async with self._browser_lock:
            if self.browser:
                return

            logger.info("Initializing Playwright browser with stealth configuration")

            self.playwright = await async_playwright().start()

            launch_options = {"headless": self.settings.headless, "args": LAUNCH_ARGS}
            if self.settings.executable_path:
                launch_options["executable_path"] = self.settings.executable_path

            self.browser = await self.playwright.chromium.launch(**launch_options)

            logger.info("Playwright browser initialized successfully")

    async def cleanup(self) -> None:
        """Clean up browser and Playwright instances."""
        async with self._browser_lock:
            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            logger.info("Playwright browser cleaned up")

    @asynccontextmanager
    async def create_page(self, timeout: int):
        """Open a page in a fresh, isolated browser context."""
        if not self.browser:
            await self.setup()

        context = await self.browser.new_context(
            viewport={"width": 1366, "height": 900},
            user_agent=random.choice(self.settings.user_agents),
            locale="he-IL",
            extra_http_headers={
                "Accept-Language": "he-IL,he;q=0.9,en-US;q=0.8,en;q=0.7",
            },
        )
        await context.add_init_script(STEALTH_SCRIPT)

        try:
            page = await context.new_page()
            page.set_default_timeout(timeout)
            page.set_default_navigation_timeout(timeout)
            yield page
        finally:
            await context.close()
