"""Israel Post tracking page retrieval."""

from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import ScrapingSettings, TrackingSettings
from ..tracking.extractor import SnapshotExtractor
from ..tracking.types import PageSnapshot
from ..utils.async_utils import AsyncContextManager, retry_async
from ..utils.logging import get_structured_logger
from .browser import StealthBrowser
from .types import BotProtectionError, PageLoadError

logger = get_structured_logger(__name__)

BARCODE_INPUT = 'input[name="barcode"], input#_r_c_, input[type="text"]'
SUBMIT_BUTTON = 'button[type="submit"], input[type="submit"], .search-btn, .btn-search'
BOT_PROTECTION_TITLES = ("captcha", "access denied", "radware")

TYPING_DELAY = 60  # milliseconds per keystroke
SUBMIT_WAIT = 10000  # milliseconds


class IsraelPostFetcher(AsyncContextManager):
    """Looks up tracking identifiers on the Israel Post site.

    One browser is shared across a check cycle; every lookup gets its own
    context so no cookies or storage leak between identifiers.
    """

    def __init__(
        self,
        tracking: Optional[TrackingSettings] = None,
        scraping: Optional[ScrapingSettings] = None,
        extractor: Optional[SnapshotExtractor] = None,
        browser: Optional[StealthBrowser] = None,
    ):
        self.tracking = tracking or TrackingSettings()
        self.scraping = scraping or ScrapingSettings()
        self.extractor = extractor or SnapshotExtractor(
            raw_limit=self.tracking.raw_text_limit
        )
        self.browser = browser or StealthBrowser(self.scraping)

    async def setup(self) -> None:
        await self.browser.setup()

    async def cleanup(self) -> None:
        await self.browser.cleanup()

    async def fetch_tracking_page(self, package_id: str) -> PageSnapshot:
        """Fetch and extract the tracking page, retrying load failures."""
        return await retry_async(
            lambda: self._fetch_once(package_id),
            max_retries=self.scraping.max_retries,
            delay=self.scraping.retry_delay,
            exceptions=(PageLoadError,),
        )

    async def _fetch_once(self, package_id: str) -> PageSnapshot:
        logger.debug("Fetching tracking page", tracking_id=package_id)

        try:
            async with self.browser.create_page(
                self.tracking.navigation_timeout
            ) as page:
                await page.goto(self.tracking.tracking_url, wait_until="networkidle")
                await self._check_bot_protection(page)
                await self._submit_query(page, package_id)

                if self.tracking.settle_delay:
                    await page.wait_for_timeout(self.tracking.settle_delay)

                html = await page.content()
                text = await page.inner_text("body")
        except PlaywrightTimeoutError as e:
            raise PageLoadError(f"Timed out loading tracking page: {str(e)}") from e
        except PlaywrightError as e:
            raise PageLoadError(f"Browser error: {str(e)}") from e

        return self.extractor.extract_html(html, text)

    async def _check_bot_protection(self, page: Page) -> None:
        title = (await page.title()).lower()
        if any(marker in title for marker in BOT_PROTECTION_TITLES):
            raise BotProtectionError("Bot protection triggered, try again later")

    async def _submit_query(self, page: Page, package_id: str) -> None:
        await page.wait_for_selector(BARCODE_INPUT)
        field = page.locator(BARCODE_INPUT).first
        await field.click()
        await field.press_sequentially(package_id, delay=TYPING_DELAY)
        await field.press("Enter")
        await self._wait_for_idle(page, self.tracking.navigation_timeout)

        button = await page.query_selector(SUBMIT_BUTTON)
        if button:
            await button.click()
            await self._wait_for_idle(page, SUBMIT_WAIT)

    @staticmethod
    async def _wait_for_idle(page: Page, timeout: int) -> None:
        # Single-page submissions may never navigate; a timeout here is normal.
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout)
        except PlaywrightTimeoutError:
            logger.debug("Page did not reach network idle after submit")
