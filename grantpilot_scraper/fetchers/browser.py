"""
Headless browser fetcher for JavaScript-rendered pages.

Each fetch launches its own Chromium instance via Playwright and
always closes it, whatever the outcome.
"""

import asyncio
from typing import Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.errors import FetchError, FetchTimeoutError
from grantpilot_scraper.core.http_client import USER_AGENT
from grantpilot_scraper.core.models import GrantSource

from .base import FetchStrategy, UNWANTED_ELEMENTS, truncate

# Chromium flags for containerized environments
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

EXTRACT_TEXT_SCRIPT = """
(selectors) => {
    document.querySelectorAll(selectors.join(',')).forEach((el) => el.remove());
    const main =
        document.querySelector('main') ||
        document.querySelector('article') ||
        document.querySelector('[role="main"]') ||
        document.body;
    return main ? main.innerText : '';
}
"""


class BrowserFetcher(FetchStrategy):
    """Fetcher that renders the page in headless Chromium."""

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        playwright_factory: Callable = async_playwright,
    ):
        """
        Initialize fetcher.

        Args:
            settings: Pipeline settings (navigation timeout, settle delay, cap)
            playwright_factory: Returns a Playwright async context manager
        """
        super().__init__(settings)
        self.playwright_factory = playwright_factory

    async def fetch(self, source: GrantSource) -> str:
        self.logger.info("fetching_with_browser", url=source.url)

        try:
            async with self.playwright_factory() as playwright:
                browser = await self.launch_browser(playwright)
                try:
                    page = await browser.new_page(user_agent=USER_AGENT)
                    await page.goto(
                        source.url,
                        wait_until="networkidle",
                        timeout=self.settings.navigation_timeout_ms,
                    )

                    # Late-rendering widgets
                    await asyncio.sleep(self.settings.settle_delay_ms / 1000)

                    text = await page.evaluate(EXTRACT_TEXT_SCRIPT, UNWANTED_ELEMENTS)
                finally:
                    await browser.close()

        except PlaywrightTimeoutError as e:
            raise FetchTimeoutError(
                f"Navigation timed out after {self.settings.navigation_timeout_ms}ms",
                url=source.url,
            ) from e
        except PlaywrightError as e:
            raise FetchError(f"Browser fetch failed: {e}", url=source.url) from e

        return truncate((text or "").strip(), self.settings.max_content_chars)

    async def launch_browser(self, playwright):
        """Launch an isolated headless Chromium."""
        return await playwright.chromium.launch(
            headless=True,
            args=BROWSER_ARGS,
        )
