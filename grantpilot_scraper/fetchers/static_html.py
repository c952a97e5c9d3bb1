"""
Static HTML fetcher.

Plain GET with a browser-like user agent, then main-content text
extraction with BeautifulSoup.
"""

from typing import Optional

from bs4 import BeautifulSoup

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.http_client import HttpClient
from grantpilot_scraper.core.models import GrantSource

from .base import FetchStrategy, UNWANTED_ELEMENTS, collapse_whitespace, truncate

# Content containers in priority order; body is the last resort
CONTENT_SELECTORS = [
    "main",
    "article",
    "[role='main']",
    "#content",
    ".content",
    ".main-content",
    ".page-content",
    ".entry-content",
    ".post-content",
    "body",
]


def extract_main_text(html: str, min_chars: int = 200) -> str:
    """
    Extract readable text from the main content region of a page.

    Strips script/style/nav/footer/header, then returns the collapsed
    text of the first selector whose text is longer than min_chars.
    Falls back to the whole document text.
    """
    soup = BeautifulSoup(html, "lxml")

    for elem in soup.find_all(UNWANTED_ELEMENTS):
        elem.decompose()

    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        text = collapse_whitespace(container.get_text(" "))
        if len(text) > min_chars:
            return text

    return collapse_whitespace(soup.get_text(" "))


class StaticHtmlFetcher(FetchStrategy):
    """Fetcher for server-rendered pages."""

    uses_http_client = True

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        http_client: Optional[HttpClient] = None,
    ):
        """
        Initialize fetcher.

        Args:
            settings: Pipeline settings (timeouts, caps)
            http_client: Shared HTTP client (one is created per fetch if not provided)
        """
        super().__init__(settings)
        self.http_client = http_client

    async def fetch(self, source: GrantSource) -> str:
        self.logger.info("fetching_static_html", url=source.url)

        if self.http_client:
            html = await self.http_client.get_text(source.url)
        else:
            async with HttpClient(
                timeout=self.settings.request_timeout_ms / 1000,
                requests_per_second=self.settings.requests_per_second,
            ) as client:
                html = await client.get_text(source.url)

        text = extract_main_text(html, self.settings.selector_min_chars)
        return truncate(text, self.settings.max_content_chars)
