"""
RSS feed fetcher.

Keeps only feed items that mention grants and joins them into one
text block for extraction.
"""

from typing import Optional

from bs4 import BeautifulSoup

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.http_client import HttpClient
from grantpilot_scraper.core.models import GrantSource

from .base import FetchStrategy, collapse_whitespace, truncate

ITEM_SEPARATOR = "\n\n---\n\n"
KEYWORD = "grant"


def _child_text(item, name: str, html: bool = True) -> str:
    elem = item.find(name)
    if elem is None:
        return ""
    if not html:
        return collapse_whitespace(elem.get_text())
    # Descriptions often carry escaped HTML
    return collapse_whitespace(BeautifulSoup(elem.get_text(), "lxml").get_text(" "))


def extract_feed_items(xml: str) -> list[str]:
    """
    Return one text block per grant-related feed item.

    An item is kept when its title or description contains "grant"
    (case-insensitive).
    """
    soup = BeautifulSoup(xml, "xml")

    blocks = []
    for item in soup.find_all("item"):
        title = _child_text(item, "title")
        description = _child_text(item, "description")
        # content:encoded is exposed as "encoded" by the xml parser
        content = _child_text(item, "encoded") or _child_text(item, "content")
        link = _child_text(item, "link", html=False)

        if KEYWORD not in title.lower() and KEYWORD not in description.lower():
            continue

        parts = [f"Title: {title}"]
        if link:
            parts.append(f"Link: {link}")
        if description:
            parts.append(f"Description: {description}")
        if content:
            parts.append(f"Content: {content}")
        blocks.append("\n".join(parts))

    return blocks


class RssFeedFetcher(FetchStrategy):
    """Fetcher for RSS feeds."""

    uses_http_client = True

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        http_client: Optional[HttpClient] = None,
    ):
        super().__init__(settings)
        self.http_client = http_client

    async def fetch(self, source: GrantSource) -> str:
        self.logger.info("fetching_rss_feed", url=source.url)

        if self.http_client:
            xml = await self.http_client.get_text(source.url)
        else:
            async with HttpClient(
                timeout=self.settings.request_timeout_ms / 1000,
                requests_per_second=self.settings.requests_per_second,
            ) as client:
                xml = await client.get_text(source.url)

        blocks = extract_feed_items(xml)
        self.logger.debug("feed_items_kept", url=source.url, count=len(blocks))

        return truncate(ITEM_SEPARATOR.join(blocks), self.settings.max_content_chars)
