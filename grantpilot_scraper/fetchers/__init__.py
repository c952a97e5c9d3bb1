"""
Fetch strategies for grant sources.

- static_html: GET + BeautifulSoup main-content extraction
- browser: Playwright-rendered pages
- rss: grant-related RSS items
"""

from .base import FetchStrategy
from .static_html import StaticHtmlFetcher, extract_main_text
from .browser import BrowserFetcher
from .rss import RssFeedFetcher, extract_feed_items
from .content_fetcher import ContentFetcher

__all__ = [
    "FetchStrategy",
    "StaticHtmlFetcher",
    "BrowserFetcher",
    "RssFeedFetcher",
    "ContentFetcher",
    "extract_main_text",
    "extract_feed_items",
]
