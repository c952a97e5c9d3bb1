"""
Base class for fetch strategies.

A fetch strategy turns a GrantSource into raw page text capped at
the configured size. Failures surface as FetchError; strategies do
not retry.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.models import GrantSource

logger = structlog.get_logger(__name__)

# Elements never worth sending to the model
UNWANTED_ELEMENTS = ["script", "style", "nav", "footer", "header"]


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def truncate(text: str, max_chars: int) -> str:
    return text[:max_chars]


class FetchStrategy(ABC):
    """
    Abstract base class for fetch strategies.

    Each strategy handles a different kind of source:
    - Static HTML pages
    - JavaScript-rendered pages (headless browser)
    - RSS feeds
    """

    # Strategies that accept a shared HttpClient
    uses_http_client = False

    def __init__(self, settings: Optional[ScraperSettings] = None):
        self.settings = settings or ScraperSettings()
        self.logger = logger.bind(fetcher=self.__class__.__name__)

    @abstractmethod
    async def fetch(self, source: GrantSource) -> str:
        """
        Fetch raw text for a source.

        Args:
            source: Source to fetch

        Returns:
            Extracted text, at most settings.max_content_chars long

        Raises:
            FetchError: Network, HTTP, timeout or browser failure
        """
