"""
Strategy dispatch for content fetching.
"""

from typing import Optional

import structlog

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.http_client import HttpClient
from grantpilot_scraper.core.models import GrantSource, ScrapeStrategy

from .base import FetchStrategy
from .browser import BrowserFetcher
from .rss import RssFeedFetcher
from .static_html import StaticHtmlFetcher

logger = structlog.get_logger(__name__)


class ContentFetcher:
    """
    Fetches raw text for a source using its configured strategy.

    HTTP strategies share one HttpClient, so per-domain rate limits hold
    across sources and sweeps. The client is open for the lifetime of
    the context.

    Usage:
        async with ContentFetcher(settings) as fetcher:
            text = await fetcher.fetch(source)
    """

    # Strategy registry
    STRATEGIES = {
        ScrapeStrategy.STATIC_HTML: StaticHtmlFetcher,
        ScrapeStrategy.PUPPETEER: BrowserFetcher,
        ScrapeStrategy.RSS_FEED: RssFeedFetcher,
    }

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        strategies: Optional[dict[ScrapeStrategy, FetchStrategy]] = None,
        http_client: Optional[HttpClient] = None,
    ):
        """
        Initialize fetcher.

        Args:
            settings: Pipeline settings passed to each strategy
            strategies: Optional prebuilt strategy instances (overrides the registry)
            http_client: Shared HTTP client (built from settings if not provided)
        """
        self.settings = settings or ScraperSettings()
        self.http_client = http_client or HttpClient(
            requests_per_second=self.settings.requests_per_second,
            timeout=self.settings.request_timeout_ms / 1000,
        )
        self._strategies: dict[ScrapeStrategy, FetchStrategy] = dict(strategies or {})

    async def __aenter__(self) -> "ContentFetcher":
        """Open the shared HTTP client."""
        await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the shared HTTP client."""
        await self.http_client.__aexit__(exc_type, exc_val, exc_tb)

    def get_strategy(self, strategy: ScrapeStrategy) -> FetchStrategy:
        if strategy not in self._strategies:
            strategy_class = self.STRATEGIES[strategy]
            if strategy_class.uses_http_client:
                instance = strategy_class(settings=self.settings, http_client=self.http_client)
            else:
                instance = strategy_class(settings=self.settings)
            self._strategies[strategy] = instance
            logger.debug("strategy_created", strategy=strategy.value, fetcher=strategy_class.__name__)
        return self._strategies[strategy]

    async def fetch(self, source: GrantSource) -> str:
        """
        Fetch text for source.

        Raises:
            FetchError: Propagated from the strategy
        """
        return await self.get_strategy(source.scrape_strategy).fetch(source)
