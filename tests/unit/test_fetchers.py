"""Tests for fetch strategies."""

import time
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.errors import FetchError, FetchTimeoutError
from grantpilot_scraper.core.http_client import USER_AGENT, HttpClient
from grantpilot_scraper.core.models import GrantSource, ScrapeStrategy
from grantpilot_scraper.fetchers.browser import BROWSER_ARGS, BrowserFetcher
from grantpilot_scraper.fetchers.content_fetcher import ContentFetcher
from grantpilot_scraper.fetchers.rss import ITEM_SEPARATOR, RssFeedFetcher, extract_feed_items
from grantpilot_scraper.fetchers.static_html import StaticHtmlFetcher, extract_main_text

PROSE = " ".join(["grant"] * 833) + " ab"


def make_source(strategy=ScrapeStrategy.STATIC_HTML, url="https://grants.example.org/programs") -> GrantSource:
    return GrantSource(
        id=1,
        name="Example Grants",
        url=url,
        chain_name="Ethereum",
        scrape_strategy=strategy,
    )


def mock_client(handler, timeout: float = 15.0) -> HttpClient:
    return HttpClient(requests_per_second=1000, timeout=timeout, transport=httpx.MockTransport(handler))


class TestExtractMainText:
    """Tests for main content extraction."""

    def test_prefers_main(self):
        html = f"""
        <html><body>
          <header>Site header</header>
          <nav>Home | About</nav>
          <main><p>{PROSE}</p></main>
          <footer>Copyright</footer>
        </body></html>
        """
        assert extract_main_text(html) == PROSE

    def test_strips_unwanted_elements(self):
        html = f"<html><body><article><script>var x = 1;</script><style>p {{}}</style>{PROSE}</article></body></html>"

        text = extract_main_text(html)

        assert "var x" not in text
        assert text == PROSE

    def test_short_container_skipped(self):
        """A main element under the threshold falls through to later selectors."""
        html = f"<html><body><main>Too short</main><div class='content'>{PROSE}</div></body></html>"
        assert extract_main_text(html) == PROSE

    def test_falls_back_to_whole_document(self):
        html = "<html><body><p>Tiny page</p></body></html>"
        assert extract_main_text(html) == "Tiny page"


class TestHttpClient:
    """Tests for the HTTP client error mapping."""

    @pytest.mark.asyncio
    async def test_sends_user_agent(self):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, text="ok")

        async with mock_client(handler) as client:
            assert await client.get_text("https://example.com") == "ok"

        assert seen["ua"] == USER_AGENT

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        async with mock_client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(FetchError, match="HTTP 404: Not Found"):
                await client.get("https://example.com/missing")

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        async with mock_client(handler, timeout=15.0) as client:
            with pytest.raises(FetchTimeoutError, match="15000ms"):
                await client.get("https://example.com/slow")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.get("https://example.com")

        assert not isinstance(exc_info.value, FetchTimeoutError)

    @pytest.mark.asyncio
    async def test_requires_context(self):
        with pytest.raises(RuntimeError):
            await HttpClient().get("https://example.com")


class TestStaticHtmlFetcher:
    """Tests for StaticHtmlFetcher."""

    @pytest.mark.asyncio
    async def test_main_content_returned(self):
        """A 5,000 character main element comes back unchanged."""
        assert len(PROSE) == 5000
        html_prose = PROSE.replace(" ", "\n      ", 10)
        html = f"<html><body><nav>Menu</nav><main><p>{html_prose}</p></main></body></html>"

        async with mock_client(lambda request: httpx.Response(200, text=html)) as client:
            text = await StaticHtmlFetcher(ScraperSettings(), http_client=client).fetch(make_source())

        assert text == PROSE

    @pytest.mark.asyncio
    async def test_truncates(self):
        html = f"<html><body><main>{PROSE}</main></body></html>"

        async with mock_client(lambda request: httpx.Response(200, text=html)) as client:
            fetcher = StaticHtmlFetcher(ScraperSettings(max_content_chars=300), http_client=client)
            text = await fetcher.fetch(make_source())

        assert text == PROSE[:300]

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        async with mock_client(lambda request: httpx.Response(503)) as client:
            with pytest.raises(FetchError, match="HTTP 503"):
                await StaticHtmlFetcher(http_client=client).fetch(make_source())


RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Ecosystem Blog</title>
    <item>
      <title>Announcing the Q3 Grants Round</title>
      <link>https://blog.example.org/q3-grants</link>
      <description>&lt;p&gt;Applications are open until September.&lt;/p&gt;</description>
      <content:encoded><![CDATA[<p>Up to <b>$50k</b> per team.</p>]]></content:encoded>
    </item>
    <item>
      <title>Protocol upgrade notes</title>
      <link>https://blog.example.org/upgrade</link>
      <description>Validator changes in the next fork.</description>
    </item>
    <item>
      <title>Community call recap</title>
      <link>https://blog.example.org/call</link>
      <description>We discussed the new GRANT committee.</description>
    </item>
  </channel>
</rss>
"""


class TestRssFeed:
    """Tests for RSS item filtering."""

    def test_keeps_grant_items(self):
        blocks = extract_feed_items(RSS_FEED)

        assert len(blocks) == 2
        assert blocks[0].startswith("Title: Announcing the Q3 Grants Round")
        assert "Link: https://blog.example.org/q3-grants" in blocks[0]
        assert "Description: Applications are open until September." in blocks[0]
        assert "Content: Up to $50k per team." in blocks[0]
        assert blocks[1].startswith("Title: Community call recap")

    def test_no_matching_items(self):
        feed = "<rss><channel><item><title>Release notes</title></item></channel></rss>"
        assert extract_feed_items(feed) == []

    @pytest.mark.asyncio
    async def test_fetch_joins_items(self):
        async with mock_client(lambda request: httpx.Response(200, text=RSS_FEED)) as client:
            text = await RssFeedFetcher(http_client=client).fetch(make_source(ScrapeStrategy.RSS_FEED))

        assert text.count(ITEM_SEPARATOR) == 1
        assert "Protocol upgrade" not in text


class FakePlaywrightContext:
    """Async context manager standing in for async_playwright()."""

    def __init__(self, playwright):
        self.playwright = playwright

    async def __aenter__(self):
        return self.playwright

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


def make_playwright(page_text="  Rendered grant page  ", goto_error=None):
    page = AsyncMock()
    page.evaluate = AsyncMock(return_value=page_text)
    page.goto = AsyncMock(side_effect=goto_error)

    browser = AsyncMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    playwright = Mock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    return (lambda: FakePlaywrightContext(playwright)), playwright, browser, page


class TestBrowserFetcher:
    """Tests for BrowserFetcher."""

    @pytest.mark.asyncio
    async def test_renders_and_closes(self):
        factory, playwright, browser, page = make_playwright()
        fetcher = BrowserFetcher(ScraperSettings(settle_delay_ms=0), playwright_factory=factory)

        text = await fetcher.fetch(make_source(ScrapeStrategy.PUPPETEER))

        assert text == "Rendered grant page"
        playwright.chromium.launch.assert_awaited_once_with(headless=True, args=BROWSER_ARGS)
        browser.new_page.assert_awaited_once_with(user_agent=USER_AGENT)
        page.goto.assert_awaited_once_with(
            "https://grants.example.org/programs",
            wait_until="networkidle",
            timeout=30000,
        )
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_closes_browser(self):
        """The browser is closed even when navigation fails."""
        factory, _, browser, _ = make_playwright(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
        fetcher = BrowserFetcher(ScraperSettings(settle_delay_ms=0), playwright_factory=factory)

        with pytest.raises(FetchTimeoutError, match="30000ms"):
            await fetcher.fetch(make_source(ScrapeStrategy.PUPPETEER))

        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_truncates(self):
        factory, *_ = make_playwright(page_text="x" * 500)
        fetcher = BrowserFetcher(ScraperSettings(settle_delay_ms=0, max_content_chars=100), playwright_factory=factory)

        assert len(await fetcher.fetch(make_source(ScrapeStrategy.PUPPETEER))) == 100


class TestContentFetcher:
    """Tests for strategy dispatch."""

    @pytest.mark.asyncio
    async def test_dispatches_by_strategy(self):
        static = Mock()
        static.fetch = AsyncMock(return_value="static text")
        rss = Mock()
        rss.fetch = AsyncMock(return_value="rss text")
        fetcher = ContentFetcher(strategies={ScrapeStrategy.STATIC_HTML: static, ScrapeStrategy.RSS_FEED: rss})

        assert await fetcher.fetch(make_source(ScrapeStrategy.RSS_FEED)) == "rss text"
        assert await fetcher.fetch(make_source(ScrapeStrategy.STATIC_HTML)) == "static text"

    def test_builds_registry_strategies(self):
        fetcher = ContentFetcher()

        assert isinstance(fetcher.get_strategy(ScrapeStrategy.PUPPETEER), BrowserFetcher)
        assert isinstance(fetcher.get_strategy(ScrapeStrategy.RSS_FEED), RssFeedFetcher)
        assert fetcher.get_strategy(ScrapeStrategy.STATIC_HTML) is fetcher.get_strategy(ScrapeStrategy.STATIC_HTML)

    def test_http_strategies_share_client(self):
        """Static and RSS strategies use the fetcher's client; the browser does not."""
        fetcher = ContentFetcher(ScraperSettings(requests_per_second=0.5, request_timeout_ms=5000))

        assert fetcher.http_client.requests_per_second == 0.5
        assert fetcher.http_client.timeout == 5.0
        assert fetcher.get_strategy(ScrapeStrategy.STATIC_HTML).http_client is fetcher.http_client
        assert fetcher.get_strategy(ScrapeStrategy.RSS_FEED).http_client is fetcher.http_client

    @pytest.mark.asyncio
    async def test_rate_limit_holds_across_sources(self):
        """Two sources on one domain are spaced by the per-domain rate limit."""
        seen = []

        def handler(request):
            seen.append((request.url.path, time.monotonic()))
            return httpx.Response(200, text=f"<html><body><main>{PROSE}</main></body></html>")

        client = HttpClient(requests_per_second=10, transport=httpx.MockTransport(handler))
        first = make_source(url="https://grants.example.org/one")
        second = make_source(url="https://grants.example.org/two")

        async with ContentFetcher(http_client=client) as fetcher:
            await fetcher.fetch(first)
            await fetcher.fetch(second)

        assert [path for path, _ in seen] == ["/one", "/two"]
        assert seen[1][1] - seen[0][1] >= 0.09

        # Leaving the context closes the shared client
        with pytest.raises(RuntimeError):
            await client.get("https://grants.example.org/three")
