"""
Async HTTP client with per-domain rate limiting.

Built on httpx with:
- Per-domain rate limiting
- Browser-like user agent
- Explicit timeout, reported separately from other failures

The client does not retry; a failed source is picked up again by the
next scheduled run.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

import httpx
import structlog

from .errors import FetchError, FetchTimeoutError

logger = structlog.get_logger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class RateLimiter:
    """Per-domain rate limiter."""
    requests_per_second: float = 2.0
    last_request: float = 0.0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def acquire(self) -> None:
        """Wait for rate limit slot."""
        async with self.lock:
            now = time.monotonic()
            min_interval = 1.0 / self.requests_per_second
            elapsed = now - self.last_request

            if elapsed < min_interval:
                await asyncio.sleep(min_interval - elapsed)

            self.last_request = time.monotonic()


class HttpClient:
    """
    Async HTTP client with rate limiting and typed fetch errors.

    Usage:
        async with HttpClient(timeout=15.0) as client:
            html = await client.get_text("https://example.com")
    """

    def __init__(
        self,
        requests_per_second: float = 2.0,
        timeout: float = 15.0,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            requests_per_second: Rate limit per domain
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.requests_per_second = requests_per_second
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._rate_limiters: dict[str, RateLimiter] = {}

    async def __aenter__(self) -> "HttpClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers={
                "User-Agent": self.user_agent,
                "Accept-Language": "en-US,en;q=0.9",
            },
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_rate_limiter(self, url: str) -> RateLimiter:
        """Get or create rate limiter for domain."""
        domain = urlparse(url).netloc
        if domain not in self._rate_limiters:
            self._rate_limiters[domain] = RateLimiter(
                requests_per_second=self.requests_per_second
            )
        return self._rate_limiters[domain]

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """
        GET request with rate limiting.

        Raises:
            FetchTimeoutError: Timeout expired
            FetchError: Network failure or non-2xx status
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        limiter = self._get_rate_limiter(url)
        await limiter.acquire()

        logger.debug("http_get", url=url)

        try:
            response = await self._client.get(url, **kwargs)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(
                f"Request timed out after {int(self.timeout * 1000)}ms", url=url
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Request failed: {e}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}", url=url
            )

        return response

    async def get_text(self, url: str, **kwargs) -> str:
        """GET request returning text content."""
        response = await self.get(url, **kwargs)
        return response.text
