"""HTTP client for search result pages with retries and pacing."""
import logging
import random
from typing import Optional
import httpx
from tenacity import (
    RetryError,
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from olx_monitor.config import config
from olx_monitor.fetch.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.5,en;q=0.3",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}


class RetryableStatusError(Exception):
    """Raised for responses worth retrying (429, 5xx)."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code} for {response.url}")


def is_retryable_status(response: httpx.Response) -> bool:
    """Check if status code is retryable."""
    return response.status_code in (429, 500, 502, 503, 504)


class PageFetcher:
    """Fetches search result pages and returns their HTML, or None on failure."""

    def __init__(
        self,
        rate_per_domain: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
        self.client = httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            timeout=timeout if timeout is not None else config.TIMEOUT,
            follow_redirects=True,
            limits=limits,
            transport=transport,
        )
        rate = config.RATE_PER_DOMAIN if rate_per_domain is None else rate_per_domain
        self.rate_limiter = RateLimiter(rate, jitter=0.5 if rate > 0 else 0.0)
        self.requests = 0
        self.failures = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(config.MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(
            (httpx.TimeoutException, httpx.NetworkError, RetryableStatusError)
        ),
    )
    async def _get(self, url: str) -> httpx.Response:
        await self.rate_limiter.acquire(url)
        self.requests += 1
        headers = {"User-Agent": random.choice(USER_AGENTS)}
        response = await self.client.get(url, headers=headers)
        if is_retryable_status(response):
            logger.warning(f"Retryable status {response.status_code} for {url}")
            raise RetryableStatusError(response)
        return response

    async def fetch(self, url: str) -> Optional[str]:
        """Fetch a page body. Returns None when the page could not be retrieved."""
        try:
            response = await self._get(url)
        except RetryError as e:
            self.failures += 1
            cause = e.last_attempt.exception()
            logger.error(f"Giving up on {url} after {config.MAX_RETRIES} attempts: {cause}")
            return None
        except httpx.HTTPError as e:
            self.failures += 1
            logger.error(f"Request failed for {url}: {e}")
            return None

        if response.status_code != 200:
            self.failures += 1
            logger.error(f"Unexpected status {response.status_code} for {url}")
            return None
        if not response.text:
            self.failures += 1
            logger.error(f"Empty body for {url}")
            return None
        return response.text
