"""Per-host request pacing shared by concurrent search runs."""
import asyncio
import logging
import random
import time
from collections import defaultdict
from typing import Dict
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces requests to the same host at least 1 / rate seconds apart."""

    def __init__(self, rate_per_second: float, jitter: float = 0.0):
        self.min_interval = 1.0 / rate_per_second if rate_per_second > 0 else 0.0
        self.jitter = jitter
        self._next_slot: Dict[str, float] = defaultdict(float)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @staticmethod
    def _host(url: str) -> str:
        return urlparse(url).netloc.lower()

    async def acquire(self, url: str) -> float:
        """Wait for the host's next free slot. Returns the time slept."""
        if not self.min_interval:
            return 0.0

        host = self._host(url)
        async with self._locks[host]:
            now = time.monotonic()
            wait_time = max(0.0, self._next_slot[host] - now)
            if wait_time:
                logger.debug(f"Rate limit: waiting {wait_time:.2f}s for {host}")
                await asyncio.sleep(wait_time)
            spacing = self.min_interval + random.uniform(0, self.jitter)
            self._next_slot[host] = time.monotonic() + spacing
            return wait_time
