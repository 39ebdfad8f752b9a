"""Counters for one scrape cycle."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)


class Metrics:
    """Track outcomes across the searches of one cycle."""

    def __init__(self, total_searches: int):
        self.total_searches = total_searches
        self.start_time = time.time()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] += amount

    def elapsed(self) -> float:
        return time.time() - self.start_time

    def report(self) -> None:
        """Log current metrics."""
        logger.info(
            f"Searches: {self.counters['searches_done']}/{self.total_searches} | "
            f"Failed: {self.counters['searches_failed']} | "
            f"Listings: {self.counters['listings']} "
            f"(created: {self.counters['created']}, "
            f"price drops notified: {self.counters['updated_notified']}, "
            f"updated: {self.counters['updated_silent']}, "
            f"invalid: {self.counters['invalid']}, "
            f"errors: {self.counters['failed']}) | "
            f"Elapsed: {self.elapsed():.1f}s"
        )

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        summary = {"total_searches": self.total_searches}
        summary.update(self.counters)
        summary["elapsed_seconds"] = round(self.elapsed(), 2)
        return summary
