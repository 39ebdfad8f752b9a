"""Per-run pagination state and price statistics."""
import time
import logging
from collections import Counter
from typing import Optional
from dataclasses import dataclass, field

from olx_monitor.parse.models import RunSummary

logger = logging.getLogger(__name__)

MAX_ADS_PER_SEARCH = 500


@dataclass
class SearchSession:
    """State of one pagination run over one search URL. Never shared between runs."""

    url: str
    max_ads_limit: int = MAX_ADS_PER_SEARCH

    page: int = 1
    ads_found: int = 0
    valid_ads: int = 0
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    sum_prices: int = 0
    total_of_ads: Optional[int] = None
    start_time: float = field(default_factory=time.time)
    outcomes: Counter = field(default_factory=Counter)
    aborted: bool = False
    summary: Optional[RunSummary] = None

    def apply_total(self, total_of_ads: int, cap: int = MAX_ADS_PER_SEARCH) -> None:
        """Record the site's reported total and lower the ceiling to it."""
        self.total_of_ads = total_of_ads
        self.max_ads_limit = min(total_of_ads, cap)

    @property
    def limit_reached(self) -> bool:
        return self.valid_ads >= self.max_ads_limit

    @property
    def remaining(self) -> int:
        return max(0, self.max_ads_limit - self.valid_ads)

    def record_price(self, price: int) -> None:
        """Fold a valid listing's price into the running statistics."""
        self.valid_ads += 1
        self.sum_prices += price
        self.min_price = price if self.min_price is None else min(self.min_price, price)
        self.max_price = price if self.max_price is None else max(self.max_price, price)

    @property
    def average_price(self) -> float:
        if not self.valid_ads:
            return 0.0
        return self.sum_prices / self.valid_ads

    def to_summary(self) -> Optional[RunSummary]:
        """Build the run summary, or None when no valid listing was seen."""
        if not self.valid_ads:
            return None
        return RunSummary(
            url=self.url,
            ads_found=self.valid_ads,
            average_price=self.average_price,
            min_price=self.min_price,
            max_price=self.max_price,
        )

    def get_summary(self) -> dict:
        """Get summary statistics for logging."""
        return {
            "pages": self.page,
            "ads_found": self.ads_found,
            "valid_ads": self.valid_ads,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "average_price": round(self.average_price, 2),
            "total_of_ads": self.total_of_ads,
            "elapsed_seconds": round(time.time() - self.start_time, 2),
        }
