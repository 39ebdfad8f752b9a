"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
ADS_DB = Path(os.getenv("DB_FILE", str(DATA_DIR / "ads.db")))
METRICS_FILE = DATA_DIR / "metrics.jsonl"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)


def _split_urls(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [url.strip() for url in raw.split(",") if url.strip()]


class Config:
    """Application configuration."""

    # Site
    PAGE_PARAM: str = os.getenv("PAGE_PARAM", "o")
    # Global searches, scraped without a subscriber (comma separated)
    SEARCH_URLS: list[str] = _split_urls(os.getenv("SEARCH_URLS"))

    # Telegram
    TELEGRAM_TOKEN: str | None = os.getenv("TELEGRAM_TOKEN")
    TELEGRAM_CHAT_ID: str | None = os.getenv("TELEGRAM_CHAT_ID")
    TELEGRAM_API_URL: str = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
    NOTIFY_TIMEOUT: float = float(os.getenv("NOTIFY_TIMEOUT", "5"))

    # Scraper
    CONCURRENCY: int = int(os.getenv("CONCURRENCY", "2"))
    LISTING_CONCURRENCY: int = int(os.getenv("LISTING_CONCURRENCY", "10"))
    RATE_PER_DOMAIN: float = float(os.getenv("RATE_PER_DOMAIN", "1.0"))
    TIMEOUT: int = int(os.getenv("TIMEOUT", "20"))
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    MAX_ADS_PER_SEARCH: int = int(os.getenv("MAX_ADS_PER_SEARCH", "500"))
    PRICE_DROP_THRESHOLD: int = int(os.getenv("PRICE_DROP_THRESHOLD", "5"))

    # Database
    DB_TIMEOUT: float = float(os.getenv("DB_TIMEOUT", "10"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Path = Path(os.getenv("LOG_FILE", str(DATA_DIR / "scraper.log")))

    @classmethod
    def validate(cls, require_telegram: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_telegram and not cls.TELEGRAM_TOKEN:
            errors.append("TELEGRAM_TOKEN is required")
        if cls.CONCURRENCY < 1:
            errors.append("CONCURRENCY must be at least 1")
        if cls.LISTING_CONCURRENCY < 1:
            errors.append("LISTING_CONCURRENCY must be at least 1")
        if cls.MAX_ADS_PER_SEARCH < 1:
            errors.append("MAX_ADS_PER_SEARCH must be at least 1")
        if cls.PRICE_DROP_THRESHOLD < 0:
            errors.append("PRICE_DROP_THRESHOLD must not be negative")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
