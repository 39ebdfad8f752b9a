"""SQLite store for listings, scrape run summaries and search subscriptions."""
import aiosqlite
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from olx_monitor.config import ADS_DB, config
from olx_monitor.parse.models import Listing, ListingRecord, RunSummary, SearchTarget

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS ads (
        id INTEGER PRIMARY KEY,
        search_term TEXT NOT NULL,
        title TEXT NOT NULL,
        price INTEGER NOT NULL,
        url TEXT NOT NULL,
        created TEXT NOT NULL,
        last_update TEXT NOT NULL,
        user_id INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT NOT NULL,
        ads_found INTEGER NOT NULL,
        average_price NUMERIC NOT NULL,
        min_price NUMERIC NOT NULL,
        max_price NUMERIC NOT NULL,
        created TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY,
        username TEXT,
        first_name TEXT,
        last_name TEXT,
        created TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_urls (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        url TEXT NOT NULL,
        label TEXT,
        is_active INTEGER DEFAULT 1,
        created TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ads_search_term ON ads(search_term)",
    "CREATE INDEX IF NOT EXISTS idx_logs_url ON logs(url)",
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ListingStore:
    """
    Persistence for the scrape-and-diff pipeline.

    find_by_id returns None for an unknown listing; database errors are
    raised to the caller so they are never mistaken for "not found".
    """

    def __init__(self, db_path: Path = ADS_DB, timeout: float | None = None):
        self.db_path = db_path
        self.timeout = config.DB_TIMEOUT if timeout is None else timeout

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(self.db_path, timeout=self.timeout)

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        async with self._connect() as db:
            for statement in SCHEMA:
                await db.execute(statement)
            await db.commit()
        logger.info(f"Listing database initialized at {self.db_path}")

    async def find_by_id(self, listing_id: int) -> Optional[ListingRecord]:
        """Return the stored listing, or None if it was never seen."""
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM ads WHERE id = ?", (listing_id,))
            row = await cursor.fetchone()
        if row is None:
            return None
        return ListingRecord(**dict(row))

    async def find_by_search_term(self, term: str, limit: int = 50) -> list[ListingRecord]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM ads WHERE search_term = ? ORDER BY last_update DESC LIMIT ?",
                (term, limit),
            )
            rows = await cursor.fetchall()
        return [ListingRecord(**dict(row)) for row in rows]

    async def create(self, listing: Listing) -> bool:
        """
        Insert a new listing. Returns False if another run stored the same
        id first; the existing row is left untouched.
        """
        now = _now()
        async with self._connect() as db:
            cursor = await db.execute(
                """
                INSERT INTO ads (id, search_term, title, price, url, created, last_update, user_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (
                    listing.id,
                    listing.search_term,
                    listing.title,
                    int(listing.price),
                    listing.url,
                    now,
                    now,
                    listing.user_id,
                ),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def update_price(self, listing_id: int, price: int) -> None:
        async with self._connect() as db:
            await db.execute(
                "UPDATE ads SET price = ?, last_update = ? WHERE id = ?",
                (int(price), _now(), listing_id),
            )
            await db.commit()

    async def record_run_summary(self, summary: RunSummary) -> None:
        """Append one scrape run summary."""
        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO logs (url, ads_found, average_price, min_price, max_price, created)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    summary.url,
                    summary.ads_found,
                    summary.average_price,
                    summary.min_price,
                    summary.max_price,
                    summary.created.isoformat(),
                ),
            )
            await db.commit()

    async def get_run_summaries(self, url: str, limit: int = 10) -> list[RunSummary]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT url, ads_found, average_price, min_price, max_price, created
                FROM logs WHERE url = ? ORDER BY id DESC LIMIT ?
                """,
                (url, limit),
            )
            rows = await cursor.fetchall()
        return [RunSummary(**dict(row)) for row in rows]

    async def has_prior_run(self, url: str) -> bool:
        """Check if a run summary was ever recorded for this exact URL."""
        async with self._connect() as db:
            cursor = await db.execute("SELECT 1 FROM logs WHERE url = ? LIMIT 1", (url,))
            row = await cursor.fetchone()
            return row is not None

    async def get_active_targets(self) -> list[SearchTarget]:
        """Active subscriptions; a user's id doubles as their Telegram chat id."""
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT uu.url, uu.user_id, uu.label, u.id AS chat_id
                FROM user_urls uu
                JOIN users u ON uu.user_id = u.id
                WHERE uu.is_active = 1
                ORDER BY uu.id
                """
            )
            rows = await cursor.fetchall()
        return [SearchTarget(**dict(row)) for row in rows]

    async def get_stats(self) -> dict:
        """Row counts per table."""
        stats = {}
        async with self._connect() as db:
            for table in ("ads", "logs", "users", "user_urls"):
                cursor = await db.execute(f"SELECT COUNT(*) FROM {table}")
                row = await cursor.fetchone()
                stats[table] = row[0]
        return stats
