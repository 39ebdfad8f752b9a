"""Tests for the SQLite listing store."""
import asyncio
from datetime import timedelta, timezone

import aiosqlite
import pytest

from olx_monitor.parse.models import Listing, RunSummary
from olx_monitor.store.listings import ListingStore


@pytest.fixture
def db(tmp_path):
    listing_store = ListingStore(db_path=tmp_path / "ads.db")
    asyncio.run(listing_store.initialize())
    return listing_store


def _listing(listing_id=101, price=150000):
    return Listing(
        id=listing_id,
        url=f"https://rj.olx.com.br/anuncio/{listing_id}",
        title="Apartamento 2 quartos",
        search_term="apartamento",
        price=price,
        notify=True,
        user_id=7,
    )


def test_find_unknown_listing_returns_none(db):
    """Test that an unknown id returns None."""
    assert asyncio.run(db.find_by_id(999)) is None


def test_create_and_find(db):
    """Test that a created listing reads back intact."""
    assert asyncio.run(db.create(_listing())) is True

    record = asyncio.run(db.find_by_id(101))
    assert record.price == 150000
    assert record.title == "Apartamento 2 quartos"
    assert record.search_term == "apartamento"
    assert record.user_id == 7
    assert record.created == record.last_update


def test_create_existing_id_keeps_first_row(db):
    """Test that a second insert of the same id is ignored."""
    asyncio.run(db.create(_listing(price=150000)))
    assert asyncio.run(db.create(_listing(price=1))) is False
    assert asyncio.run(db.find_by_id(101)).price == 150000


def test_update_price(db):
    """Test that update_price changes price and last_update."""
    asyncio.run(db.create(_listing()))
    asyncio.run(db.update_price(101, 120000))

    record = asyncio.run(db.find_by_id(101))
    assert record.price == 120000
    assert record.last_update >= record.created


def test_find_by_search_term(db):
    """Test lookup of stored listings by search term."""
    asyncio.run(db.create(_listing(1)))
    asyncio.run(db.create(_listing(2)))

    records = asyncio.run(db.find_by_search_term("apartamento"))
    assert {record.id for record in records} == {1, 2}
    assert asyncio.run(db.find_by_search_term("casa")) == []


def test_run_summaries_and_prior_run(db):
    """Test that a recorded summary marks the exact URL as scraped."""
    url = "https://www.olx.com.br/imoveis?pe=300000"
    assert asyncio.run(db.has_prior_run(url)) is False

    summary = RunSummary(url=url, ads_found=3, average_price=150000.5, min_price=100000, max_price=200000)
    asyncio.run(db.record_run_summary(summary))

    assert asyncio.run(db.has_prior_run(url)) is True
    assert asyncio.run(db.has_prior_run(url + "&o=2")) is False

    saved = asyncio.run(db.get_run_summaries(url))
    assert len(saved) == 1
    assert saved[0].ads_found == 3
    assert saved[0].average_price == pytest.approx(150000.5)
    assert saved[0].min_price == 100000


def test_lookup_error_raises(tmp_path):
    """A broken database is an error, not an unknown listing."""
    broken = ListingStore(db_path=tmp_path / "empty.db")
    with pytest.raises(aiosqlite.OperationalError):
        asyncio.run(broken.find_by_id(1))


def test_active_targets(db):
    """Test that only active subscriptions are returned, with the user id as chat id."""
    async def seed():
        async with aiosqlite.connect(db.db_path) as conn:
            await conn.execute(
                "INSERT INTO users (id, username, created) VALUES (?, ?, ?)",
                (5511, "maria", "2024-01-01T00:00:00"),
            )
            await conn.executemany(
                "INSERT INTO user_urls (user_id, url, label, is_active, created) VALUES (?, ?, ?, ?, ?)",
                [
                    (5511, "https://www.olx.com.br/celulares?q=iphone", "iphone", 1, "2024-01-01T00:00:00"),
                    (5511, "https://www.olx.com.br/autos?q=gol", "gol", 0, "2024-01-01T00:00:00"),
                ],
            )
            await conn.commit()

    asyncio.run(seed())
    targets = asyncio.run(db.get_active_targets())

    assert len(targets) == 1
    assert targets[0].url == "https://www.olx.com.br/celulares?q=iphone"
    assert targets[0].chat_id == 5511
    assert targets[0].user_id == 5511
    assert targets[0].label == "iphone"

    stats = asyncio.run(db.get_stats())
    assert stats == {"ads": 0, "logs": 0, "users": 1, "user_urls": 2}


def test_timestamps_are_timezone_aware(db):
    """Test that stored and model timestamps carry UTC."""
    asyncio.run(db.create(_listing()))
    record = asyncio.run(db.find_by_id(101))
    summary = RunSummary(url="https://www.olx.com.br/x", ads_found=1, average_price=1.0, min_price=1, max_price=1)

    assert record.created.utcoffset() == timedelta(0)
    assert summary.created.tzinfo == timezone.utc
