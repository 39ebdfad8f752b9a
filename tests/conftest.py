"""Shared fixtures: in-memory stand-ins for the store, notifier and fetcher."""
import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from olx_monitor.parse.models import ListingRecord


class FakeStore:
    """Synchronous-in-effect store; every write is visible immediately."""

    def __init__(self):
        self.records: dict[int, ListingRecord] = {}
        self.created = []
        self.updated = []
        self.summaries = []
        self.prior_runs: set[str] = set()
        self.fail_lookup = False
        self.fail_prior_run = False

    def seed(self, listing_id: int, price: int, url: str = "https://www.olx.com.br/x") -> None:
        now = datetime.now(timezone.utc)
        self.records[listing_id] = ListingRecord(
            id=listing_id, price=price, url=url, created=now, last_update=now
        )

    async def find_by_id(self, listing_id):
        if self.fail_lookup:
            raise RuntimeError("database is locked")
        return self.records.get(listing_id)

    async def create(self, listing):
        if listing.id in self.records:
            return False
        self.created.append(listing)
        now = datetime.now(timezone.utc)
        self.records[listing.id] = ListingRecord(
            id=listing.id,
            search_term=listing.search_term,
            title=listing.title,
            price=int(listing.price),
            url=listing.url,
            created=now,
            last_update=now,
            user_id=listing.user_id,
        )
        return True

    async def update_price(self, listing_id, price):
        self.updated.append((listing_id, price))
        record = self.records[listing_id]
        self.records[listing_id] = record.model_copy(update={"price": price})

    async def has_prior_run(self, url):
        if self.fail_prior_run:
            raise RuntimeError("no such table: logs")
        return url in self.prior_runs

    async def record_run_summary(self, summary):
        self.summaries.append(summary)


class FakeNotifier:
    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.messages = []
        self.fail = fail
        self.raise_error = raise_error

    async def send(self, message, chat_id=None):
        if self.raise_error:
            raise RuntimeError("telegram down")
        self.messages.append((message, chat_id))
        return not self.fail


class FakeFetcher:
    """Serves pages by the value of the o parameter; pages past the list have no ads."""

    def __init__(self, pages, empty_page: str | None = None):
        self.pages = list(pages)
        self.empty_page = empty_page if empty_page is not None else build_page([])
        self.fetched = []

    async def fetch(self, url):
        self.fetched.append(url)
        page = int(parse_qs(urlparse(url).query).get("o", ["1"])[0])
        if page <= len(self.pages):
            return self.pages[page - 1]
        return self.empty_page


def build_ad(listing_id, price="R$ 100.000", subject=None, url=None):
    return {
        "listId": listing_id,
        "subject": subject or f"Anúncio {listing_id}",
        "url": url if url is not None else f"https://rj.olx.com.br/anuncio/{listing_id}",
        "price": price,
    }


def build_page(ads, total_of_ads=None):
    datalayer = ""
    if total_of_ads is not None:
        datalayer = (
            '<script id="datalayer">\n'
            "window.dataLayer = window.dataLayer || [];\n"
            "dataLayer.push(" + json.dumps({"page": {"detail": {"totalOfAds": str(total_of_ads)}}}) + ");\n"
            "</script>"
        )
    next_data = json.dumps({"props": {"pageProps": {"ads": ads}}})
    return (
        "<!DOCTYPE html><html><head><title>OLX</title></head><body>"
        f"{datalayer}"
        f'<script id="__NEXT_DATA__" type="application/json">{next_data}</script>'
        "</body></html>"
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def make_ad():
    return build_ad


@pytest.fixture
def make_page():
    return build_page


@pytest.fixture
def make_fetcher():
    return FakeFetcher
