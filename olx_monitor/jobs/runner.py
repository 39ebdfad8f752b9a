"""Pagination driver and scrape cycle orchestration."""
import asyncio
import logging
import uuid
from typing import Iterable, Optional, Union

from selectolax.parser import HTMLParser

from olx_monitor.config import config
from olx_monitor.fetch.urls import get_search_term, is_valid_search_url, sanitize_url, set_url_param
from olx_monitor.jobs.metrics import Metrics
from olx_monitor.jobs.metrics_exporter import MetricsExporter
from olx_monitor.jobs.processor import ListingProcessor
from olx_monitor.jobs.session import MAX_ADS_PER_SEARCH, SearchSession
from olx_monitor.notify.messages import results_found_message
from olx_monitor.parse.models import Listing, RunSummary, SearchTarget
from olx_monitor.parse.page_extractor import build_listing, extract_listings, extract_total_of_ads
from olx_monitor.parse.validate import validate_listing

logger = logging.getLogger(__name__)


class SearchRunner:
    """
    Scrapes one search URL page by page until the results run out or the
    per-run ceiling is reached, then records the run summary.

    Listings are handed to the processor as background tasks so that page
    fetching does not wait on store writes and notifications. With
    wait_for_listings (the default) those tasks are joined before the
    summary is written; without it they keep running after run() returns
    and can be awaited with drain().
    """

    def __init__(
        self,
        fetcher,
        store,
        notifier,
        processor: Optional[ListingProcessor] = None,
        max_ads_per_search: int | None = None,
        listing_concurrency: int | None = None,
        page_param: str | None = None,
        wait_for_listings: bool = True,
    ):
        self.fetcher = fetcher
        self.store = store
        self.notifier = notifier
        self.processor = processor or ListingProcessor(store, notifier)
        self.max_ads_per_search = max_ads_per_search or config.MAX_ADS_PER_SEARCH or MAX_ADS_PER_SEARCH
        self.page_param = page_param or config.PAGE_PARAM
        self.wait_for_listings = wait_for_listings
        self._semaphore = asyncio.Semaphore(listing_concurrency or config.LISTING_CONCURRENCY)
        self._background: set[asyncio.Task] = set()

    async def run(self, target: Union[SearchTarget, str]) -> Optional[RunSummary]:
        """Scrape a search and return its summary (None if nothing was recorded)."""
        session = await self.scrape(target)
        return session.summary

    async def scrape(self, target: Union[SearchTarget, str]) -> SearchSession:
        """Scrape a search and return the finished session."""
        if isinstance(target, str):
            target = SearchTarget(url=target)

        session = SearchSession(url=target.url, max_ads_limit=self.max_ads_per_search)
        search_term = get_search_term(target.url)
        notify = await self._url_already_searched(target.url)
        if notify:
            logger.info(f"URL {target.url} already processed - notifications enabled")
        else:
            logger.info(f"First run for URL {target.url} - notifications disabled")

        pending: set[asyncio.Task] = set()
        try:
            await self._paginate(session, target, search_term, notify, pending)
        except Exception as e:
            session.aborted = True
            logger.error(f"Scraping failed for {target.url} on page {session.page}: {e}", exc_info=True)
        finally:
            if pending:
                if self.wait_for_listings:
                    await asyncio.gather(*pending, return_exceptions=True)
                else:
                    self._background.update(pending)
                    for task in pending:
                        task.add_done_callback(self._background.discard)

        if session.aborted:
            return session

        stats = session.get_summary()
        logger.info(f"Valid ads: {session.valid_ads}")
        session.summary = session.to_summary()
        if session.summary is None:
            return session

        logger.info(f"Maximum price: {stats['max_price']}")
        logger.info(f"Minimum price: {stats['min_price']}")
        logger.info(f"Average price: {stats['average_price']}")
        await self.store.record_run_summary(session.summary)
        return session

    async def drain(self) -> None:
        """Wait for listing tasks left running by runs with wait_for_listings=False."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _url_already_searched(self, url: str) -> bool:
        try:
            return await self.store.has_prior_run(url)
        except Exception as e:
            logger.error(f"Could not check previous runs for {url}: {e}")
            return False

    async def _paginate(
        self,
        session: SearchSession,
        target: SearchTarget,
        search_term: str,
        notify: bool,
        pending: set[asyncio.Task],
    ) -> None:
        next_page = True
        while next_page:
            page_url = set_url_param(target.url, self.page_param, session.page)
            html = await self.fetcher.fetch(page_url)
            if not html:
                logger.error(f"Failed to fetch URL: {page_url}")
                session.aborted = True
                return

            parser = HTMLParser(html)
            if session.page == 1:
                await self._apply_total(parser, session, target, notify)

            next_page = self._scrape_page(parser, session, target, search_term, notify, pending)

            if session.limit_reached:
                logger.info(f"Limit of {session.max_ads_limit} valid ads reached. Stopping search.")
                next_page = False

            if next_page:
                session.page += 1

    async def _apply_total(
        self,
        parser: HTMLParser,
        session: SearchSession,
        target: SearchTarget,
        notify: bool,
    ) -> None:
        total = extract_total_of_ads(parser)
        if not total:
            return

        session.apply_total(total, cap=self.max_ads_per_search)
        logger.info(f"Total ads found: {total}, using limit: {session.max_ads_limit}")

        if not notify:
            try:
                await self.notifier.send(results_found_message(total), target.chat_id)
            except Exception as e:
                logger.error(f"Could not send initial notification: {e}")

    def _scrape_page(
        self,
        parser: HTMLParser,
        session: SearchSession,
        target: SearchTarget,
        search_term: str,
        notify: bool,
        pending: set[asyncio.Task],
    ) -> bool:
        """Dispatch the page's listings. Returns False when the page had none."""
        records = extract_listings(parser)
        if not records:
            return False

        session.ads_found += len(records)
        logger.info(f"Checking new ads for: {search_term or target.url}")
        logger.info(f"Ads found: {session.ads_found}")

        for position, raw in enumerate(records, start=1):
            if session.limit_reached:
                break

            logger.debug(f"Checking ad: {position}")
            listing = build_listing(raw, search_term, notify, target.user_id, target.chat_id)
            pending.add(asyncio.create_task(self._process(listing, session)))

            if validate_listing(listing):
                session.record_price(int(listing.price))

        return True

    async def _process(self, listing: Listing, session: SearchSession) -> None:
        async with self._semaphore:
            outcome = await self.processor.process(listing)
        session.outcomes[outcome.value] += 1


def collect_targets(
    stored: Iterable[SearchTarget],
    extra_urls: Iterable[str] = (),
) -> list[SearchTarget]:
    """
    Merge subscriptions with global URLs, sanitizing and dropping invalid
    or duplicate (url, chat) pairs.
    """
    targets: list[SearchTarget] = []
    seen: set[tuple[str, object]] = set()
    candidates = list(stored) + [SearchTarget(url=url) for url in extra_urls]

    for target in candidates:
        url = sanitize_url(target.url.strip())
        if not is_valid_search_url(url):
            logger.warning(f"Skipping invalid search URL: {target.url}")
            continue
        key = (url, target.chat_id)
        if key in seen:
            continue
        seen.add(key)
        targets.append(target.model_copy(update={"url": url}))
    return targets


class ScrapeCycle:
    """Runs every target once, several searches at a time."""

    def __init__(
        self,
        runner: SearchRunner,
        concurrency: int | None = None,
        exporter: Optional[MetricsExporter] = None,
    ):
        self.runner = runner
        self.concurrency = concurrency or config.CONCURRENCY
        self.cycle_id = str(uuid.uuid4())
        self.exporter = exporter

    async def run(self, targets: list[SearchTarget]) -> Metrics:
        logger.info(f"Cycle {self.cycle_id}: {len(targets)} searches")
        metrics = Metrics(len(targets))
        if not targets:
            logger.info("No URLs to monitor. Add search URLs through the bot or SEARCH_URLS.")
            return metrics

        semaphore = asyncio.Semaphore(self.concurrency)
        sessions = []

        async def run_target(target: SearchTarget) -> None:
            async with semaphore:
                try:
                    sessions.append(await self.runner.scrape(target))
                except Exception as e:
                    logger.error(f"Error scraping {target.url}: {e}", exc_info=True)
                    metrics.increment("searches_failed")

        try:
            await asyncio.gather(*(run_target(target) for target in targets))
            # Outcomes of fire-and-forget listing tasks land in their sessions
            await self.runner.drain()
            for session in sessions:
                self._tally(metrics, session)
        finally:
            self._final_report(metrics)
            if self.exporter:
                await self.exporter.export_metrics(metrics.get_summary())
        return metrics

    @staticmethod
    def _tally(metrics: Metrics, session: SearchSession) -> None:
        metrics.increment("searches_failed" if session.aborted else "searches_done")
        if session.summary is not None:
            metrics.increment("summaries")
        metrics.increment("listings", session.ads_found)
        for outcome, count in session.outcomes.items():
            metrics.increment(outcome, count)

    def _final_report(self, metrics: Metrics) -> None:
        logger.info("=" * 60)
        logger.info("FINAL REPORT")
        logger.info(f"Cycle ID: {self.cycle_id}")
        metrics.report()
        logger.info("=" * 60)
