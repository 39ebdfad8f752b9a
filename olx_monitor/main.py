"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys

from olx_monitor.config import config, Config
from olx_monitor.logging_conf import setup_logging
from olx_monitor.fetch.client import PageFetcher
from olx_monitor.fetch.urls import get_search_term
from olx_monitor.jobs.metrics_exporter import MetricsExporter
from olx_monitor.jobs.runner import ScrapeCycle, SearchRunner, collect_targets
from olx_monitor.notify.telegram import LogNotifier, TelegramNotifier
from olx_monitor.store.listings import ListingStore

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="OLX search monitor: one scrape cycle")

    parser.add_argument(
        "--url",
        action="append",
        default=[],
        help="Search URL to scrape (repeatable). Added to SEARCH_URLS and active subscriptions",
    )
    parser.add_argument(
        "--only-urls",
        action="store_true",
        help="Scrape only the --url values, ignore SEARCH_URLS and subscriptions",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log notifications instead of sending them to Telegram",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Searches scraped at the same time (default: {config.CONCURRENCY})",
    )
    parser.add_argument(
        "--max-ads",
        type=int,
        default=None,
        help=f"Ceiling of valid listings per search (default: {config.MAX_ADS_PER_SEARCH})",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Do not wait for listing processing before writing each run summary",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Log stored listings and recent run summaries per search instead of scraping",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser.parse_args(argv)


async def load_targets(store: ListingStore, args: argparse.Namespace) -> list:
    """Active subscriptions plus SEARCH_URLS and --url, or only --url with --only-urls."""
    stored = [] if args.only_urls else await store.get_active_targets()
    extra = list(args.url) if args.only_urls else list(config.SEARCH_URLS) + list(args.url)
    return collect_targets(stored, extra)


async def run_cycle(args: argparse.Namespace) -> int:
    """Run one scrape cycle. Returns the number of failed searches."""
    store = ListingStore()
    await store.initialize()

    targets = await load_targets(store, args)

    notifier = LogNotifier() if args.dry_run else TelegramNotifier()
    async with PageFetcher() as fetcher, notifier:
        runner = SearchRunner(
            fetcher,
            store,
            notifier,
            max_ads_per_search=args.max_ads,
            wait_for_listings=not args.no_wait,
        )
        cycle = ScrapeCycle(runner, concurrency=args.concurrency)
        cycle.exporter = MetricsExporter(cycle.cycle_id)
        metrics = await cycle.run(targets)

    logger.info(f"Database: {await store.get_stats()}")
    return metrics.counters.get("searches_failed", 0)


async def report(args: argparse.Namespace, history: int = 5) -> int:
    """Log what the store knows about each monitored search. Returns 0."""
    store = ListingStore()
    await store.initialize()

    targets = await load_targets(store, args)

    logger.info(f"Database: {await store.get_stats()}")
    for target in targets:
        logger.info(f"Search {target.url} (chat {target.chat_id or 'default'})")
        summaries = await store.get_run_summaries(target.url, limit=history)
        if not summaries:
            logger.info("  never scraped")
        for summary in summaries:
            logger.info(
                f"  {summary.created:%Y-%m-%d %H:%M} ads={summary.ads_found} "
                f"min={summary.min_price} max={summary.max_price} avg={summary.average_price:.0f}"
            )

        term = get_search_term(target.url)
        if not term:
            continue
        for record in await store.find_by_search_term(term, limit=history):
            logger.info(f"  #{record.id} {record.title} - {record.price} ({record.last_update:%Y-%m-%d})")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        Config.validate(require_telegram=not (args.dry_run or args.report))
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("OLX Monitor starting")
    logger.info(f"Dry-run: {args.dry_run}")
    logger.info(f"Concurrency: {args.concurrency or config.CONCURRENCY}")
    logger.info(f"Rate per domain: {config.RATE_PER_DOMAIN}")
    logger.info("=" * 60)

    try:
        failed = asyncio.run(report(args) if args.report else run_cycle(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    if failed:
        logger.warning(f"{failed} searches failed")


if __name__ == "__main__":
    main()
