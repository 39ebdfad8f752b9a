"""Per-listing diff against the store: create, update price, notify."""
import logging
import math

from olx_monitor.config import config
from olx_monitor.notify.messages import new_listing_message, price_drop_message
from olx_monitor.parse.models import Listing, ListingRecord, ProcessOutcome
from olx_monitor.parse.validate import validate_listing

logger = logging.getLogger(__name__)


def price_drop_percent(old_price: int, new_price: int) -> int:
    """Rounded absolute percentage change from old_price to new_price."""
    if not old_price:
        return 0
    # Halves round up, not to even
    return math.floor(abs((new_price - old_price) / old_price * 100) + 0.5)


class ListingProcessor:
    """
    Decides what to do with one scraped listing.

    store must provide find_by_id, create (False when the id already exists)
    and update_price; notifier must provide send(message, chat_id) returning
    a bool without raising.
    """

    def __init__(self, store, notifier, drop_threshold: int | None = None):
        self.store = store
        self.notifier = notifier
        self.drop_threshold = config.PRICE_DROP_THRESHOLD if drop_threshold is None else drop_threshold

    async def process(self, listing: Listing) -> ProcessOutcome:
        """Process a listing; failures are logged and reported as FAILED."""
        if not validate_listing(listing):
            logger.debug(f"Skipping invalid listing id={listing.id} url={listing.url!r}")
            return ProcessOutcome.INVALID

        try:
            saved = await self.store.find_by_id(listing.id)
            if saved is None:
                return await self._create(listing)
            return await self._check_price_change(listing, saved)
        except Exception as e:
            logger.error(f"Error processing listing {listing.id}: {e}", exc_info=True)
            return ProcessOutcome.FAILED

    async def _create(self, listing: Listing) -> ProcessOutcome:
        if not await self.store.create(listing):
            # Same id stored by a sibling task or search since the lookup
            logger.debug(f"Listing {listing.id} already stored, skipping new listing alert")
            return ProcessOutcome.UNCHANGED
        logger.info(f"Listing {listing.id} added to the database")

        if listing.notify:
            await self._notify(new_listing_message(listing), listing)
        return ProcessOutcome.CREATED

    async def _check_price_change(self, listing: Listing, saved: ListingRecord) -> ProcessOutcome:
        if listing.price == saved.price:
            return ProcessOutcome.UNCHANGED

        await self.store.update_price(listing.id, int(listing.price))
        logger.info(f"Listing {listing.id} price changed: {saved.price} -> {listing.price}")

        if listing.price > saved.price:
            return ProcessOutcome.UPDATED_SILENT

        drop = price_drop_percent(saved.price, int(listing.price))
        if drop <= self.drop_threshold:
            logger.debug(
                f"Price reduction of {drop}% is not above {self.drop_threshold}%, notification skipped"
            )
            return ProcessOutcome.UPDATED_SILENT

        logger.info(f"This listing had a price reduction of {drop}%: {listing.url}")
        await self._notify(price_drop_message(listing, saved.price, drop), listing)
        return ProcessOutcome.UPDATED_NOTIFIED

    async def _notify(self, message: str, listing: Listing) -> bool:
        try:
            sent = await self.notifier.send(message, listing.chat_id)
        except Exception as e:
            logger.error(f"Could not send a notification for listing {listing.id}: {e}")
            return False
        if not sent:
            logger.warning(f"Notification for listing {listing.id} was not delivered")
        return sent
