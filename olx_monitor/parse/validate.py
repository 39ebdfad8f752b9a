"""Listing validation."""
import math

from olx_monitor.parse.models import Listing


def validate_listing(listing: Listing) -> bool:
    """
    Check that a scraped record is a real listing.
    Result pages mix banners and ads into the same data block; those come
    without an id, url or price. The outcome is stored on listing.valid.
    """
    price_ok = isinstance(listing.price, (int, float)) and not (
        isinstance(listing.price, float) and math.isnan(listing.price)
    )
    listing.valid = bool(listing.id) and bool(listing.url) and price_ok
    return listing.valid
