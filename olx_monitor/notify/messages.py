"""Notification texts sent to subscribers."""
from olx_monitor.parse.models import Listing
from olx_monitor.parse.price import format_price


def new_listing_message(listing: Listing) -> str:
    return (
        "🆕 Novo anúncio encontrado!\n"
        f"{listing.title} - {format_price(listing.price)}\n\n"
        f"{listing.url}"
    )


def price_drop_message(listing: Listing, old_price: int, drop_percent: int) -> str:
    return (
        f"📉 Preço baixou {drop_percent}%!\n"
        f"De {format_price(old_price)} para {format_price(listing.price)}\n\n"
        f"{listing.url}"
    )


def results_found_message(total_of_ads: int) -> str:
    return (
        f"🔍 Foram encontrados {total_of_ads} anúncios para essa busca.\n\n"
        "Você será notificado sempre que aparecer novos anúncios "
        "ou algum anúncio cair de preço."
    )
