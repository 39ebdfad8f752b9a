"""Extract listings and result counts from OLX search result pages."""
import logging
from typing import Any, Optional, Union

import orjson
from selectolax.parser import HTMLParser

from olx_monitor.parse.models import Listing
from olx_monitor.parse.price import parse_price

logger = logging.getLogger(__name__)

NEXT_DATA_SELECTOR = 'script[id="__NEXT_DATA__"]'
DATALAYER_SELECTOR = 'script[id="datalayer"]'
DATALAYER_MARKER = "dataLayer.push("

Document = Union[str, HTMLParser]


def _as_parser(document: Document) -> HTMLParser:
    if isinstance(document, HTMLParser):
        return document
    return HTMLParser(document or "")


def _script_text(parser: HTMLParser, selector: str) -> str:
    node = parser.css_first(selector)
    if node is None:
        return ""
    return node.text(deep=True, strip=True)


def extract_listings(document: Document) -> list[dict[str, Any]]:
    """
    Read the ads array from the __NEXT_DATA__ render payload.
    Returns an empty list when the page has no usable listings, which the
    pagination loop treats as the last page.
    """
    script = _script_text(_as_parser(document), NEXT_DATA_SELECTOR)
    if not script:
        return []

    try:
        data = orjson.loads(script)
    except orjson.JSONDecodeError as e:
        logger.debug(f"Invalid __NEXT_DATA__ payload: {e}")
        return []

    try:
        ads = data["props"]["pageProps"]["ads"]
    except (KeyError, TypeError):
        return []

    if not isinstance(ads, list):
        return []
    return [ad for ad in ads if isinstance(ad, dict)]


def build_listing(
    raw: dict[str, Any],
    search_term: str,
    notify: bool,
    user_id: Optional[int] = None,
    chat_id: Optional[Union[int, str]] = None,
) -> Listing:
    """Map one raw ads entry onto a Listing."""
    try:
        listing_id = int(raw.get("listId") or 0)
    except (TypeError, ValueError):
        listing_id = 0

    return Listing(
        id=listing_id,
        url=str(raw.get("url") or ""),
        title=str(raw.get("subject") or raw.get("title") or ""),
        search_term=search_term,
        price=parse_price(raw.get("price")),
        notify=notify,
        user_id=user_id,
        chat_id=chat_id,
    )


def find_balanced_object(text: str, start: int = 0) -> Optional[tuple[int, int]]:
    """
    Locate the first "{" at or after start and scan to its matching "}".
    Returns the (begin, end) slice bounds, or None if there is no opening
    brace or the braces never balance. Braces inside string literals are
    not counted.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(begin, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return begin, index + 1
    return None


def extract_total_of_ads(document: Document) -> Optional[int]:
    """
    Read page.detail.totalOfAds from the analytics dataLayer.push({...}) call.
    Any missing piece or malformed payload yields None.
    """
    script = _script_text(_as_parser(document), DATALAYER_SELECTOR)
    if not script:
        return None

    marker = script.find(DATALAYER_MARKER)
    if marker == -1:
        return None

    span = find_balanced_object(script, marker + len(DATALAYER_MARKER))
    if span is None:
        logger.debug("Unbalanced dataLayer payload")
        return None

    try:
        data = orjson.loads(script[span[0]:span[1]])
        value = data["page"]["detail"]["totalOfAds"]
    except (orjson.JSONDecodeError, KeyError, TypeError) as e:
        logger.debug(f"Could not extract totalOfAds from dataLayer: {e}")
        return None

    if isinstance(value, bool):
        return None
    try:
        total = int(str(value).strip())
    except ValueError:
        return None
    return total if total > 0 else None
