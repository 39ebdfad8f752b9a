"""URL helpers for OLX search pages."""
import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

logger = logging.getLogger(__name__)

ALLOWED_HOSTS = ("www.olx.com.br", "olx.com.br")
MAX_SEARCH_PATH_DEPTH = 5
TRACKING_PARAMS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
    "ref",
    "source",
    "campaign",
)


def set_url_param(url: str, name: str, value: object) -> str:
    """Return url with query parameter name set to value, other parameters untouched."""
    parsed = urlparse(url)
    query = [(key, val) for key, val in parse_qsl(parsed.query, keep_blank_values=True) if key != name]
    query.append((name, str(value)))
    return urlunparse(parsed._replace(query=urlencode(query)))


def get_search_term(url: str) -> str:
    """Return the q parameter of a search URL, or an empty string."""
    for key, value in parse_qsl(urlparse(url).query, keep_blank_values=True):
        if key == "q":
            return value
    return ""


def sanitize_url(url: str) -> str:
    """Strip tracking parameters so the same search always maps to one URL."""
    try:
        parsed = urlparse(url)
    except ValueError as e:
        logger.error(f"Error sanitizing URL {url}: {e}")
        return url
    query = [
        (key, val)
        for key, val in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in TRACKING_PARAMS
    ]
    return urlunparse(parsed._replace(query=urlencode(query)))


def is_valid_search_url(url: str) -> bool:
    """Accept https OLX Brasil search pages; reject other hosts and single-ad pages."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme != "https":
        return False
    if (parsed.hostname or "").lower() not in ALLOWED_HOSTS:
        return False
    segments = [part for part in parsed.path.split("/") if part]
    return len(segments) <= MAX_SEARCH_PATH_DEPTH
