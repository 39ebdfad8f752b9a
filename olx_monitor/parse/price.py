"""Brazilian real price parsing and formatting."""
import math
import re
from typing import Any

CURRENCY_PREFIX = "R$"
THOUSANDS_SEPARATOR = "."
DECIMAL_SEPARATOR = ","

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def parse_price(value: Any) -> int:
    """
    Normalize a price such as "R$ 1.234.567" into an integer amount.
    Fractions are truncated, the sign is kept, anything unparseable yields 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)
    if not isinstance(value, str):
        return 0

    cleaned = value.strip().replace(CURRENCY_PREFIX, "")
    cleaned = cleaned.replace(THOUSANDS_SEPARATOR, "").replace(" ", "").replace("\xa0", "")
    # Drop the decimal part, no rounding
    cleaned = cleaned.split(DECIMAL_SEPARATOR, 1)[0]

    if not _INTEGER_RE.match(cleaned):
        return 0
    return int(cleaned)


def format_price(value: Any) -> str:
    """Render an amount as "R$ 1.500"; missing or non-numeric values give "R$ 0"."""
    if value is None or isinstance(value, bool) or value == "":
        return "R$ 0"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "R$ 0"
    if not math.isfinite(number):
        return "R$ 0"

    amount = int(number)
    grouped = f"{abs(amount):,}".replace(",", THOUSANDS_SEPARATOR)
    sign = "-" if amount < 0 else ""
    return f"{CURRENCY_PREFIX} {sign}{grouped}"
