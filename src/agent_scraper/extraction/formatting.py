"""
Money and number formatting shared by every extraction tier.

Dollar amounts are rendered compactly: "$1.2M", "$650K", "$900".
Rounding is half-up so "$650.5K" becomes "$651K", not "$650K".
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PATTERN = re.compile(
    r"\$?\s*(\d[\d,]*(?:\.\d+)?)\s*([KMB])?\b",
    re.IGNORECASE,
)

PRICE_RANGE_PATTERN = re.compile(
    r"(\$\s*\d[\d,]*(?:\.\d+)?\s*[KMB]?)\s*(?:-|–|—|to)\s*(\$\s*\d[\d,]*(?:\.\d+)?\s*[KMB]?)",
    re.IGNORECASE,
)

_SUFFIX_MULTIPLIERS = {
    "": 1,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def _round_half_up(value: float, places: int) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def _as_amount(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


def format_price(value: float | int | str | None) -> str | None:
    """
    Format a raw dollar amount.

    >= 1,000,000 renders as millions with one decimal, >= 1,000 as whole
    thousands, anything smaller as the plain amount.

    Returns:
        Formatted string, or None for missing or invalid input
    """
    amount = _as_amount(value)
    if amount is None:
        return None

    try:
        if amount >= 1_000_000:
            return f"${_round_half_up(amount / 1_000_000, 1)}M"
        if amount >= 1_000:
            return f"${_round_half_up(amount / 1_000, 0)}K"
    except InvalidOperation:
        # Too many digits for the decimal context
        return None
    if amount.is_integer():
        return f"${int(amount)}"
    return f"${amount}"


def format_price_range(low: float | int | None, high: float | int | None) -> str | None:
    """Format "<low> - <high>"; None unless both ends format."""
    low_text = format_price(low)
    high_text = format_price(high)
    if low_text is None or high_text is None:
        return None
    return f"{low_text} - {high_text}"


def parse_price(text: str | None) -> float | None:
    """
    Parse a money string back to dollars.

    >>> parse_price("$650K")
    650000.0
    >>> parse_price("$1,250,000")
    1250000.0
    """
    if not text:
        return None

    match = MONEY_PATTERN.search(text)
    if match is None:
        return None

    number = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").upper()
    return number * _SUFFIX_MULTIPLIERS[suffix]


def normalize_price(text: str | None) -> str | None:
    """
    Re-render a money string found in page text in the canonical format.

    Text without a dollar sign is rejected so counts are never mistaken
    for prices.
    """
    if not text or "$" not in text:
        return None
    return format_price(parse_price(text))


def parse_price_range(text: str | None) -> str | None:
    """Find a "$a - $b" range in text and render it canonically."""
    if not text:
        return None

    match = PRICE_RANGE_PATTERN.search(text)
    if match is None:
        return None

    low = normalize_price(match.group(1))
    high = normalize_price(match.group(2))
    if low is None or high is None:
        return None
    return f"{low} - {high}"


def parse_number(text: str | None) -> int | None:
    """
    Extract the first integer from text like "42 sales" or "1,204".
    """
    if not text:
        return None

    match = re.search(r"\d+", text.replace(",", ""))
    return int(match.group(0)) if match else None
