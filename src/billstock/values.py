"""Shared value helpers: identifiers, numeric parsing, currency and timestamps."""

import math
import random
import string
from datetime import UTC, datetime
from typing import Any

from billstock.config import get_settings

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 7


def gen_id() -> str:
    """Return a short random base-36 token.

    Collisions are possible but unlikely enough for per-user catalogs.
    """
    return "".join(random.choices(ID_ALPHABET, k=ID_LENGTH))


def parse_number(value: Any) -> float:
    """Interpret free-form numeric input, falling back to zero.

    Accepts numbers and strings such as ``"12.5"`` or ``" 3 "``. Empty,
    partial or malformed text (``""``, ``"."``, ``"abc"``) and non-finite
    values all yield ``0.0``.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def format_currency(amount: Any, symbol: str | None = None) -> str:
    """Format an amount for display, e.g. ``₹120.00``."""
    if symbol is None:
        symbol = get_settings().currency_symbol
    return f"{symbol}{parse_number(amount):.2f}"


def now() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


def to_millis(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_millis(value: Any) -> datetime | None:
    """Convert epoch milliseconds to a UTC datetime, or None if unusable."""
    millis = parse_number(value)
    if millis <= 0:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None
