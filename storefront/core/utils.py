"""
Core Utilities

Shared helpers used across the application.
"""
import re
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def to_money(amount) -> Decimal:
    """Quantize any numeric value to cents, rounding half up."""
    if amount is None:
        return Decimal("0.00")
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def dollars_to_cents(amount) -> int:
    """Convert a dollar amount to integer cents."""
    return int(to_money(amount) * 100)


def slugify(value: str) -> str:
    value = re.sub(r"[^\w\s-]", "", value.lower()).strip()
    return re.sub(r"[-\s_]+", "-", value)
