"""Shared utilities: clock times, calendar dates, money and phone numbers."""

import calendar
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

CENT = Decimal("0.01")


def to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` clock time to minutes from midnight.

    Examples:
        >>> to_minutes("09:30")
        570
    """
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Time must be HH:MM, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        raise ValueError(f"Time out of range: {value!r}")
    return hours * 60 + minutes


def to_hhmm(minutes: int) -> str:
    """Convert minutes from midnight to a zero-padded ``HH:MM`` string.

    Examples:
        >>> to_hhmm(1080)
        '18:00'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}") from None


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month."""
    match = _MONTH_RE.match(month.strip())
    if not match:
        raise ValueError(f"Month must be YYYY-MM, got {month!r}")
    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12:
        raise ValueError(f"Month out of range: {month!r}")
    last = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last)


def round_money(amount: Decimal) -> Decimal:
    """Round a currency amount half-up to the minor unit."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer minor units (pence, cents)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("01273 555 010")
        '01273555010'
        >>> normalize_phone("+44 (1273) 555-010")
        '+441273555010'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)
