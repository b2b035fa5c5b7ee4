"""Core utility functions."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Tuple

TWO_PLACES = Decimal("0.01")


def utcnow() -> datetime:
    """Get current UTC datetime with timezone info. Always use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware (UTC).

    SQLite stores datetimes without timezone info, so naive values read back
    from it are assumed to be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to aware UTC; naive values are taken as UTC.

    SQLite keeps only the wall time, so offsets must be applied before
    storing.
    """
    if dt is None:
        return None
    return ensure_aware(dt).astimezone(timezone.utc)


def month_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Return the [start, end) range of the calendar month containing ``now``.

    Both bounds are naive UTC so they compare cleanly against SQLite-stored
    timestamps.
    """
    current = ensure_aware(now) or utcnow()
    current = current.astimezone(timezone.utc).replace(tzinfo=None)
    start = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def to_money(value: Any) -> Decimal:
    """Coerce a numeric value (Decimal, float, int, str, None) to a 2dp Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def money_str(value: Any) -> str:
    """Render an amount as a fixed two-decimal string."""
    return format(to_money(value), "f")


def escape_like(term: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return (
        term.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )
