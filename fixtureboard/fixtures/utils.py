"""Date and time helpers for fixture scheduling."""

from __future__ import annotations

import datetime
import re
from typing import Any, Optional

from fixtureboard.errors import ValidationError

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def to_date(value: Any) -> Optional[datetime.date]:
    """Reduce a stored date value to its calendar day.

    Accepts datetimes (including Firestore timestamps), dates, objects with
    ``to_datetime`` and ISO ``YYYY-MM-DD`` strings.
    """
    if value is None or value == "":
        return None
    if hasattr(value, "to_datetime"):
        value = value.to_datetime()
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.strptime(value[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


def date_key(value: Any) -> Optional[str]:
    """Day-level key used to bucket fixtures, e.g. ``2024-06-01``."""
    day = to_date(value)
    return day.isoformat() if day else None


def parse_date(value: Any) -> datetime.date:
    """Parse a required date input, raising ValidationError when unusable."""
    day = to_date(value)
    if day is None:
        raise ValidationError("A valid date is required.")
    return day


def to_timestamp(day: datetime.date) -> datetime.datetime:
    """Store a calendar day as a midnight datetime."""
    return datetime.datetime.combine(day, datetime.time.min)


def is_valid_time(value: Any) -> bool:
    """True for zero-padded 24h ``HH:MM`` strings."""
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def parse_time(value: Any) -> Optional[datetime.time]:
    if not is_valid_time(value):
        return None
    hours, minutes = value.split(":")
    return datetime.time(int(hours), int(minutes))


def date_range(start: Any, end: Any) -> list[datetime.date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    first = to_date(start)
    last = to_date(end)
    if first is None or last is None or last < first:
        return []
    return [
        first + datetime.timedelta(days=offset)
        for offset in range((last - first).days + 1)
    ]
