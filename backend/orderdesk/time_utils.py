from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional

# Stored datetimes are naive and always mean UTC.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive input is assumed UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse client-supplied timestamps.

    Accepted:
    - "YYYY-MM-DD" (midnight UTC)
    - RFC 3339 date-times, with "Z" or a numeric offset
    - naive "YYYY-MM-DDTHH:MM[:SS]" (taken as UTC)

    Blank input gives None. Anything else raises ValueError.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min)

    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    return as_utc_naive(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 at second precision with a trailing 'Z'."""
    if dt is None:
        return None
    stamp = as_utc_naive(dt).replace(microsecond=0)
    return stamp.isoformat() + "Z"
