"""Wall-clock helpers for slots and meetings"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def resolve_zone(tz_name: str):
    """Return the ZoneInfo for an IANA identifier, falling back to UTC if unknown"""
    try:
        return ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"⚠️ Unknown timezone {tz_name!r}, treating as UTC")
        return timezone.utc


def local_to_utc(day: date, at: time, tz_name: str) -> datetime:
    """Combine a local date and wall-clock time and convert to naive UTC for storage"""
    local = datetime.combine(day, at).replace(tzinfo=resolve_zone(tz_name))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def minutes_between(start: time, end: time) -> int:
    """Minutes from start to end on the same day (negative if end is earlier)"""
    delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
    return round(delta / timedelta(minutes=1))


def parse_time_window(window: str) -> tuple[time, time]:
    """
    Parse a "HH:MM-HH:MM" window.

    Raises:
        ValueError: If the window is malformed or does not end after it starts
    """
    start_raw, _, end_raw = window.strip().partition("-")
    start = time.fromisoformat(start_raw.strip())
    end = time.fromisoformat(end_raw.strip())
    if end <= start:
        raise ValueError(f"Time window must end after it starts: {window}")
    return start, end


def next_business_days(start: date, count: int) -> list[date]:
    """The first `count` weekdays (Mon-Fri) on or after `start`"""
    days = []
    cursor = start
    while len(days) < count:
        if cursor.weekday() < 5:
            days.append(cursor)
        cursor += timedelta(days=1)
    return days


def ensure_naive(at: time) -> time:
    """
    Reject wall-clock times that carry a UTC offset.

    Raises:
        ValueError: If the time has tzinfo; the zone travels separately as an IANA name
    """
    if at.tzinfo is not None:
        raise ValueError("Times must not carry a UTC offset, send the timezone field instead")
    return at


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
