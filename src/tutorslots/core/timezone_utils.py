"""
Timezone utilities for the slot booking engine.

Session dates and times are stored as local wall-clock values in the
platform timezone; lead-time checks compare them against UTC instants.
"""

from datetime import date, datetime, time
from typing import Union

import pytz

TzLike = Union[str, pytz.BaseTzInfo]


def get_timezone(tz: TzLike) -> pytz.BaseTzInfo:
    """Return a pytz timezone from a name or an existing timezone."""
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def local_to_utc(day: date, at: time, tz: TzLike) -> datetime:
    """
    Convert a local wall-clock date and time to an aware UTC datetime.

    Args:
        day: Calendar day in the platform timezone
        at: Wall-clock time on that day
        tz: Platform timezone

    Returns:
        Timezone-aware datetime in UTC
    """
    local_tz = get_timezone(tz)
    local_dt = local_tz.localize(datetime.combine(day, at))
    return local_dt.astimezone(pytz.UTC)


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Reject naive datetimes; instants must carry a timezone."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Expected a timezone-aware datetime")
    return dt


def local_today(tz: TzLike) -> date:
    """Today's date in the platform timezone."""
    return datetime.now(get_timezone(tz)).date()
