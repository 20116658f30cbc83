from __future__ import annotations

from datetime import datetime, time

from ..core.constants import MINUTES_PER_DAY


def time_to_minutes(t: time, *, is_end_time: bool = False) -> int:
    """
    Convert time to minutes since midnight.

    Args:
        t: Time object.
        is_end_time: If True, treat time(0, 0) as 1440 (end of day).

    Returns:
        Minutes since midnight (0-1440).
    """
    minutes = t.hour * 60 + t.minute
    if is_end_time and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def minutes_to_time(minutes: int) -> time:
    """Convert minutes since midnight (0-1439) to a time."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def string_to_time(time_str: str) -> time:
    """Parse HH:MM or HH:MM:SS, treating '24:00' as midnight."""
    normalized = time_str.strip()
    if len(normalized) == 4 and normalized[1] == ":":
        normalized = "0" + normalized
    if len(normalized) == 5:
        normalized += ":00"
    if normalized == "24:00:00":
        return time(0, 0)
    return datetime.strptime(normalized, "%H:%M:%S").time()


def time_to_string(t: time) -> str:
    """Always return HH:MM format"""
    return t.strftime("%H:%M")


def format_12h(t: time) -> str:
    """Render a time as the dashboard's 12-hour label, e.g. '2:30 PM'."""
    hour12 = 12 if t.hour % 12 == 0 else t.hour % 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour12}:{t.minute:02d} {suffix}"


def parse_12h(label: str) -> time:
    """Parse a label produced by :func:`format_12h`."""
    return datetime.strptime(label.strip().upper(), "%I:%M %p").time()
