# src/tutorslots/services/time_grid.py
"""
Time grid generation.

The grid is the universe of discrete start times in a day at a fixed
granularity. Booking screens show an hourly grid; the availability editor
uses half-hour steps.
"""

from datetime import time
from functools import lru_cache
from typing import List, Tuple

from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import InvalidGranularityError
from ..schemas.availability import TimeOfDay
from ..utils.time_utils import format_12h, minutes_to_time, time_to_minutes


def validate_granularity(granularity_minutes: int) -> int:
    if (
        isinstance(granularity_minutes, bool)
        or not isinstance(granularity_minutes, int)
        or granularity_minutes <= 0
        or MINUTES_PER_DAY % granularity_minutes != 0
    ):
        raise InvalidGranularityError(granularity_minutes)
    return granularity_minutes


@lru_cache(maxsize=16)
def _grid(granularity_minutes: int) -> Tuple[TimeOfDay, ...]:
    slots = []
    for minutes in range(0, MINUTES_PER_DAY, granularity_minutes):
        value = minutes_to_time(minutes)
        slots.append(TimeOfDay(value=value, label=format_12h(value), minutes=minutes))
    return tuple(slots)


def generate_slots(granularity_minutes: int) -> List[TimeOfDay]:
    """
    Produce every time of day at the given granularity, starting at midnight.

    Args:
        granularity_minutes: Step between slots; must evenly divide 1440

    Returns:
        ``1440 / granularity_minutes`` slots in ascending order

    Raises:
        InvalidGranularityError: if the granularity does not divide a day
    """
    return list(_grid(validate_granularity(granularity_minutes)))


def valid_end_times(
    start: time, min_duration_slots: int, granularity_minutes: int
) -> List[TimeOfDay]:
    """
    Return the grid slots at least ``min_duration_slots`` steps after ``start``.

    Used by the availability editor so an end time can never produce a
    non-positive or too-short window.
    """
    if min_duration_slots < 1:
        raise ValueError("min_duration_slots must be at least 1")
    grid = generate_slots(granularity_minutes)
    start_minutes = time_to_minutes(start)
    if start_minutes % granularity_minutes != 0 or start.second or start.microsecond:
        raise InvalidGranularityError(
            granularity_minutes,
            reason=f"{start.strftime('%H:%M')} is not on the {granularity_minutes}-minute grid",
        )
    start_index = start_minutes // granularity_minutes
    return grid[start_index + min_duration_slots :]


def slots_between(start: time, end: time, granularity_minutes: int) -> List[time]:
    """Times ``start, start + step, ...`` strictly before ``end``."""
    validate_granularity(granularity_minutes)
    end_minutes = time_to_minutes(end, is_end_time=True)
    return [
        minutes_to_time(minutes)
        for minutes in range(time_to_minutes(start), end_minutes, granularity_minutes)
    ]
