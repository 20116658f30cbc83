# src/tutorslots/schemas/availability.py
"""
Availability schemas.

A tutor's recurring schedule is one contiguous window per weekday. Slot
candidates are derived from it and never persisted.
"""

import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..core.enums import SessionStatus, Weekday
from ..utils.time_utils import string_to_time, time_to_string
from .base import StandardizedModel
from .session import Session

DateType = datetime.date
TimeType = datetime.time


def _coerce_time(v: Any) -> Any:
    if isinstance(v, str):
        return string_to_time(v)
    return v


class TimeOfDay(BaseModel):
    """One point on the time grid with its 12-hour display label."""

    model_config = ConfigDict(frozen=True)

    value: TimeType
    label: str
    minutes: int

    @property
    def hhmm(self) -> str:
        return time_to_string(self.value)


class DayWindow(StandardizedModel):
    """Availability window for a single weekday."""

    start: TimeType
    end: TimeType

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_wire_time(cls, v: Any) -> Any:
        return _coerce_time(v)

    @field_validator("end")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start")
            and v <= info.data["start"]
        ):
            raise ValueError("End time must be after start time")
        return v

    @field_serializer("start", "end")
    def serialize_time(self, v: TimeType) -> str:
        return time_to_string(v)


class WeeklyAvailability(StandardizedModel):
    """Recurring weekly schedule; a missing weekday means the tutor is off."""

    monday: Optional[DayWindow] = None
    tuesday: Optional[DayWindow] = None
    wednesday: Optional[DayWindow] = None
    thursday: Optional[DayWindow] = None
    friday: Optional[DayWindow] = None
    saturday: Optional[DayWindow] = None
    sunday: Optional[DayWindow] = None

    def window_for(self, weekday: Weekday) -> Optional[DayWindow]:
        return getattr(self, Weekday(weekday).value)

    def with_day(self, weekday: Weekday, window: Optional[DayWindow]) -> "WeeklyAvailability":
        return self.model_copy(update={Weekday(weekday).value: window})

    def days(self) -> Dict[Weekday, DayWindow]:
        return {day: window for day in Weekday if (window := self.window_for(day)) is not None}


class TutorAvailability(StandardizedModel):
    """Store answer for a tutor's availability lookup."""

    availability: WeeklyAvailability = Field(default_factory=WeeklyAvailability)
    existing_sessions: List[Session] = Field(default_factory=list)

    @field_validator("availability", mode="before")
    @classmethod
    def default_missing_schedule(cls, v: Any) -> Any:
        return {} if v is None else v


class SlotCandidate(StandardizedModel):
    """A free slot for a tutor on a concrete date."""

    model_config = ConfigDict(frozen=True)

    tutor_id: str
    date: DateType
    time: TimeType
    duration_minutes: int
    session_id: Optional[str] = None
    status: SessionStatus = SessionStatus.AVAILABLE

    @property
    def key(self) -> Tuple[DateType, TimeType]:
        return (self.date, self.time)

    @field_serializer("time")
    def serialize_time(self, v: TimeType) -> str:
        return time_to_string(v)
