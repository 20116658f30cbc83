# src/tutorslots/schemas/booking.py
"""Booking policy, booking outcomes and slot request payloads."""

import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ..core.constants import (
    DEFAULT_MAX_BOOKINGS_PER_STUDENT_PER_DAY,
    DEFAULT_MIN_LEAD_HOURS,
    SLOT_REQUEST_DURATION_MINUTES,
)
from ..core.enums import SessionStatus, SessionType, Weekday
from ..utils.time_utils import time_to_string
from .base import StrictModel
from .session import Session

DateType = datetime.date
TimeType = datetime.time


class BookingConstraintSet(StrictModel):
    """Booking policy consumed by the booking validator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_lead_hours: float = Field(default=DEFAULT_MIN_LEAD_HOURS, ge=0)
    max_bookings_per_student_per_day: int = Field(
        default=DEFAULT_MAX_BOOKINGS_PER_STUDENT_PER_DAY, ge=1
    )
    allowed_weekdays: FrozenSet[Weekday] = frozenset(
        day for day in Weekday if day is not Weekday.SUNDAY
    )

    @property
    def min_lead(self) -> datetime.timedelta:
        return datetime.timedelta(hours=self.min_lead_hours)


class BookingResult(BaseModel):
    """Outcome of a successful booking plus the refreshed views."""

    session: Session
    sessions: List[Session] = Field(default_factory=list)
    student_bookings: List[Session] = Field(default_factory=list)
    refreshed: bool = True


class SlotRequestDraft(StrictModel):
    """A student's custom two-hour slot proposal before submission."""

    student_id: str
    student_name: Optional[str] = None
    tutor_id: str
    subject: str
    date: DateType
    time: TimeType
    message: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        return SLOT_REQUEST_DURATION_MINUTES

    @field_serializer("time")
    def serialize_time(self, v: TimeType) -> str:
        return time_to_string(v)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "tutorId": self.tutor_id,
            "subject": self.subject,
            "date": self.date.isoformat(),
            "time": time_to_string(self.time),
            "duration": self.duration_minutes,
            "type": SessionType.SLOT_REQUEST.value,
            "status": SessionStatus.PENDING.value,
            "message": self.message,
        }
        return {k: v for k, v in payload.items() if v is not None}
