# src/tutorslots/schemas/session.py
"""
Session schemas as exchanged with the session store.

The store is lenient about shapes (``id`` vs ``_id``, ISO datetimes for
calendar days, durations as numbers or text); these models normalize all of
that at the boundary so services only ever see typed values.
"""

import datetime
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)

from ..core.enums import SessionStatus, SessionType
from ..core.timezone_utils import get_timezone
from ..utils.time_utils import string_to_time, time_to_minutes, time_to_string
from .base import StandardizedModel

DateType = datetime.date
TimeType = datetime.time

DEFAULT_SESSION_DURATION_MINUTES = 60

_DURATION_PATTERN = re.compile(
    r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>h|hr|hrs|hour|hours|m|min|mins|minute|minutes)?\s*$",
    re.IGNORECASE,
)

# Statuses in which a student holds the session.
HOLDING_STATUSES = frozenset(
    {
        SessionStatus.BOOKED,
        SessionStatus.PENDING,
        SessionStatus.APPROVED,
        SessionStatus.COMPLETED,
    }
)


def parse_duration_minutes(value: Any) -> int:
    """Normalize '1.5 hours', '90', 90 or '30 minutes' to whole minutes."""
    if value is None or value == "":
        return DEFAULT_SESSION_DURATION_MINUTES
    if isinstance(value, bool):
        raise ValueError("duration must be a number or text")
    if isinstance(value, (int, float)):
        minutes = round(value)
    else:
        match = _DURATION_PATTERN.match(str(value))
        if not match:
            raise ValueError(f"unrecognized duration: {value!r}")
        amount = float(match.group("amount"))
        unit = (match.group("unit") or "m").lower()
        minutes = round(amount * 60) if unit.startswith("h") else round(amount)
    if minutes <= 0:
        raise ValueError("duration must be positive")
    return minutes


class SessionStudent(StandardizedModel):
    """A student enrolled in a session."""

    student_id: str
    student_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_populated_student(cls, data: Any) -> Any:
        # Populated references arrive as {"studentId": {"_id": ..., "name": ...}}
        if isinstance(data, dict):
            ref = data.get("studentId", data.get("student_id"))
            if isinstance(ref, dict):
                data = dict(data)
                data["studentId"] = ref.get("_id") or ref.get("id")
                data.setdefault("studentName", ref.get("name"))
                data.pop("student_id", None)
        return data


class Session(StandardizedModel):
    """One concrete bookable or booked unit of instruction."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="id")
    subject: str = ""
    tutor_id: Optional[str] = None
    tutor_name: Optional[str] = None
    date: DateType
    time: TimeType
    duration_minutes: int = Field(
        default=DEFAULT_SESSION_DURATION_MINUTES,
        validation_alias=AliasChoices("duration", "durationMinutes", "duration_minutes"),
        serialization_alias="duration",
    )
    status: SessionStatus
    type: Optional[SessionType] = None
    students: List[SessionStudent] = Field(default_factory=list)
    created_by: Optional[str] = None
    meeting_link: Optional[str] = None
    description: Optional[str] = None
    rejection_reason: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_calendar_day(cls, v: Any, info: ValidationInfo) -> Any:
        """
        Reduce an ISO datetime to the platform-local calendar day.

        "2024-07-09T18:30:00.000Z" is 2024-07-10 in Asia/Kolkata. The
        platform timezone comes from the ``timezone`` validation context
        and defaults to UTC.
        """
        if isinstance(v, str) and len(v) > 10 and v[10] in "T ":
            cleaned = v.strip()
            if cleaned.endswith("Z"):
                cleaned = cleaned[:-1] + "+00:00"
            try:
                v = datetime.datetime.fromisoformat(cleaned)
            except ValueError as exc:
                raise ValueError(f"Invalid ISO-8601 datetime: {v!r}") from exc
        if isinstance(v, datetime.datetime):
            if v.tzinfo is not None:
                tz = (info.context or {}).get("timezone", "UTC")
                v = v.astimezone(get_timezone(tz))
            return v.date()
        return v

    @field_validator("time", mode="before")
    @classmethod
    def parse_wire_time(cls, v: Any) -> Any:
        if isinstance(v, str):
            return string_to_time(v)
        return v

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        # Rejected slot requests are stored as cancelled sessions
        if isinstance(v, str) and v.lower() == "rejected":
            return SessionStatus.CANCELLED
        return v

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def parse_duration(cls, v: Any) -> int:
        return parse_duration_minutes(v)

    @model_validator(mode="after")
    def check_enrollment_matches_status(self) -> "Session":
        if self.status in (SessionStatus.BOOKED, SessionStatus.APPROVED) and not self.students:
            raise ValueError(f"{self.status.value} session {self.id} has no students")
        if self.status == SessionStatus.AVAILABLE and self.students:
            raise ValueError(f"available session {self.id} already has students")
        return self

    @field_serializer("time")
    def serialize_time(self, v: TimeType) -> str:
        return time_to_string(v)

    @property
    def key(self) -> Tuple[DateType, TimeType]:
        return (self.date, self.time)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    def has_student(self, student_id: str) -> bool:
        return any(s.student_id == student_id for s in self.students)

    def overlaps(self, other: "Session") -> bool:
        """True when both sessions share a date and their intervals intersect."""
        return (
            self.date == other.date
            and self.start_minutes < other.end_minutes
            and other.start_minutes < self.end_minutes
        )


class SessionFilter(StandardizedModel):
    """Query filter for listing sessions."""

    tutor_id: Optional[str] = None
    student_id: Optional[str] = None
    date_from: Optional[DateType] = None
    date_to: Optional[DateType] = None
    status: Optional[SessionStatus] = None

    @model_validator(mode="after")
    def check_range(self) -> "SessionFilter":
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to must not be before date_from")
        return self

    def to_params(self) -> Dict[str, str]:
        return {k: str(v) for k, v in self.to_wire().items()}
