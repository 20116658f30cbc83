# src/tutorslots/core/enums.py
"""
Core enums for the tutoring platform.

These mirror the string values the session store sends on the wire, so
every enum subclasses ``str`` and compares equal to its raw value.
"""

from datetime import date
from enum import Enum


class RoleName(str, Enum):
    """Roles a signed-in user can hold."""

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"


class Weekday(str, Enum):
    """Weekday keys used by weekly availability."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return _WEEKDAY_ORDER[value.weekday()]


_WEEKDAY_ORDER = list(Weekday)


class SessionStatus(str, Enum):
    """Lifecycle status of a session."""

    AVAILABLE = "available"
    BOOKED = "booked"
    COMPLETED = "completed"
    PENDING = "pending"
    APPROVED = "approved"
    CANCELLED = "cancelled"


class SessionType(str, Enum):
    """How a session came into existence."""

    ADMIN_CREATED = "admin_created"
    TUTOR_CREATED = "tutor_created"
    SLOT_REQUEST = "slot_request"
    SMART_QUAD = "smart_quad"


class RejectionKind(str, Enum):
    """Reasons a booking attempt is turned down."""

    INSUFFICIENT_LEAD_TIME = "insufficient_lead_time"
    CLOSED_DAY = "closed_day"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    SLOT_NO_LONGER_AVAILABLE = "slot_no_longer_available"


class SlotRequestState(str, Enum):
    """States of the custom slot request workflow."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SlotWorkflow(str, Enum):
    """Which grid a caller is reconciling against."""

    BOOKING = "booking"
    AVAILABILITY_EDITING = "availability_editing"
