from .availability import (
    DayWindow,
    SlotCandidate,
    TimeOfDay,
    TutorAvailability,
    WeeklyAvailability,
)
from .booking import BookingConstraintSet, BookingResult, SlotRequestDraft
from .session import Session, SessionFilter, SessionStudent

__all__ = [
    "BookingConstraintSet",
    "BookingResult",
    "DayWindow",
    "Session",
    "SessionFilter",
    "SessionStudent",
    "SlotCandidate",
    "SlotRequestDraft",
    "TimeOfDay",
    "TutorAvailability",
    "WeeklyAvailability",
]
