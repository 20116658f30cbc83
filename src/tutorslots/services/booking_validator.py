# src/tutorslots/services/booking_validator.py
"""
Booking-window validation.

A deterministic, side-effect-free decision on whether a student may book a
slot. Rules are evaluated in a fixed order and the first failing rule wins:

1. Minimum lead time before the session starts
2. Weekday must be open for bookings
3. One booking per student per day, across all tutors
4. The slot must still be available

The same decision runs client-side for immediate feedback and again inside
the booking orchestrator against freshly fetched state; only the latter is
authoritative.
"""

from datetime import datetime
import logging
from typing import Iterable, Optional

from ..config import Settings
from ..core.enums import RejectionKind, SessionStatus, Weekday
from ..core.exceptions import BookingRejection
from ..core.timezone_utils import TzLike, ensure_aware, local_to_utc
from ..schemas.availability import SlotCandidate
from ..schemas.booking import BookingConstraintSet
from ..schemas.session import HOLDING_STATUSES, Session
from .base import BaseService

logger = logging.getLogger(__name__)


def can_book(
    candidate: SlotCandidate,
    now_utc: datetime,
    student_existing_bookings: Iterable[Session],
    constraints: BookingConstraintSet,
    *,
    tz: TzLike = "UTC",
    check_closed_day: bool = True,
    check_slot_status: bool = True,
) -> Optional[BookingRejection]:
    """
    Decide whether ``candidate`` can be booked.

    Args:
        candidate: Slot the student picked
        now_utc: Current instant (timezone-aware)
        student_existing_bookings: The student's sessions, any tutor
        constraints: Booking policy
        tz: Platform timezone the candidate's date/time are expressed in
        check_closed_day: Skip rule 2; custom slot requests may fall on any day
        check_slot_status: Skip rule 4 for proposals that are not yet a slot

    Returns:
        None when bookable, otherwise the first rejection
    """
    ensure_aware(now_utc)

    starts_at = local_to_utc(candidate.date, candidate.time, tz)
    earliest = now_utc + constraints.min_lead
    if starts_at < earliest:
        hours_until = (starts_at - now_utc).total_seconds() / 3600
        return BookingRejection(
            RejectionKind.INSUFFICIENT_LEAD_TIME,
            min_lead_hours=constraints.min_lead_hours,
            hours_until=round(max(0.0, hours_until), 2),
        )

    weekday = Weekday.from_date(candidate.date)
    if check_closed_day and weekday not in constraints.allowed_weekdays:
        return BookingRejection(RejectionKind.CLOSED_DAY, weekday=weekday.value)

    same_day = [
        s
        for s in student_existing_bookings
        if s.date == candidate.date
        and s.status in HOLDING_STATUSES
        and (candidate.session_id is None or s.id != candidate.session_id)
    ]
    if len(same_day) >= constraints.max_bookings_per_student_per_day:
        return BookingRejection(
            RejectionKind.DAILY_LIMIT_REACHED,
            date=candidate.date.isoformat(),
            existing_session_ids=[s.id for s in same_day],
        )

    if check_slot_status and candidate.status != SessionStatus.AVAILABLE:
        return BookingRejection(
            RejectionKind.SLOT_NO_LONGER_AVAILABLE,
            session_id=candidate.session_id,
            status=candidate.status.value,
        )

    return None


def ensure_can_book(
    candidate: SlotCandidate,
    now_utc: datetime,
    student_existing_bookings: Iterable[Session],
    constraints: BookingConstraintSet,
    *,
    tz: TzLike = "UTC",
    check_closed_day: bool = True,
    check_slot_status: bool = True,
) -> None:
    """Like :func:`can_book` but raises the rejection."""
    rejection = can_book(
        candidate,
        now_utc,
        student_existing_bookings,
        constraints,
        tz=tz,
        check_closed_day=check_closed_day,
        check_slot_status=check_slot_status,
    )
    if rejection is not None:
        raise rejection


class BookingValidator(BaseService):
    """Applies the configured booking policy in the platform timezone."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        constraints: Optional[BookingConstraintSet] = None,
    ):
        super().__init__(settings)
        self.constraints = constraints or self.settings.booking_constraints()

    @BaseService.measure_operation("can_book")
    def can_book(
        self,
        candidate: SlotCandidate,
        now_utc: datetime,
        student_existing_bookings: Iterable[Session],
        *,
        check_closed_day: bool = True,
        check_slot_status: bool = True,
    ) -> Optional[BookingRejection]:
        rejection = can_book(
            candidate,
            now_utc,
            student_existing_bookings,
            self.constraints,
            tz=self.settings.timezone,
            check_closed_day=check_closed_day,
            check_slot_status=check_slot_status,
        )
        if rejection is not None:
            self.logger.info(
                "Booking rejected: %s for tutor %s on %s %s",
                rejection.kind.value,
                candidate.tutor_id,
                candidate.date,
                candidate.time.strftime("%H:%M"),
            )
        return rejection

    def ensure_can_book(
        self,
        candidate: SlotCandidate,
        now_utc: datetime,
        student_existing_bookings: Iterable[Session],
        *,
        check_closed_day: bool = True,
        check_slot_status: bool = True,
    ) -> None:
        rejection = self.can_book(
            candidate,
            now_utc,
            student_existing_bookings,
            check_closed_day=check_closed_day,
            check_slot_status=check_slot_status,
        )
        if rejection is not None:
            raise rejection
