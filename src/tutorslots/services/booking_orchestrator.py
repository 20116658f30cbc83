# src/tutorslots/services/booking_orchestrator.py
"""
Booking Request Orchestrator.

Books a pre-seeded ``available`` session for a student:

1. Re-fetch the session and the student's bookings for that day
2. Re-run the booking validator against that fresh state
3. Issue a single conditional write (``available`` -> ``booked``)
4. Refresh the session list and the student's bookings

Concurrent bookings for the same slot are serialized by the store's
conditional write; losing that race surfaces as
``RejectionKind.SLOT_NO_LONGER_AVAILABLE``. There is no retry loop here:
retrying is the caller's decision, so a booking is never submitted twice.
"""

from datetime import datetime
import logging
from typing import Callable, Optional

from ..client import SessionStoreClient
from ..config import Settings
from ..core.enums import RejectionKind, SessionStatus
from ..core.exceptions import (
    BookingRejection,
    ConflictError,
    MalformedPayloadError,
    SessionNotFoundError,
    StoreError,
    StoreNotFoundError,
)
from ..core.timezone_utils import utc_now
from ..schemas.availability import SlotCandidate
from ..schemas.booking import BookingResult
from ..schemas.session import Session
from .base import BaseService, gather_or_cancel
from .booking_validator import BookingValidator

logger = logging.getLogger(__name__)


def candidate_from_session(session: Session) -> SlotCandidate:
    return SlotCandidate(
        tutor_id=session.tutor_id or "",
        date=session.date,
        time=session.time,
        duration_minutes=session.duration_minutes,
        session_id=session.id,
        status=session.status,
    )


class BookingOrchestrator(BaseService):
    """Validates and submits booking requests against the session store."""

    def __init__(
        self,
        client: SessionStoreClient,
        validator: Optional[BookingValidator] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(settings or client.settings)
        self.client = client
        self.validator = validator or BookingValidator(self.settings)
        self.clock = clock

    @BaseService.measure_operation("book_slot")
    async def book_slot(self, session_id: str, student_id: str) -> BookingResult:
        """
        Book ``session_id`` for ``student_id``.

        Raises:
            BookingRejection: a booking rule failed or the slot was taken
            SessionNotFoundError: the session does not exist
            NetworkError: transport failure; safe to retry after a refresh
        """
        try:
            session = await self.client.get_session(session_id)
        except StoreNotFoundError as exc:
            raise SessionNotFoundError(session_id) from exc

        student_bookings = await self.client.list_sessions(
            student_id=student_id, date_from=session.date, date_to=session.date
        )
        self.validator.ensure_can_book(
            candidate_from_session(session), self.clock(), student_bookings
        )

        try:
            booked = await self.client.book_session(
                session_id, student_id, expected_status=SessionStatus.AVAILABLE
            )
        except (ConflictError, StoreNotFoundError) as exc:
            self.logger.info("Slot %s taken before booking by %s completed", session_id, student_id)
            raise BookingRejection(
                RejectionKind.SLOT_NO_LONGER_AVAILABLE, session_id=session_id
            ) from exc

        if not booked.has_student(student_id):
            self.logger.warning(
                "Store confirmed booking of %s without listing student %s", session_id, student_id
            )
        self.logger.info("Session %s booked by %s", session_id, student_id)
        return await self._refresh(booked, student_id)

    async def _refresh(self, booked: Session, student_id: str) -> BookingResult:
        """Reload both views so the per-day limit holds on the next attempt."""
        try:
            sessions, student_bookings = await gather_or_cancel(
                self.client.list_sessions(tutor_id=booked.tutor_id),
                self.client.list_sessions(student_id=student_id),
            )
        except MalformedPayloadError:
            raise
        except StoreError as exc:
            self.logger.warning("Post-booking refresh failed for %s: %s", booked.id, exc.message)
            return BookingResult(session=booked, refreshed=False)
        return BookingResult(session=booked, sessions=sessions, student_bookings=student_bookings)
