# src/tutorslots/services/slot_request_workflow.py
"""
Custom slot request workflow.

A student proposes a two-hour slot outside the tutor's grid; a tutor or
admin then approves or rejects it::

    draft -> pending -> approved
                     -> rejected

``approved`` and ``rejected`` are terminal here. Completing an approved
session belongs to the general session lifecycle.
"""

from datetime import datetime
import logging
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from ..client import SessionStoreClient
from ..config import Settings
from ..core.enums import SessionStatus, SessionType, SlotRequestState
from ..core.exceptions import (
    InvalidTransitionError,
    MalformedPayloadError,
    SessionNotFoundError,
    SlotRequestConflictError,
    StoreNotFoundError,
)
from ..core.timezone_utils import utc_now
from ..schemas.availability import SlotCandidate
from ..schemas.booking import SlotRequestDraft
from ..schemas.session import Session
from .base import BaseService
from .booking_validator import BookingValidator

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[SlotRequestState, FrozenSet[SlotRequestState]] = {
    SlotRequestState.DRAFT: frozenset({SlotRequestState.PENDING}),
    SlotRequestState.PENDING: frozenset({SlotRequestState.APPROVED, SlotRequestState.REJECTED}),
    SlotRequestState.APPROVED: frozenset(),
    SlotRequestState.REJECTED: frozenset(),
}

_STATE_BY_STATUS = {
    SessionStatus.PENDING: SlotRequestState.PENDING,
    SessionStatus.APPROVED: SlotRequestState.APPROVED,
    SessionStatus.COMPLETED: SlotRequestState.APPROVED,
    SessionStatus.CANCELLED: SlotRequestState.REJECTED,
}

# Sessions that keep a tutor busy when approving a request
_TUTOR_BUSY_STATUSES = frozenset({SessionStatus.APPROVED, SessionStatus.BOOKED})


def state_of(session: Session) -> SlotRequestState:
    """Workflow state of a stored slot request."""
    state = _STATE_BY_STATUS.get(session.status)
    if session.type != SessionType.SLOT_REQUEST or state is None:
        raise InvalidTransitionError(
            current=session.status.value,
            target="slot_request",
            session_id=session.id,
        )
    return state


def check_transition(current: SlotRequestState, target: SlotRequestState, session_id: Optional[str] = None) -> None:
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value, session_id)


class SlotRequestWorkflow(BaseService):
    """Submits, approves and rejects custom slot requests."""

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

    @BaseService.measure_operation("submit_slot_request")
    async def submit(
        self,
        draft: SlotRequestDraft,
        student_existing_bookings: Optional[Iterable[Session]] = None,
    ) -> Session:
        """
        Move a draft to ``pending``.

        Lead time and the daily limit are pre-checked here; requests may
        target any weekday. The store re-validates authoritatively.
        """
        check_transition(SlotRequestState.DRAFT, SlotRequestState.PENDING)
        if student_existing_bookings is None:
            student_existing_bookings = await self.client.list_sessions(
                student_id=draft.student_id, date_from=draft.date, date_to=draft.date
            )
        candidate = SlotCandidate(
            tutor_id=draft.tutor_id,
            date=draft.date,
            time=draft.time,
            duration_minutes=draft.duration_minutes,
        )
        self.validator.ensure_can_book(
            candidate,
            self.clock(),
            student_existing_bookings,
            check_closed_day=False,
            check_slot_status=False,
        )

        created = await self.client.create_slot_request(draft.to_payload())
        if created.status != SessionStatus.PENDING:
            raise MalformedPayloadError(
                "slot_request_not_pending",
                details={"session_id": created.id, "status": created.status.value},
            )
        self.logger.info(
            "Slot request %s submitted by %s for tutor %s on %s",
            created.id,
            draft.student_id,
            draft.tutor_id,
            draft.date,
        )
        return created

    @BaseService.measure_operation("approve_slot_request")
    async def approve(self, session_id: str) -> Session:
        """
        Approve a pending request.

        Raises:
            InvalidTransitionError: the request is not pending
            SlotRequestConflictError: the tutor is already busy at that time
        """
        request = await self._load(session_id)
        check_transition(state_of(request), SlotRequestState.APPROVED, session_id)

        if request.tutor_id:
            tutor_sessions = await self.client.list_sessions(
                tutor_id=request.tutor_id, date_from=request.date, date_to=request.date
            )
            for other in tutor_sessions:
                if (
                    other.id != request.id
                    and other.status in _TUTOR_BUSY_STATUSES
                    and other.overlaps(request)
                ):
                    self.logger.info(
                        "Slot request %s conflicts with session %s", request.id, other.id
                    )
                    raise SlotRequestConflictError(request.id, other.id)

        approved = await self.client.review_slot_request(session_id, approve=True)
        if not approved.meeting_link:
            self.logger.warning("Approved slot request %s has no meeting link yet", session_id)
        return approved

    @BaseService.measure_operation("reject_slot_request")
    async def reject(self, session_id: str, reason: Optional[str] = None) -> Session:
        """Reject a pending request with an optional reason."""
        request = await self._load(session_id)
        check_transition(state_of(request), SlotRequestState.REJECTED, session_id)
        rejected = await self.client.review_slot_request(session_id, approve=False, reason=reason)
        self.logger.info("Slot request %s rejected", session_id)
        return rejected

    async def _load(self, session_id: str) -> Session:
        try:
            return await self.client.get_session(session_id)
        except StoreNotFoundError as exc:
            raise SessionNotFoundError(session_id) from exc
