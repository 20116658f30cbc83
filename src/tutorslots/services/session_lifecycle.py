# src/tutorslots/services/session_lifecycle.py
"""General session status transitions outside the slot request workflow."""

from typing import Dict, FrozenSet, Optional

from ..client import SessionStoreClient
from ..config import Settings
from ..core.enums import SessionStatus
from ..core.exceptions import InvalidTransitionError, SessionNotFoundError, StoreNotFoundError
from ..schemas.session import Session
from .base import BaseService

SESSION_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.AVAILABLE: frozenset({SessionStatus.BOOKED, SessionStatus.CANCELLED}),
    SessionStatus.BOOKED: frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED}),
    SessionStatus.PENDING: frozenset({SessionStatus.APPROVED, SessionStatus.CANCELLED}),
    SessionStatus.APPROVED: frozenset({SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.CANCELLED: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in SESSION_TRANSITIONS[current]


class SessionLifecycleService(BaseService):
    """Marks sessions completed or cancelled with a conditional status write."""

    def __init__(self, client: SessionStoreClient, settings: Optional[Settings] = None):
        super().__init__(settings or client.settings)
        self.client = client

    @BaseService.measure_operation("complete_session")
    async def complete_session(self, session_id: str) -> Session:
        return await self._move(session_id, SessionStatus.COMPLETED)

    @BaseService.measure_operation("cancel_session")
    async def cancel_session(self, session_id: str) -> Session:
        return await self._move(session_id, SessionStatus.CANCELLED)

    async def _move(self, session_id: str, target: SessionStatus) -> Session:
        try:
            session = await self.client.get_session(session_id)
        except StoreNotFoundError as exc:
            raise SessionNotFoundError(session_id) from exc

        if not can_transition(session.status, target):
            raise InvalidTransitionError(session.status.value, target.value, session_id)

        updated = await self.client.update_session_status(
            session_id, target, expected_status=session.status
        )
        self.logger.info(
            "Session %s moved from %s to %s", session_id, session.status.value, target.value
        )
        return updated
