# src/tutorslots/services/session_service.py
"""
Session Service for the tutoring platform.

Creates the pre-seeded ``available`` sessions that the reconciler merges
into a tutor's grid as directly bookable slots.
"""

from datetime import date, time
from typing import Optional

from ..client import SessionStoreClient
from ..config import Settings
from ..core.constants import MINUTES_PER_DAY
from ..core.enums import SessionStatus, SessionType
from ..core.exceptions import SessionSlotTakenError, ValidationException
from ..schemas.session import Session
from ..utils.time_utils import time_to_minutes, time_to_string
from .base import BaseService


class SessionService(BaseService):
    """Opens bookable sessions on a tutor's calendar."""

    def __init__(self, client: SessionStoreClient, settings: Optional[Settings] = None):
        super().__init__(settings or client.settings)
        self.client = client

    @BaseService.measure_operation("create_available_session")
    async def create_available_session(
        self,
        tutor_id: str,
        target_date: date,
        start: time,
        duration_minutes: int = 60,
        subject: str = "",
        *,
        tutor_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Session:
        """
        Create an open session for students to book.

        The tutor's calendar for the date is read first; any non-cancelled
        session whose interval intersects the new one blocks creation.

        Raises:
            ValidationException: duration is not positive or runs past midnight
            SessionSlotTakenError: the interval is already occupied
        """
        start_minutes = time_to_minutes(start)
        if duration_minutes <= 0 or start_minutes + duration_minutes > MINUTES_PER_DAY:
            raise ValidationException(
                f"Session of {duration_minutes} minutes at {time_to_string(start)} does not fit the day",
                code="INVALID_SESSION_DURATION",
                details={"duration_minutes": duration_minutes, "time": time_to_string(start)},
            )

        existing = await self.client.list_sessions(
            tutor_id=tutor_id, date_from=target_date, date_to=target_date
        )
        end_minutes = start_minutes + duration_minutes
        for session in existing:
            if session.status == SessionStatus.CANCELLED or session.date != target_date:
                continue
            if session.start_minutes < end_minutes and start_minutes < session.end_minutes:
                raise SessionSlotTakenError(
                    tutor_id, target_date.isoformat(), time_to_string(start), session.id
                )

        payload = {
            "tutorId": tutor_id,
            "subject": subject,
            "date": target_date.isoformat(),
            "time": time_to_string(start),
            "duration": duration_minutes,
            "status": SessionStatus.AVAILABLE.value,
            "type": SessionType.ADMIN_CREATED.value,
        }
        if tutor_name:
            payload["tutorName"] = tutor_name
        if description:
            payload["description"] = description

        created = await self.client.create_session(payload)
        self.logger.info(
            "Opened session %s for tutor %s on %s at %s",
            created.id,
            tutor_id,
            created.date,
            time_to_string(created.time),
        )
        return created
