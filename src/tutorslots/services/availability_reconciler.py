# src/tutorslots/services/availability_reconciler.py
"""
Availability Reconciler for the tutoring platform.

Merges a tutor's recurring weekly window with the sessions already on the
calendar to produce the slots that can actually be offered on a date:

- The weekly window for the date's weekday is expanded into a slot grid
- Every non-cancelled, non-available session occupies its (date, time) key
- Pre-seeded ``available`` sessions are merged in as bookable slots

The same reconciliation backs the student booking grid (hourly) and the
admin availability editor (half-hourly); callers pick the workflow, the
granularity comes from settings.
"""

import asyncio
from datetime import date, datetime, time
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..client import SessionStoreClient
from ..config import Settings
from ..core.enums import SessionStatus, SlotWorkflow, Weekday
from ..core.exceptions import (
    AvailabilityFetchError,
    MalformedPayloadError,
    StoreError,
    StoreNotFoundError,
    TutorNotFoundError,
)
from ..core.request_generation import RequestGeneration
from ..core.timezone_utils import TzLike, ensure_aware, local_to_utc
from ..schemas.availability import SlotCandidate, WeeklyAvailability
from ..schemas.session import Session
from .base import BaseService, gather_or_cancel
from .time_grid import slots_between, validate_granularity

logger = logging.getLogger(__name__)

# Statuses that never block the grid
NON_BLOCKING_STATUSES = frozenset({SessionStatus.AVAILABLE, SessionStatus.CANCELLED})

SlotKey = Tuple[date, time]


def occupied_keys(tutor_id: str, target_date: date, sessions: Iterable[Session]) -> set:
    """(date, time) keys held by the tutor's blocking sessions on the date."""
    return {
        s.key
        for s in sessions
        if s.tutor_id == tutor_id and s.date == target_date and s.status not in NON_BLOCKING_STATUSES
    }


def reconcile(
    tutor_id: str,
    availability: WeeklyAvailability,
    target_date: date,
    sessions: Sequence[Session],
    granularity_minutes: int,
    *,
    not_before: Optional[datetime] = None,
    tz: TzLike = "UTC",
) -> List[SlotCandidate]:
    """
    Compute the free slots for a tutor on a date.

    Args:
        tutor_id: Tutor whose calendar is reconciled
        availability: The tutor's weekly availability
        target_date: Calendar day in the platform timezone
        sessions: The tutor's known sessions (other tutors/dates are ignored)
        granularity_minutes: Step of the generated grid
        not_before: Optional aware instant; earlier slots are dropped
        tz: Platform timezone used to place slots on the timeline

    Returns:
        Time-ordered, de-duplicated slot candidates
    """
    validate_granularity(granularity_minutes)
    if not_before is not None:
        ensure_aware(not_before)

    occupied = occupied_keys(tutor_id, target_date, sessions)
    merged: Dict[SlotKey, SlotCandidate] = {}

    window = availability.window_for(Weekday.from_date(target_date))
    if window is not None:
        for slot_time in slots_between(window.start, window.end, granularity_minutes):
            key = (target_date, slot_time)
            if key in occupied:
                continue
            merged[key] = SlotCandidate(
                tutor_id=tutor_id,
                date=target_date,
                time=slot_time,
                duration_minutes=granularity_minutes,
            )

    # Pre-seeded open sessions win their key: they carry an id to book against
    for session in sessions:
        if (
            session.tutor_id != tutor_id
            or session.date != target_date
            or session.status != SessionStatus.AVAILABLE
            or session.key in occupied
        ):
            continue
        merged[session.key] = SlotCandidate(
            tutor_id=tutor_id,
            date=session.date,
            time=session.time,
            duration_minutes=session.duration_minutes,
            session_id=session.id,
        )

    candidates = sorted(merged.values(), key=lambda c: c.time)
    if not_before is not None:
        candidates = [c for c in candidates if local_to_utc(c.date, c.time, tz) >= not_before]
    return candidates


class AvailabilityReconciler(BaseService):
    """
    Service that loads a tutor's schedule from the store and reconciles it.

    Never raises for "no availability": a tutor without a window on that
    weekday simply yields no slots.
    """

    def __init__(self, client: SessionStoreClient, settings: Optional[Settings] = None):
        super().__init__(settings or client.settings)
        self.client = client

    @BaseService.measure_operation("free_slots")
    async def free_slots(
        self,
        tutor_id: str,
        target_date: date,
        workflow: SlotWorkflow = SlotWorkflow.BOOKING,
        *,
        not_before: Optional[datetime] = None,
        generation: Optional[RequestGeneration] = None,
    ) -> List[SlotCandidate]:
        """
        Fetch availability and sessions, then reconcile them.

        Pass the view's ``generation`` when the selected date can change while
        the lookup is in flight; a superseded lookup raises instead of
        returning slots for a date the user has left.

        Raises:
            TutorNotFoundError: the store does not know the tutor
            AvailabilityFetchError: any other upstream failure
            StaleResponseError: a newer lookup started on ``generation``
        """
        fetch = gather_or_cancel(
            self.client.get_availability(tutor_id),
            self.client.list_sessions(tutor_id=tutor_id, date_from=target_date, date_to=target_date),
        )
        try:
            if generation is not None:
                availability, sessions = await generation.guard(fetch)
            else:
                availability, sessions = await fetch
        except StoreNotFoundError as exc:
            raise TutorNotFoundError(tutor_id) from exc
        except MalformedPayloadError:
            raise
        except StoreError as exc:
            self.logger.warning("Availability fetch failed for tutor %s: %s", tutor_id, exc.message)
            raise AvailabilityFetchError(tutor_id, exc.message) from exc

        # The listing is already scoped to the tutor; some payloads omit tutorId
        sessions = [s if s.tutor_id else s.model_copy(update={"tutor_id": tutor_id}) for s in sessions]
        return reconcile(
            tutor_id,
            availability.availability,
            target_date,
            sessions,
            self.settings.granularity_for(workflow),
            not_before=not_before,
            tz=self.settings.timezone,
        )

    @BaseService.measure_operation("free_slots_for_tutors")
    async def free_slots_for_tutors(
        self,
        tutor_ids: Sequence[str],
        target_date: date,
        workflow: SlotWorkflow = SlotWorkflow.BOOKING,
        *,
        not_before: Optional[datetime] = None,
    ) -> List[SlotCandidate]:
        """Free slots across several tutors; tutors whose lookup fails are skipped."""
        results = await asyncio.gather(
            *(
                self.free_slots(tutor_id, target_date, workflow, not_before=not_before)
                for tutor_id in tutor_ids
            ),
            return_exceptions=True,
        )
        candidates: List[SlotCandidate] = []
        for tutor_id, result in zip(tutor_ids, results):
            if isinstance(result, (TutorNotFoundError, AvailabilityFetchError)):
                self.logger.warning("Skipping tutor %s: %s", tutor_id, result.message)
                continue
            if isinstance(result, BaseException):
                raise result
            candidates.extend(result)
        return sorted(candidates, key=lambda c: (c.time, c.tutor_id))
