from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any

import pytest
import pytz
from tutorslots.config import Settings
from tutorslots.core.enums import SessionStatus, SessionType, Weekday
from tutorslots.core.exceptions import ConflictError, StoreNotFoundError
from tutorslots.schemas.availability import TutorAvailability, WeeklyAvailability
from tutorslots.schemas.session import Session, SessionStudent

# 2024-07-08 is a Monday
MONDAY = date(2024, 7, 8)


def make_session(
    id: str = "s1",
    *,
    tutor_id: str = "t1",
    day: date = MONDAY,
    at: str = "10:00",
    status: str = "available",
    students: list[str] | None = None,
    duration: Any = 60,
    type: str | None = None,
) -> Session:
    return Session.model_validate(
        {
            "_id": id,
            "subject": "Mathematics",
            "tutorId": tutor_id,
            "tutorName": "Dr. Smith",
            "date": day.isoformat(),
            "time": at,
            "duration": duration,
            "status": status,
            "type": type,
            "students": [{"studentId": sid, "studentName": sid.title()} for sid in students or []],
        }
    )


class FakeStoreClient:
    """In-memory stand-in for SessionStoreClient with conditional writes."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.sessions: dict[str, Session] = {}
        self.availability: dict[str, WeeklyAvailability] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict]] = []
        self._next_id = 1

    def add(self, *sessions: Session) -> None:
        for session in sessions:
            self.sessions[session.id] = session

    def _record(self, name: str, **params: Any) -> None:
        self.calls.append((name, params))
        if name in self.failures:
            raise self.failures[name]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def get_availability(self, tutor_id: str) -> TutorAvailability:
        await asyncio.sleep(0)
        self._record("get_availability", tutor_id=tutor_id)
        if tutor_id not in self.availability:
            raise StoreNotFoundError("store_not_found")
        return TutorAvailability(availability=self.availability[tutor_id])

    async def put_availability(self, tutor_id: str, availability: WeeklyAvailability) -> None:
        self._record("put_availability", tutor_id=tutor_id, availability=availability)
        if tutor_id not in self.availability:
            raise StoreNotFoundError("store_not_found")
        self.availability[tutor_id] = availability

    async def delete_availability_day(self, tutor_id: str, weekday: Weekday) -> None:
        self._record("delete_availability_day", tutor_id=tutor_id, weekday=weekday)
        if tutor_id not in self.availability:
            raise StoreNotFoundError("store_not_found")
        self.availability[tutor_id] = self.availability[tutor_id].with_day(weekday, None)

    async def list_sessions(self, **filters: Any) -> list[Session]:
        await asyncio.sleep(0)
        self._record("list_sessions", **filters)
        result = []
        for session in self.sessions.values():
            if filters.get("tutor_id") and session.tutor_id != filters["tutor_id"]:
                continue
            if filters.get("student_id") and not session.has_student(filters["student_id"]):
                continue
            if filters.get("date_from") and session.date < filters["date_from"]:
                continue
            if filters.get("date_to") and session.date > filters["date_to"]:
                continue
            if filters.get("status") and session.status != filters["status"]:
                continue
            result.append(session)
        return result

    async def get_session(self, session_id: str) -> Session:
        await asyncio.sleep(0)
        self._record("get_session", session_id=session_id)
        if session_id not in self.sessions:
            raise StoreNotFoundError("store_not_found")
        return self.sessions[session_id]

    async def book_session(
        self,
        session_id: str,
        student_id: str,
        *,
        expected_status: SessionStatus = SessionStatus.AVAILABLE,
    ) -> Session:
        self._record("book_session", session_id=session_id, student_id=student_id)
        session = self.sessions[session_id]
        if session.status != expected_status:
            raise ConflictError("store_conflict")
        booked = session.model_copy(
            update={
                "status": SessionStatus.BOOKED,
                "students": [*session.students, SessionStudent(student_id=student_id)],
            }
        )
        self.sessions[session_id] = booked
        return booked

    async def update_session_status(
        self,
        session_id: str,
        status: SessionStatus,
        *,
        expected_status: SessionStatus | None = None,
    ) -> Session:
        self._record("update_session_status", session_id=session_id, status=status)
        session = self.sessions[session_id]
        if expected_status is not None and session.status != expected_status:
            raise ConflictError("store_conflict")
        updated = session.model_copy(update={"status": status})
        self.sessions[session_id] = updated
        return updated

    async def create_session(self, payload: dict) -> Session:
        self._record("create_session", payload=payload)
        session_id = f"s{self._next_id}"
        self._next_id += 1
        created = Session.model_validate({"_id": session_id, **payload})
        self.sessions[session_id] = created
        return created

    async def create_slot_request(self, payload: dict) -> Session:
        self._record("create_slot_request", payload=payload)
        session_id = f"req{self._next_id}"
        self._next_id += 1
        created = Session.model_validate(
            {
                "_id": session_id,
                "subject": payload["subject"],
                "tutorId": payload["tutorId"],
                "date": payload["date"],
                "time": payload["time"],
                "duration": payload["duration"],
                "status": "pending",
                "type": SessionType.SLOT_REQUEST.value,
                "students": [{"studentId": payload["studentId"]}],
            }
        )
        self.sessions[session_id] = created
        return created

    async def review_slot_request(
        self, session_id: str, *, approve: bool, reason: str | None = None
    ) -> Session:
        self._record("review_slot_request", session_id=session_id, approve=approve, reason=reason)
        session = self.sessions[session_id]
        if session.status != SessionStatus.PENDING:
            raise ConflictError("store_conflict")
        if approve:
            update = {
                "status": SessionStatus.APPROVED,
                "meeting_link": f"https://meet.example.test/{session_id}",
            }
        else:
            update = {"status": SessionStatus.CANCELLED, "rejection_reason": reason}
        reviewed = session.model_copy(update=update)
        self.sessions[session_id] = reviewed
        return reviewed


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="https://api.tutorslots.test/api",
        api_token="svc",
        timezone="UTC",
        _env_file=None,
    )


@pytest.fixture
def fake_client(settings: Settings) -> FakeStoreClient:
    return FakeStoreClient(settings)


@pytest.fixture
def fixed_clock():
    """Clock pinned to Monday 2024-07-08 06:00 UTC."""
    now = datetime(2024, 7, 8, 6, 0, tzinfo=pytz.UTC)
    return lambda: now
