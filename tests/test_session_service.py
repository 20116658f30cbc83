from datetime import date, time

import pytest
from tutorslots.core.enums import SessionStatus, SessionType
from tutorslots.core.exceptions import SessionSlotTakenError, ValidationException
from tutorslots.schemas.availability import WeeklyAvailability
from tutorslots.services.availability_reconciler import AvailabilityReconciler
from tutorslots.services.session_service import SessionService

from .conftest import MONDAY, make_session

@pytest.fixture
def service(fake_client):
    return SessionService(fake_client)

@pytest.mark.asyncio
async def test_creates_available_session(service, fake_client):
    created = await service.create_available_session(
        "t1", MONDAY, time(16, 0), 90, "Physics", tutor_name="Dr. Smith"
    )

    assert created.status == SessionStatus.AVAILABLE
    assert created.type == SessionType.ADMIN_CREATED
    assert created.duration_minutes == 90
    assert fake_client.sessions[created.id] == created
    _, params = fake_client.calls[-1]
    assert params["payload"] == {
        "tutorId": "t1",
        "subject": "Physics",
        "date": "2024-07-08",
        "time": "16:00",
        "duration": 90,
        "status": "available",
        "type": "admin_created",
        "tutorName": "Dr. Smith",
    }

@pytest.mark.asyncio
async def test_occupied_key_is_rejected(service, fake_client):
    fake_client.add(make_session("b1", at="16:00", status="booked", students=["st1"]))

    with pytest.raises(SessionSlotTakenError) as exc_info:
        await service.create_available_session("t1", MONDAY, time(16, 0))

    assert exc_info.value.code == "SESSION_SLOT_TAKEN"
    assert exc_info.value.status_code == 409
    assert exc_info.value.details["conflicting_session_id"] == "b1"
    assert "create_session" not in fake_client.call_names()

@pytest.mark.asyncio
async def test_overlapping_interval_is_rejected(service, fake_client):
    fake_client.add(
        make_session("req1", at="15:00", status="pending", students=["st1"], duration=120, type="slot_request")
    )

    with pytest.raises(SessionSlotTakenError):
        await service.create_available_session("t1", MONDAY, time(16, 0))

@pytest.mark.asyncio
async def test_existing_open_session_blocks_duplicate(service, fake_client):
    fake_client.add(make_session("open", at="16:00"))

    with pytest.raises(SessionSlotTakenError):
        await service.create_available_session("t1", MONDAY, time(16, 30), 30)

@pytest.mark.asyncio
async def test_adjacent_and_cancelled_sessions_do_not_block(service, fake_client):
    fake_client.add(
        make_session("before", at="15:00", status="booked", students=["st1"]),
        make_session("gone", at="16:00", status="cancelled"),
        make_session("other", tutor_id="t2", at="16:00", status="booked", students=["st2"]),
        make_session("later", day=date(2024, 7, 9), at="16:00", status="booked", students=["st3"]),
    )

    created = await service.create_available_session("t1", MONDAY, time(16, 0))

    assert created.time == time(16, 0)

@pytest.mark.asyncio
@pytest.mark.parametrize("start,duration", [(time(10, 0), 0), (time(10, 0), -30), (time(23, 30), 60)])
async def test_duration_must_fit_the_day(service, fake_client, start, duration):
    with pytest.raises(ValidationException) as exc_info:
        await service.create_available_session("t1", MONDAY, start, duration)

    assert exc_info.value.code == "INVALID_SESSION_DURATION"
    assert fake_client.calls == []

@pytest.mark.asyncio
async def test_created_session_is_offered_as_bookable_slot(service, fake_client):
    fake_client.availability["t1"] = WeeklyAvailability()

    created = await service.create_available_session("t1", MONDAY, time(18, 0))
    slots = await AvailabilityReconciler(fake_client).free_slots("t1", MONDAY)

    assert [(c.time, c.session_id) for c in slots] == [(time(18, 0), created.id)]
