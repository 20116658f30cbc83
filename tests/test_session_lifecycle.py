import pytest
from tutorslots.core.enums import SessionStatus
from tutorslots.core.exceptions import ConflictError, InvalidTransitionError, SessionNotFoundError
from tutorslots.services.session_lifecycle import SessionLifecycleService, can_transition

from .conftest import make_session


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (SessionStatus.AVAILABLE, SessionStatus.BOOKED, True),
        (SessionStatus.BOOKED, SessionStatus.COMPLETED, True),
        (SessionStatus.BOOKED, SessionStatus.CANCELLED, True),
        (SessionStatus.APPROVED, SessionStatus.COMPLETED, True),
        (SessionStatus.AVAILABLE, SessionStatus.COMPLETED, False),
        (SessionStatus.COMPLETED, SessionStatus.CANCELLED, False),
        (SessionStatus.CANCELLED, SessionStatus.AVAILABLE, False),
    ],
)
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.mark.asyncio
async def test_complete_booked_session(fake_client):
    fake_client.add(make_session("s1", status="booked", students=["st1"]))

    updated = await SessionLifecycleService(fake_client).complete_session("s1")

    assert updated.status == SessionStatus.COMPLETED
    assert fake_client.calls[-1] == (
        "update_session_status",
        {"session_id": "s1", "status": SessionStatus.COMPLETED},
    )


@pytest.mark.asyncio
async def test_student_cancels_booking(fake_client):
    fake_client.add(make_session("s1", status="booked", students=["st1"]))

    updated = await SessionLifecycleService(fake_client).cancel_session("s1")

    assert updated.status == SessionStatus.CANCELLED


@pytest.mark.asyncio
async def test_cannot_complete_open_slot(fake_client):
    fake_client.add(make_session("s1"))

    with pytest.raises(InvalidTransitionError):
        await SessionLifecycleService(fake_client).complete_session("s1")

    assert "update_session_status" not in fake_client.call_names()


@pytest.mark.asyncio
async def test_conditional_write_conflict_propagates(fake_client):
    fake_client.add(make_session("s1", status="booked", students=["st1"]))
    fake_client.failures["update_session_status"] = ConflictError("store_conflict")

    with pytest.raises(ConflictError):
        await SessionLifecycleService(fake_client).cancel_session("s1")


@pytest.mark.asyncio
async def test_unknown_session(fake_client):
    with pytest.raises(SessionNotFoundError):
        await SessionLifecycleService(fake_client).cancel_session("missing")
