import asyncio
from datetime import date

import pytest
from tutorslots.core.enums import RejectionKind, SessionStatus
from tutorslots.core.exceptions import (
    BookingRejection,
    ConflictError,
    MalformedPayloadError,
    NetworkError,
    SessionNotFoundError,
)
from tutorslots.services.booking_orchestrator import BookingOrchestrator, candidate_from_session

from .conftest import make_session

WEDNESDAY = date(2024, 7, 10)


@pytest.fixture
def orchestrator(fake_client, fixed_clock):
    fake_client.add(make_session("s1", day=WEDNESDAY, at="10:00"))
    return BookingOrchestrator(fake_client, clock=fixed_clock)


def test_candidate_from_session_keeps_identity():
    session = make_session("s1", day=WEDNESDAY, at="10:00", duration=90)

    candidate = candidate_from_session(session)

    assert candidate.session_id == "s1"
    assert candidate.duration_minutes == 90
    assert candidate.status == SessionStatus.AVAILABLE


@pytest.mark.asyncio
async def test_book_slot_success_refreshes_views(orchestrator, fake_client):
    result = await orchestrator.book_slot("s1", "st1")

    assert result.session.status == SessionStatus.BOOKED
    assert result.session.has_student("st1")
    assert result.refreshed is True
    assert [s.id for s in result.student_bookings] == ["s1"]
    assert [s.id for s in result.sessions] == ["s1"]
    assert fake_client.call_names() == [
        "get_session",
        "list_sessions",
        "book_session",
        "list_sessions",
        "list_sessions",
    ]


@pytest.mark.asyncio
async def test_second_booking_same_day_is_refused(orchestrator, fake_client):
    fake_client.add(make_session("s2", tutor_id="t2", day=WEDNESDAY, at="15:00"))
    await orchestrator.book_slot("s1", "st1")

    with pytest.raises(BookingRejection) as exc_info:
        await orchestrator.book_slot("s2", "st1")

    assert exc_info.value.kind == RejectionKind.DAILY_LIMIT_REACHED
    assert fake_client.sessions["s2"].status == SessionStatus.AVAILABLE
    assert fake_client.call_names().count("book_session") == 1


@pytest.mark.asyncio
async def test_already_taken_slot_is_refused_without_write(orchestrator, fake_client):
    fake_client.add(make_session("s1", day=WEDNESDAY, at="10:00", status="booked", students=["st2"]))

    with pytest.raises(BookingRejection) as exc_info:
        await orchestrator.book_slot("s1", "st1")

    assert exc_info.value.kind == RejectionKind.SLOT_NO_LONGER_AVAILABLE
    assert "book_session" not in fake_client.call_names()


@pytest.mark.asyncio
async def test_lost_race_maps_to_slot_no_longer_available(orchestrator, fake_client):
    fake_client.failures["book_session"] = ConflictError("store_conflict")

    with pytest.raises(BookingRejection) as exc_info:
        await orchestrator.book_slot("s1", "st1")

    assert exc_info.value.kind == RejectionKind.SLOT_NO_LONGER_AVAILABLE
    assert exc_info.value.details == {"session_id": "s1"}


@pytest.mark.asyncio
async def test_concurrent_bookings_one_winner(orchestrator, fake_client):
    results = await asyncio.gather(
        orchestrator.book_slot("s1", "st1"),
        orchestrator.book_slot("s1", "st2"),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, BaseException)]
    losers = [r for r in results if isinstance(r, BookingRejection)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].kind == RejectionKind.SLOT_NO_LONGER_AVAILABLE
    assert len(fake_client.sessions["s1"].students) == 1


@pytest.mark.asyncio
async def test_lead_time_rejection_from_fresh_state(fake_client, fixed_clock):
    # Clock is Monday 06:00 UTC; 15:00 the same day is only nine hours away
    fake_client.add(make_session("soon", at="15:00"))
    orchestrator = BookingOrchestrator(fake_client, clock=fixed_clock)

    with pytest.raises(BookingRejection) as exc_info:
        await orchestrator.book_slot("soon", "st1")

    assert exc_info.value.kind == RejectionKind.INSUFFICIENT_LEAD_TIME


@pytest.mark.asyncio
async def test_unknown_session(orchestrator):
    with pytest.raises(SessionNotFoundError):
        await orchestrator.book_slot("missing", "st1")


@pytest.mark.asyncio
async def test_network_error_is_not_retried(orchestrator, fake_client):
    fake_client.failures["book_session"] = NetworkError("store_timeout")

    with pytest.raises(NetworkError):
        await orchestrator.book_slot("s1", "st1")

    assert fake_client.call_names().count("book_session") == 1


@pytest.mark.asyncio
async def test_refresh_failure_still_returns_booking(orchestrator, fake_client):
    book = fake_client.book_session

    async def book_then_break(*args, **kwargs):
        booked = await book(*args, **kwargs)
        fake_client.failures["list_sessions"] = NetworkError("store_timeout")
        return booked

    fake_client.book_session = book_then_break

    result = await orchestrator.book_slot("s1", "st1")

    assert result.refreshed is False
    assert result.session.status == SessionStatus.BOOKED
    assert result.sessions == []


@pytest.mark.asyncio
async def test_refresh_malformed_payload_propagates(orchestrator, fake_client):
    book = fake_client.book_session

    async def book_then_break(*args, **kwargs):
        booked = await book(*args, **kwargs)
        fake_client.failures["list_sessions"] = MalformedPayloadError("malformed_session_list_payload")
        return booked

    fake_client.book_session = book_then_break

    with pytest.raises(MalformedPayloadError):
        await orchestrator.book_slot("s1", "st1")
