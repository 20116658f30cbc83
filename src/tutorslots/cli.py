#!/usr/bin/env python3
"""
Command line entry point for the slot booking engine.

Usage:
    tutorslots grid --granularity 30
    tutorslots free-slots TUTOR_ID 2024-07-08 --workflow availability_editing
    tutorslots book SESSION_ID STUDENT_ID
    tutorslots open-session TUTOR_ID 2024-07-08 "7:00 PM" --duration 90 --subject Physics

Exit codes: 0 on success, 1 on errors, 2 when a booking is rejected.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date, datetime, time
import logging
from typing import Any, List, Optional

import click

from .auth import AuthSession, FileTokenStorage
from .client import SessionStoreClient
from .config import Settings
from .core.enums import SlotWorkflow
from .core.exceptions import AuthenticationError, BookingRejection, DomainException
from .core.timezone_utils import local_today, utc_now
from .services.availability_reconciler import AvailabilityReconciler
from .services.booking_orchestrator import BookingOrchestrator
from .services.session_service import SessionService
from .services.time_grid import generate_slots
from .utils.time_utils import format_12h, parse_12h, string_to_time, time_to_string

logger = logging.getLogger("tutorslots.cli")


def _iso_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {value!r}") from exc


def _clock_time(value: str) -> time:
    """Accept 24-hour ``19:00`` or the grid's 12-hour ``7:00 PM`` label."""
    cleaned = value.strip()
    try:
        if cleaned.upper().endswith(("AM", "PM")):
            return parse_12h(cleaned)
        return string_to_time(cleaned)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid time: {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tutorslots", description="Slot availability and booking tools.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    grid = commands.add_parser("grid", help="Print the time grid with 12-hour labels.")
    grid.add_argument(
        "--granularity",
        type=int,
        default=None,
        help="Minutes between slots (default: the availability editing granularity).",
    )

    free = commands.add_parser("free-slots", help="List bookable slots for a tutor on a day.")
    free.add_argument("tutor_id")
    free.add_argument("day", type=_iso_date)
    free.add_argument(
        "--workflow",
        choices=[w.value for w in SlotWorkflow],
        default=SlotWorkflow.BOOKING.value,
        help="Grid to reconcile against (default: booking).",
    )

    book = commands.add_parser("book", help="Book an open session for a student.")
    book.add_argument("session_id")
    book.add_argument("student_id")

    open_session = commands.add_parser("open-session", help="Create a bookable session for a tutor.")
    open_session.add_argument("tutor_id")
    open_session.add_argument("day", type=_iso_date)
    open_session.add_argument("start", type=_clock_time)
    open_session.add_argument("--duration", type=int, default=60, help="Length in minutes (default: 60).")
    open_session.add_argument("--subject", default="", help="Subject shown to students.")
    open_session.add_argument("--tutor-name", dest="tutor_name", default=None)
    open_session.add_argument("--description", default=None)
    return parser


def _build_client(settings: Settings) -> SessionStoreClient:
    auth = None
    if settings.token_file is not None:
        auth = AuthSession(FileTokenStorage(settings.token_file))
        if not auth.hydrate():
            raise AuthenticationError(f"No valid token in {settings.token_file}")
    return SessionStoreClient(settings, auth=auth)


def _run_grid(args: argparse.Namespace, settings: Settings) -> None:
    step = args.granularity
    if step is None:
        step = settings.availability_granularity_minutes
    for slot in generate_slots(step):
        click.echo(f"{slot.hhmm}\t{slot.label}")


async def _free_slots(args: argparse.Namespace, settings: Settings) -> List[Any]:
    # Slots already in the past are not offered for today
    not_before = utc_now() if args.day == local_today(settings.timezone) else None
    async with _build_client(settings) as client:
        reconciler = AvailabilityReconciler(client, settings)
        return await reconciler.free_slots(
            args.tutor_id, args.day, SlotWorkflow(args.workflow), not_before=not_before
        )


def _run_free_slots(args: argparse.Namespace, settings: Settings) -> None:
    candidates = asyncio.run(_free_slots(args, settings))
    if not candidates:
        click.echo("No free slots.")
        return
    for candidate in candidates:
        suffix = f"\t{candidate.session_id}" if candidate.session_id else ""
        click.echo(
            f"{time_to_string(candidate.time)}\t{format_12h(candidate.time)}"
            f"\t{candidate.duration_minutes}min{suffix}"
        )


async def _book(args: argparse.Namespace, settings: Settings):
    async with _build_client(settings) as client:
        orchestrator = BookingOrchestrator(client, settings=settings)
        return await orchestrator.book_slot(args.session_id, args.student_id)


def _run_book(args: argparse.Namespace, settings: Settings) -> None:
    session = asyncio.run(_book(args, settings)).session
    click.echo(f"Booked {session.id} on {session.date} at {time_to_string(session.time)}")


async def _open_session(args: argparse.Namespace, settings: Settings):
    async with _build_client(settings) as client:
        return await SessionService(client, settings).create_available_session(
            args.tutor_id,
            args.day,
            args.start,
            args.duration,
            args.subject,
            tutor_name=args.tutor_name,
            description=args.description,
        )


def _run_open_session(args: argparse.Namespace, settings: Settings) -> None:
    session = asyncio.run(_open_session(args, settings))
    click.echo(
        f"Opened {session.id} on {session.date} at {time_to_string(session.time)}"
        f" ({session.duration_minutes}min)"
    )


COMMANDS = {
    "grid": _run_grid,
    "free-slots": _run_free_slots,
    "book": _run_book,
    "open-session": _run_open_session,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        settings = Settings()
        COMMANDS[args.command](args, settings)
    except BookingRejection as exc:
        click.echo(click.style(f"Booking rejected: {exc.message}", fg="yellow"), err=True)
        return 2
    except DomainException as exc:
        logger.debug("Command %s failed: %s", args.command, exc.to_dict())
        click.echo(click.style(f"Error: {exc.message}", fg="red"), err=True)
        return 1
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
