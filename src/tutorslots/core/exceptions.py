# src/tutorslots/core/exceptions.py
"""
Domain-specific exceptions for the slot booking engine.

These exceptions provide clear, business-focused error messages that a
caller (web handler, CLI, dashboard) can catch and render. Each carries a
stable ``code`` and a ``details`` mapping alongside the human message.
"""

from typing import Any, Dict, Optional

from .enums import RejectionKind


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when input validation fails."""

    status_code = 400


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = 404


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = 409


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = 422


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = 401


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = 500


# Specific business exceptions


class InvalidGranularityError(ValidationException):
    """Raised when a slot granularity does not evenly divide a day."""

    def __init__(self, granularity_minutes: Any, reason: Optional[str] = None):
        super().__init__(
            message=reason or f"Granularity must evenly divide 1440 minutes, got {granularity_minutes}",
            code="INVALID_GRANULARITY",
            details={"granularity_minutes": granularity_minutes},
        )


class TutorNotFoundError(NotFoundException):
    """Raised when a tutor id cannot be resolved by the store."""

    def __init__(self, tutor_id: str):
        super().__init__(
            message=f"Tutor {tutor_id} not found",
            code="TUTOR_NOT_FOUND",
            details={"tutor_id": tutor_id},
        )


class SessionNotFoundError(NotFoundException):
    """Raised when a session id cannot be resolved by the store."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session {session_id} not found",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class AvailabilityFetchError(ServiceException):
    """Raised when availability or sessions could not be loaded upstream."""

    def __init__(self, tutor_id: str, reason: str):
        super().__init__(
            message=f"Could not load availability for tutor {tutor_id}: {reason}",
            code="AVAILABILITY_FETCH_FAILED",
            details={"tutor_id": tutor_id},
        )


_REJECTION_MESSAGES = {
    RejectionKind.INSUFFICIENT_LEAD_TIME: (
        "Sessions must be booked at least {min_lead_hours:g} hours in advance",
        "This slot starts too soon to be booked",
    ),
    RejectionKind.CLOSED_DAY: (
        "Sessions cannot be booked on {weekday}",
        "Sessions cannot be booked on this day",
    ),
    RejectionKind.DAILY_LIMIT_REACHED: (
        "You already have a session booked on {date}",
        "You already have a session booked on this day",
    ),
    RejectionKind.SLOT_NO_LONGER_AVAILABLE: (
        "This slot is no longer available, please pick another one",
        "This slot is no longer available, please pick another one",
    ),
}


class BookingRejection(BusinessRuleException):
    """An expected, user-facing refusal of a booking attempt."""

    def __init__(self, kind: RejectionKind, **details: Any):
        template, fallback = _REJECTION_MESSAGES[kind]
        try:
            message = template.format(**details)
        except (KeyError, ValueError):
            message = fallback
        super().__init__(message=message, code=kind.value.upper(), details=details)
        self.kind = kind


class InvalidTransitionError(BusinessRuleException):
    """Raised when a session or slot request cannot move to the target state."""

    def __init__(self, current: str, target: str, session_id: Optional[str] = None):
        super().__init__(
            message=f"Cannot move from {current} to {target}",
            code="INVALID_TRANSITION",
            details={"current": current, "target": target, "session_id": session_id},
        )


class SlotRequestConflictError(ConflictException):
    """Raised when approving a slot request would double-book the tutor."""

    def __init__(self, session_id: str, conflicting_session_id: str):
        super().__init__(
            message="The tutor already has an approved session at this time",
            code="SLOT_REQUEST_CONFLICT",
            details={
                "session_id": session_id,
                "conflicting_session_id": conflicting_session_id,
            },
        )


class SessionSlotTakenError(ConflictException):
    """Raised when an open session would overlap one already on the tutor's calendar."""

    def __init__(self, tutor_id: str, date: str, time: str, conflicting_session_id: str):
        super().__init__(
            message="The tutor already has a session at this time",
            code="SESSION_SLOT_TAKEN",
            details={
                "tutor_id": tutor_id,
                "date": date,
                "time": time,
                "conflicting_session_id": conflicting_session_id,
            },
        )


class StaleResponseError(DomainException):
    """Raised when a response arrives after a newer request superseded it."""

    def __init__(self, generation: int, current: int):
        super().__init__(
            message="Response superseded by a newer request",
            code="STALE_RESPONSE",
            details={"generation": generation, "current": current},
        )


# Store (remote API) errors


class StoreError(DomainException):
    """Base error for session store request failures."""


class NetworkError(StoreError):
    """Raised for transport-level failures; retryable by the caller."""

    status_code = 503


class ConflictError(StoreError):
    """Raised when a conditional write lost an optimistic-concurrency race."""

    status_code = 409


class StoreAuthError(StoreError):
    """Raised when the store rejects authentication."""

    status_code = 401


class StoreNotFoundError(StoreError):
    """Raised when the store resource is not found."""

    status_code = 404


class StoreRequestError(StoreError):
    """Raised for other non-success store responses."""


class MalformedPayloadError(StoreError):
    """Raised when the store answers with a payload we cannot interpret."""


class AuthenticationError(UnauthorizedException):
    """Raised when no usable auth token is available."""
