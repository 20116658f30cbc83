"""HTTP client for the tutoring platform's session store API."""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, TypeVar
from urllib.parse import quote
from uuid import uuid4

import httpx
from pydantic import BaseModel, SecretStr, TypeAdapter, ValidationError

from .auth import AuthSession
from .config import Settings
from .core.enums import SessionStatus, Weekday
from .core.exceptions import (
    AuthenticationError,
    ConflictError,
    MalformedPayloadError,
    NetworkError,
    StoreAuthError,
    StoreNotFoundError,
    StoreRequestError,
)
from .schemas.availability import TutorAvailability, WeeklyAvailability
from .schemas.session import Session, SessionFilter

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_SESSION_LIST = TypeAdapter(list[Session])


def _secret_value(value: SecretStr | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return str(value)


def _unwrap(body: Any) -> Any:
    """Strip the ``{"success", "data", "message"}`` envelope when present."""
    if isinstance(body, dict):
        if body.get("success") is False:
            raise StoreRequestError(body.get("message") or "store_request_failed")
        if "data" in body:
            return body["data"]
    return body


def _parse(model: type[ModelT], data: Any, *, what: str, context: dict[str, Any] | None = None) -> ModelT:
    try:
        return model.model_validate(data, context=context)
    except ValidationError as exc:
        raise MalformedPayloadError(f"malformed_{what}_payload", details={"errors": exc.errors()}) from exc


def _parse_sessions(data: Any, context: dict[str, Any] | None = None) -> list[Session]:
    if isinstance(data, dict) and "sessions" in data:
        data = data["sessions"]
    try:
        return _SESSION_LIST.validate_python(data, context=context)
    except ValidationError as exc:
        raise MalformedPayloadError("malformed_session_list_payload", details={"errors": exc.errors()}) from exc


class SessionStoreClient:
    """HTTP client for the session and availability store."""

    def __init__(
        self,
        settings: Settings,
        auth: AuthSession | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.auth = auth
        self.http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(
                connect=10.0,
                read=settings.request_timeout_seconds,
                write=10.0,
                pool=10.0,
            ),
        )

    @property
    def _context(self) -> dict[str, Any]:
        # Store dates are ISO datetimes; calendar days are platform-local
        return {"timezone": self.settings.timezone}

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "SessionStoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_id = str(uuid4())
        request_headers = self._auth_headers(request_id)
        if headers:
            request_headers.update(headers)
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(
                f"store_timeout: Request to {path} timed out",
                details={"path": path, "request_id": request_id},
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"store_connection_failed: {exc}",
                details={"path": path, "request_id": request_id},
            ) from exc

        if response.status_code in {401, 403}:
            raise StoreAuthError("store_auth_failed")
        if response.status_code == 404:
            raise StoreNotFoundError("store_not_found", details={"path": path})
        if response.status_code in {409, 412}:
            raise ConflictError(
                self._error_message(response) or "store_conflict",
                details={"path": path},
            )
        if response.status_code >= 400:
            raise StoreRequestError(
                f"store_error_{response.status_code}",
                details={"path": path, "message": self._error_message(response)},
            )

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedPayloadError("store_response_not_json", details={"path": path}) from exc
        return _unwrap(body)

    def _auth_headers(self, request_id: str) -> dict[str, str]:
        if self.auth is not None:
            return self.auth.get_headers(request_id)
        token = _secret_value(self.settings.api_token).strip()
        if not token:
            raise AuthenticationError("api_token_missing")
        return {"Authorization": f"Bearer {token}", "X-Request-Id": request_id}

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            message = body.get("message") or body.get("detail")
            return str(message) if message else None
        return None

    # Availability

    async def get_availability(self, tutor_id: str) -> TutorAvailability:
        data = await self.call("GET", f"/tutors/{quote(tutor_id, safe='')}/availability")
        return _parse(TutorAvailability, data or {}, what="availability", context=self._context)

    async def put_availability(self, tutor_id: str, availability: WeeklyAvailability) -> None:
        await self.call(
            "PUT",
            f"/tutors/{quote(tutor_id, safe='')}/availability",
            json={"availability": availability.to_wire()},
        )

    async def delete_availability_day(self, tutor_id: str, weekday: Weekday) -> None:
        await self.call(
            "DELETE",
            f"/tutors/{quote(tutor_id, safe='')}/availability/{Weekday(weekday).value}",
        )

    # Sessions

    async def list_sessions(
        self,
        *,
        tutor_id: str | None = None,
        student_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        status: SessionStatus | None = None,
    ) -> list[Session]:
        session_filter = SessionFilter(
            tutor_id=tutor_id,
            student_id=student_id,
            date_from=date_from,
            date_to=date_to,
            status=status,
        )
        data = await self.call("GET", "/sessions", params=session_filter.to_params() or None)
        return _parse_sessions(data or [], self._context)

    async def get_session(self, session_id: str) -> Session:
        data = await self.call("GET", f"/sessions/{quote(session_id, safe='')}")
        return _parse(Session, data, what="session", context=self._context)

    async def create_session(self, payload: dict[str, Any]) -> Session:
        data = await self.call("POST", "/sessions", json=payload)
        return _parse(Session, data, what="session", context=self._context)

    async def book_session(
        self,
        session_id: str,
        student_id: str,
        *,
        expected_status: SessionStatus = SessionStatus.AVAILABLE,
    ) -> Session:
        """Conditional booking write; raises ConflictError when the slot was taken."""
        data = await self.call(
            "PUT",
            f"/sessions/{quote(session_id, safe='')}/book",
            json={"studentId": student_id, "expectedStatus": expected_status.value},
            headers={"X-Expected-Status": expected_status.value},
        )
        return _parse(Session, data, what="session", context=self._context)

    async def update_session_status(
        self,
        session_id: str,
        status: SessionStatus,
        *,
        expected_status: SessionStatus | None = None,
    ) -> Session:
        payload: dict[str, Any] = {"status": status.value}
        headers: dict[str, str] = {}
        if expected_status is not None:
            payload["expectedStatus"] = expected_status.value
            headers["X-Expected-Status"] = expected_status.value
        data = await self.call(
            "PUT",
            f"/sessions/{quote(session_id, safe='')}/status",
            json=payload,
            headers=headers or None,
        )
        return _parse(Session, data, what="session", context=self._context)

    # Slot requests

    async def create_slot_request(self, payload: dict[str, Any]) -> Session:
        data = await self.call("POST", "/slot-requests", json=payload)
        return _parse(Session, data, what="slot_request", context=self._context)

    async def review_slot_request(
        self,
        session_id: str,
        *,
        approve: bool,
        reason: str | None = None,
    ) -> Session:
        payload: dict[str, Any] = {
            "status": SessionStatus.APPROVED.value if approve else "rejected",
            "expectedStatus": SessionStatus.PENDING.value,
        }
        if reason:
            payload["reason"] = reason
        data = await self.call(
            "PUT",
            f"/slot-requests/{quote(session_id, safe='')}/status",
            json=payload,
            headers={"X-Expected-Status": SessionStatus.PENDING.value},
        )
        return _parse(Session, data, what="slot_request", context=self._context)
