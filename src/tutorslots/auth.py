"""Authentication session context for store requests."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

import jwt

from .core.enums import RoleName
from .core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TokenStorage(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStorage:
    """Keeps the token for the lifetime of the process only."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStorage:
    """Persists the token as JSON on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("token_file_unreadable path=%s error=%s", self.path, exc)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthSession:
    """
    Explicit auth context handed to the store client.

    Lifecycle: ``hydrate()`` restores a saved token, ``login()`` installs a
    new one and ``logout()`` clears both storage and memory.
    """

    def __init__(self, storage: TokenStorage) -> None:
        self.storage = storage
        self._token: Optional[str] = None
        self._claims: dict[str, Any] = {}

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and not self._is_expired()

    @property
    def user_id(self) -> Optional[str]:
        value = self._claims.get("sub") or self._claims.get("id") or self._claims.get("userId")
        return str(value) if value is not None else None

    @property
    def role(self) -> Optional[RoleName]:
        value = self._claims.get("role")
        try:
            return RoleName(value) if value else None
        except ValueError:
            logger.warning("unknown_role_claim role=%s", value)
            return None

    @property
    def expires_at(self) -> Optional[datetime]:
        exp = self._claims.get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)

    def hydrate(self) -> bool:
        """Restore the saved token; returns True when a usable token was found."""
        token = self.storage.load()
        if not token:
            return False
        try:
            self._install(token)
        except AuthenticationError:
            logger.warning("stored_token_invalid_discarded")
            self.logout()
            return False
        if self._is_expired():
            logger.info("stored_token_expired_discarded")
            self.logout()
            return False
        return True

    def login(self, token: str) -> None:
        self._install(token)
        if self._is_expired():
            self._token = None
            self._claims = {}
            raise AuthenticationError("Token already expired", code="token_expired")
        self.storage.save(token)

    def logout(self) -> None:
        self.storage.clear()
        self._token = None
        self._claims = {}

    def get_headers(self, request_id: str) -> dict:
        if not self.is_authenticated:
            raise AuthenticationError("Not signed in", code="not_authenticated")
        return {
            "Authorization": f"Bearer {self._token}",
            "X-Request-Id": request_id,
        }

    def _install(self, token: str) -> None:
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError(f"Invalid token: {exc}", code="invalid_token") from exc
        self._token = token
        self._claims = claims

    def _is_expired(self) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and expires_at <= datetime.now(timezone.utc)
