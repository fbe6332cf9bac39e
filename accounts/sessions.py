"""In-memory session handling for the account layer."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .config import Settings


class Session:
    """Key/value data attached to one visitor."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(data or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> Any:
        with self._lock:
            previous = self._data.get(key)
            self._data[key] = value
            return previous

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)


@dataclass
class _SessionRecord:
    session: Session
    expires_at: datetime


class SessionManager:
    """Generate, validate, and revoke session tokens."""

    def __init__(self, *, ttl: timedelta = timedelta(hours=8)) -> None:
        self._ttl = ttl
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SessionManager":
        return cls(ttl=timedelta(seconds=settings.session_ttl_seconds))

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def create(self, data: Optional[Mapping[str, Any]] = None) -> str:
        token = secrets.token_urlsafe(32)
        record = _SessionRecord(session=Session(data), expires_at=self._now() + self._ttl)
        with self._lock:
            self._sessions[token] = record
        return token

    def resolve(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        now = self._now()
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(token, None)
                return None
            record.expires_at = now + self._ttl
            return record.session

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["Session", "SessionManager"]
