"""Collaborator contracts consumed by :mod:`accounts.user` and :mod:`accounts.helper`."""
from __future__ import annotations

from typing import Any, List, Optional, Protocol

from .models import UserRecord


class UserRowStore(Protocol):
    def load(self, user_id: int) -> bool: ...

    def dump(self) -> UserRecord: ...

    def set_last_visit(self, timestamp: Optional[int], user_id: int) -> bool: ...


class SessionStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


class AclService(Protocol):
    def check_user(self, user_id: int, section: str, action: str = "") -> bool: ...

    def get_groups_by_user(self, user_id: int) -> List[int]: ...


class MessageLocalizer(Protocol):
    def format_message(self, key: str, *args: Any) -> str: ...


class SecureRandom(Protocol):
    def __call__(self, n: int) -> bytes: ...


__all__ = ["AclService", "MessageLocalizer", "SecureRandom", "SessionStore", "UserRowStore"]
