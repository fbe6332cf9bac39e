"""Process-local cache of loaded users keyed by id."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class UserCache:
    """Map user ids to loaded :class:`~accounts.user.User` instances.

    Entries live until they are replaced by a forced reload or dropped with
    :meth:`invalidate` / :meth:`clear`.
    """

    def __init__(self) -> None:
        self._users: Dict[int, "User"] = {}
        self._lock = threading.Lock()
        self._loading: Dict[int, threading.Lock] = {}

    def get(self, user_id: int) -> Optional["User"]:
        with self._lock:
            return self._users.get(user_id)

    def get_or_create(
        self,
        user_id: int,
        factory: Callable[[], "User"],
        *,
        force: bool = False,
    ) -> "User":
        """Return the cached user, building it with ``factory`` when needed.

        Each id has its own loading lock, so two threads loading the same id
        fetch it once while loads of other ids proceed in parallel.
        """

        if not force:
            cached = self.get(user_id)
            if cached is not None:
                return cached

        with self._loading_lock(user_id):
            if not force:
                cached = self.get(user_id)
                if cached is not None:
                    return cached
            user = factory()
            with self._lock:
                self._users[user_id] = user
            return user

    def invalidate(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._users.clear()

    def _loading_lock(self, user_id: int) -> threading.Lock:
        with self._lock:
            return self._loading.setdefault(user_id, threading.Lock())

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._users

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


__all__ = ["UserCache"]
