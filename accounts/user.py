"""The user account object: loading, caching, guest state and permission checks."""
from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .errors import UserNotFound
from .models import UserRecord, empty_profile, to_object
from .passwords import gen_random_password
from .registry import Registry

if TYPE_CHECKING:  # pragma: no cover
    from .context import AccountContext

logger = logging.getLogger("accounts.user")


def _coerce_id(value: Any) -> int:
    """Convert ``value`` to a user id; non-numeric values become ``0``.

    Negative ids are kept so they reach the store and fail there instead of
    falling back to the session user.
    """

    if value is None or isinstance(value, bool):
        return 0
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        return 0
    return user_id


class User:
    """A site user, or the guest when ``id`` is ``0``.

    Instances returned by :meth:`load` come from the context's
    :class:`~accounts.cache.UserCache` and never carry a password.
    """

    id: int
    name: str
    username: str
    email: Optional[str]
    password: str
    block: bool
    send_email: bool
    guest: Optional[bool]
    register_date: Optional[str]
    last_visit_date: Optional[str]
    activation: str
    params: Registry
    profile: Any

    def __init__(self, context: "AccountContext") -> None:
        self._context = context
        self.clear()

    def is_guest(self) -> bool:
        """Return ``True`` when the user is not logged in."""

        return self.guest is None or self.guest == 1

    def authorise(self, section: str, action: str = "") -> bool:
        """Check whether the user may perform ``action`` on ``section``.

        ``"content.edit"`` is shorthand for ``("content", "edit")``; when the
        shorthand is used the ``action`` argument is ignored.
        """

        if "." in section:
            section, action = section.split(".", 1)
        return self._context.acl.check_user(int(self.id or 0), section, action)

    def set_last_visit(self, timestamp: Optional[int] = None) -> bool:
        """Update the stored last visit time; ``None`` means now."""

        return self._context.user_table().set_last_visit(timestamp, self.id)

    def load(self, user_id: Any = None, force: bool = False) -> "User":
        """Return the user for ``user_id`` (or the session's user).

        Without a usable id this instance is reset to the guest and returned.
        Otherwise the cached instance is returned unless ``force`` is set, in
        which case the row is fetched again and the cache entry replaced.

        :raises UserNotFound: if no row exists for the resolved id.
        """

        resolved = _coerce_id(user_id)
        if not resolved:
            resolved = _coerce_id(self._context.session.get("user_id"))
            if not resolved:
                self.clear()
                return self

        return self._context.cache.get_or_create(
            resolved,
            lambda: self._fetch(resolved),
            force=force,
        )

    @staticmethod
    def gen_random_password(length: int = 8) -> str:
        return gen_random_password(length)

    def bind(self, record: UserRecord) -> "User":
        """Copy the fields of ``record`` onto this instance."""

        self.id = _coerce_id(record.id)
        self.name = record.name
        self.username = record.username
        self.email = record.email
        self.password = record.password
        self.block = bool(record.block)
        self.send_email = bool(record.send_email)
        self.guest = record.guest
        self.register_date = record.register_date
        self.last_visit_date = record.last_visit_date
        self.activation = record.activation
        self.params = record.params if isinstance(record.params, Registry) else Registry(record.params)
        self.profile = record.profile if record.profile is not None else empty_profile()
        return self

    def clear(self) -> None:
        """Reset every field to the guest defaults."""

        self.bind(UserRecord(guest=True, params=Registry(), profile=SimpleNamespace()))

    def _fetch(self, user_id: int) -> "User":
        logger.debug("Loading user %s from the store", user_id)
        table = self._context.user_table()
        if not table.load(user_id):
            logger.warning("Unable to load user %s", user_id)
            message = self._context.localizer.format_message("USER_ERROR_UNABLE_TO_LOAD_USER", user_id)
            raise UserNotFound(user_id, message)

        record = table.dump()
        record.guest = False
        record.params = Registry(record.params)
        if isinstance(record.profile, Mapping):
            record.profile = to_object(record.profile)
        elif not record.profile:
            record.profile = None
        record.password = ""

        instance = User(self._context)
        instance.bind(record)
        return instance

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r}, guest={self.is_guest()!r})"


__all__ = ["User"]
