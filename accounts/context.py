"""Wiring of the collaborators shared by users and helpers."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .acl import Acl
from .cache import UserCache
from .config import Settings, load_settings
from .database import Database, UserTable
from .helper import UserHelper
from .interfaces import AclService, MessageLocalizer, SessionStore, UserRowStore
from .language import load_language
from .passwords import PasswordHasher
from .sessions import Session
from .user import User

logger = logging.getLogger("accounts.context")


@dataclass
class AccountContext:
    """Everything a :class:`User` needs to load itself and check permissions.

    One context (and therefore one cache and one ACL) is shared by every
    user object built from it.
    """

    database: Optional[Database]
    session: SessionStore
    acl: AclService
    localizer: MessageLocalizer
    cache: UserCache = field(default_factory=UserCache)
    hasher: PasswordHasher = field(default_factory=PasswordHasher)
    table_factory: Optional[Callable[[], UserRowStore]] = None

    def user_table(self) -> UserRowStore:
        if self.table_factory is not None:
            return self.table_factory()
        if self.database is None:
            raise RuntimeError("AccountContext has neither a database nor a table factory")
        return UserTable(self.database)

    def with_session(self, session: SessionStore) -> "AccountContext":
        """Return a copy bound to ``session`` that shares cache and services."""

        return dataclasses.replace(self, session=session)

    def user(self, user_id: Any = None, force: bool = False) -> User:
        return User(self).load(user_id, force)

    def helper(self) -> UserHelper:
        if self.database is None:
            raise RuntimeError("AccountContext has no database")
        return UserHelper(self.database, self.acl, hasher=self.hasher)


def create_context(
    settings: Optional[Settings] = None,
    *,
    session: Optional[SessionStore] = None,
) -> AccountContext:
    """Build a context from ``settings`` (loaded from disk when omitted)."""

    settings = settings or load_settings()
    database = Database(settings.database_path)
    database.initialize()
    logger.debug("Accounts database ready at %s", settings.database_path)

    return AccountContext(
        database=database,
        session=session if session is not None else Session(),
        acl=Acl(database, guest_group_id=settings.guest_group_id),
        localizer=load_language(settings.language, settings.language_file),
        hasher=PasswordHasher(default=settings.password_algo, options=settings.password_options),
    )


__all__ = ["AccountContext", "create_context"]
