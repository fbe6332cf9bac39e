"""User accounts, permission checks and password utilities."""

from __future__ import annotations

from .acl import Acl
from .cache import UserCache
from .config import Settings, load_settings
from .context import AccountContext, create_context
from .database import Database, UserTable, resolve_database_path
from .errors import AccountsError, ConfigurationError, UserNotFound
from .helper import UserHelper
from .models import Group, UserRecord
from .passwords import PasswordHasher, gen_random_password
from .registry import Registry
from .sessions import Session, SessionManager
from .user import User

__all__ = [
    "AccountContext",
    "AccountsError",
    "Acl",
    "ConfigurationError",
    "Database",
    "Group",
    "PasswordHasher",
    "Registry",
    "Session",
    "SessionManager",
    "Settings",
    "User",
    "UserCache",
    "UserHelper",
    "UserNotFound",
    "UserRecord",
    "UserTable",
    "create_context",
    "gen_random_password",
    "load_settings",
    "resolve_database_path",
]
