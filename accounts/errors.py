"""Exceptions raised by the accounts package."""
from __future__ import annotations


class AccountsError(Exception):
    """Base class for account layer failures."""


class ConfigurationError(AccountsError):
    """Raised when the settings file cannot be read or is malformed."""


class UserNotFound(AccountsError, RuntimeError):
    """Raised when a resolved, non-empty user id has no matching row."""

    def __init__(self, user_id: int, message: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(message or f"Unable to load user {user_id}")


__all__ = ["AccountsError", "ConfigurationError", "UserNotFound"]
