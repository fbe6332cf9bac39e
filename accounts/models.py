"""Domain records exchanged between the store, the ACL and user objects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from types import SimpleNamespace
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("accounts.models")


@dataclass
class UserRecord:
    """A row of the ``users`` table as handed out by :class:`UserTable`."""

    id: int = 0
    name: str = ""
    username: str = ""
    email: Optional[str] = None
    password: str = ""
    block: bool = False
    send_email: bool = False
    guest: Optional[bool] = None
    register_date: Optional[str] = None
    last_visit_date: Optional[str] = None
    activation: str = ""
    params: Any = None
    profile: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserRecord":
        """Build a record from ``data``, dropping keys that are not fields."""

        known = {item.name for item in fields(cls)}
        unknown = sorted(str(key) for key in data.keys() if key not in known)
        if unknown:
            logger.debug("Ignoring unknown user fields: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class Group:
    """A user group positioned in the nested-set tree."""

    id: int
    title: str
    lft: int
    rgt: int
    parent_id: int = 0
    level: int = 0


@dataclass(frozen=True)
class Rule:
    """Grants ``action`` on ``section`` to every member of ``group_id``."""

    group_id: int
    section: str
    action: str


def to_object(value: Mapping[str, Any]) -> SimpleNamespace:
    """Recursively convert a mapping into attribute-style namespaces."""

    converted: Dict[str, Any] = {}
    for key, item in value.items():
        if isinstance(item, Mapping):
            item = to_object(item)
        converted[str(key)] = item
    return SimpleNamespace(**converted)


def empty_profile() -> SimpleNamespace:
    return SimpleNamespace()


__all__ = ["Group", "Rule", "UserRecord", "empty_profile", "to_object"]
