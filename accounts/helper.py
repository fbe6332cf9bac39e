"""Directory-level helpers: group listings and password utilities."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from .database import Database
from .interfaces import AclService, SecureRandom
from .models import Group
from .passwords import PasswordHasher, gen_random_password


class UserHelper:
    """Group lookups and password handling bound to one database and ACL."""

    def __init__(
        self,
        database: Database,
        acl: AclService,
        *,
        hasher: Optional[PasswordHasher] = None,
        random_bytes: Optional[SecureRandom] = None,
    ) -> None:
        self._database = database
        self._acl = acl
        self._hasher = hasher or PasswordHasher()
        self._random_bytes = random_bytes

    def get_user_groups(self) -> List[Group]:
        """Return every group in tree order with its depth as ``level``."""

        with self._database.connection() as conn:
            rows = conn.execute(
                """
                SELECT a.id, a.title, a.lft, a.rgt, a.parent_id, COUNT(DISTINCT b.id) AS level
                  FROM usergroups AS a
                  LEFT JOIN usergroups AS b ON a.lft > b.lft AND a.rgt < b.rgt
                 GROUP BY a.id, a.title, a.lft, a.rgt, a.parent_id
                 ORDER BY a.lft ASC
                """
            ).fetchall()
        return [
            Group(
                id=int(row["id"]),
                title=str(row["title"]),
                lft=int(row["lft"]),
                rgt=int(row["rgt"]),
                parent_id=int(row["parent_id"]),
                level=int(row["level"]),
            )
            for row in rows
        ]

    def get_groups_by_user(self, user_id: int) -> List[int]:
        return self._acl.get_groups_by_user(user_id)

    def gen_random_password(self, length: int = 8) -> str:
        if self._random_bytes is None:
            return gen_random_password(length)
        return gen_random_password(length, random_bytes=self._random_bytes)

    def crypt_password(
        self,
        password: str,
        algo: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Hash ``password``; the result embeds the scheme, cost and salt.

        Without ``algo`` the hasher's configured default scheme and options
        are used.
        """

        return self._hasher.hash(password, algo, options)

    def verify_password(self, password: str, hashed: str) -> bool:
        return self._hasher.verify(password, hashed)


__all__ = ["UserHelper"]
