"""Permission checks and group membership lookups."""
from __future__ import annotations

import logging
from typing import List, Optional

from .database import Database
from .models import Rule

logger = logging.getLogger("accounts.acl")

WILDCARD_ACTION = "*"


class Acl:
    """Resolve permissions from group rules stored in the accounts database.

    A user holds the rules of every group they belong to and of each ancestor
    of those groups in the nested-set tree.
    """

    def __init__(self, database: Database, *, guest_group_id: Optional[int] = None) -> None:
        self._database = database
        self._guest_group_id = guest_group_id

    def check_user(self, user_id: int, section: str, action: str = "") -> bool:
        group_ids = self._effective_groups(int(user_id))
        if not group_ids:
            logger.debug("User %s has no groups; denying %s.%s", user_id, section, action)
            return False

        placeholders = ", ".join("?" for _ in group_ids)
        with self._database.connection() as conn:
            row = conn.execute(
                f"""
                SELECT 1 FROM acl_rules
                 WHERE group_id IN ({placeholders})
                   AND section = ?
                   AND action IN (?, ?)
                 LIMIT 1
                """,
                (*group_ids, section, action, WILDCARD_ACTION),
            ).fetchone()

        allowed = row is not None
        if not allowed:
            logger.debug("Denied %s.%s for user %s", section, action, user_id)
        return allowed

    def get_groups_by_user(self, user_id: int, recursive: bool = False) -> List[int]:
        """Return the ids of the groups ``user_id`` belongs to, ordered by ``lft``."""

        if recursive:
            query = """
                SELECT DISTINCT parent.id, parent.lft
                  FROM user_usergroup_map AS map
                  JOIN usergroups AS child ON child.id = map.group_id
                  JOIN usergroups AS parent ON parent.lft <= child.lft AND parent.rgt >= child.rgt
                 WHERE map.user_id = ?
                 ORDER BY parent.lft ASC
            """
        else:
            query = """
                SELECT g.id, g.lft
                  FROM user_usergroup_map AS map
                  JOIN usergroups AS g ON g.id = map.group_id
                 WHERE map.user_id = ?
                 ORDER BY g.lft ASC
            """
        with self._database.connection() as conn:
            rows = conn.execute(query, (int(user_id),)).fetchall()
        return [int(row["id"]) for row in rows]

    def allow(self, group_id: int, section: str, action: str) -> Rule:
        return self._database.add_rule(group_id, section, action)

    def deny(self, group_id: int, section: str, action: str) -> bool:
        return self._database.remove_rule(group_id, section, action)

    def _effective_groups(self, user_id: int) -> List[int]:
        if user_id:
            return self.get_groups_by_user(user_id, recursive=True)
        if self._guest_group_id is None:
            return []

        with self._database.connection() as conn:
            rows = conn.execute(
                """
                SELECT parent.id
                  FROM usergroups AS child
                  JOIN usergroups AS parent ON parent.lft <= child.lft AND parent.rgt >= child.rgt
                 WHERE child.id = ?
                """,
                (self._guest_group_id,),
            ).fetchall()
        return [int(row["id"]) for row in rows]


__all__ = ["Acl", "WILDCARD_ACTION"]
