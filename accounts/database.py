"""SQLite-backed persistence for users, groups and permission rules."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional

from .models import Group, Rule, UserRecord
from .passwords import PasswordHasher

logger = logging.getLogger("accounts.database")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the accounts database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "accounts.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _encode_json(value: Any) -> str:
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value or "{}"
    if hasattr(value, "to_json"):
        return value.to_json()
    return json.dumps(value, sort_keys=True)


def _decode_json(value: Optional[str]) -> Any:
    if not value:
        return {}
    return json.loads(value)


class Database:
    """Thin wrapper around SQLite holding the accounts schema."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction and close it afterwards."""

        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT UNIQUE,
                    password TEXT NOT NULL,
                    block INTEGER NOT NULL DEFAULT 0,
                    send_email INTEGER NOT NULL DEFAULT 0,
                    register_date TEXT NOT NULL,
                    last_visit_date TEXT,
                    activation TEXT NOT NULL DEFAULT '',
                    params TEXT NOT NULL DEFAULT '{}',
                    profile TEXT NOT NULL DEFAULT '{}'
                );

                CREATE TABLE IF NOT EXISTS usergroups (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    parent_id INTEGER NOT NULL DEFAULT 0,
                    lft INTEGER NOT NULL,
                    rgt INTEGER NOT NULL,
                    title TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS user_usergroup_map (
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    group_id INTEGER NOT NULL REFERENCES usergroups(id) ON DELETE CASCADE,
                    PRIMARY KEY (user_id, group_id)
                );

                CREATE TABLE IF NOT EXISTS acl_rules (
                    group_id INTEGER NOT NULL REFERENCES usergroups(id) ON DELETE CASCADE,
                    section TEXT NOT NULL,
                    action TEXT NOT NULL,
                    PRIMARY KEY (group_id, section, action)
                );

                CREATE INDEX IF NOT EXISTS idx_usergroups_bounds ON usergroups(lft, rgt);
                CREATE INDEX IF NOT EXISTS idx_user_usergroup_map_group ON user_usergroup_map(group_id);
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(
        self,
        name: str,
        username: str,
        email: Optional[str],
        password: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        profile: Optional[Mapping[str, Any]] = None,
        send_email: bool = False,
        hasher: Optional[PasswordHasher] = None,
    ) -> UserRecord:
        """Insert a user with a hashed password and return the stored row."""

        if not password:
            raise ValueError("Password must not be empty")
        normalized_username = username.strip()
        if not normalized_username:
            raise ValueError("Username must not be empty")

        password_hash = (hasher or PasswordHasher()).hash(password)
        normalized_email = email.strip().lower() if email else None

        with self.connection() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (
                        name, username, email, password, send_email, register_date, params, profile
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        name.strip(),
                        normalized_username,
                        normalized_email,
                        password_hash,
                        int(bool(send_email)),
                        _serialize_datetime(_current_timestamp()),
                        _encode_json(params),
                        _encode_json(profile),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that username or email already exists") from exc
            user_id = int(cursor.lastrowid)

        logger.info("Created user %s (%s)", user_id, normalized_username)
        record = self.get_user(user_id)
        if record is None:
            raise RuntimeError("Failed to load user after creation")
        return record

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    # ------------------------------------------------------------------
    # Groups and rules
    # ------------------------------------------------------------------
    def add_group(self, title: str, *, lft: int, rgt: int, parent_id: int = 0) -> Group:
        """Store a group with the nested-set bounds supplied by the caller."""

        if lft >= rgt:
            raise ValueError("Group left bound must be lower than its right bound")
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO usergroups (parent_id, lft, rgt, title) VALUES (?, ?, ?, ?)",
                (parent_id, lft, rgt, title),
            )
            group_id = int(cursor.lastrowid)
        return Group(id=group_id, title=title, lft=lft, rgt=rgt, parent_id=parent_id)

    def add_user_to_group(self, user_id: int, group_id: int) -> None:
        with self.connection() as conn:
            try:
                conn.execute(
                    "INSERT OR IGNORE INTO user_usergroup_map (user_id, group_id) VALUES (?, ?)",
                    (user_id, group_id),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Unknown user {user_id} or group {group_id}") from exc

    def add_rule(self, group_id: int, section: str, action: str) -> Rule:
        with self.connection() as conn:
            try:
                conn.execute(
                    "INSERT OR IGNORE INTO acl_rules (group_id, section, action) VALUES (?, ?, ?)",
                    (group_id, section, action),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Unknown group {group_id}") from exc
        return Rule(group_id=group_id, section=section, action=action)

    def remove_rule(self, group_id: int, section: str, action: str) -> bool:
        with self.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM acl_rules WHERE group_id = ? AND section = ? AND action = ?",
                (group_id, section, action),
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            id=int(row["id"]),
            name=str(row["name"]),
            username=str(row["username"]),
            email=row["email"],
            password=str(row["password"]),
            block=bool(row["block"]),
            send_email=bool(row["send_email"]),
            register_date=row["register_date"],
            last_visit_date=row["last_visit_date"],
            activation=str(row["activation"] or ""),
            params=_decode_json(row["params"]),
            profile=_decode_json(row["profile"]),
        )


class UserTable:
    """Row-level access to the ``users`` table.

    ``load`` fetches a row into the table object and ``dump`` hands it out,
    so a fresh table is used for every user load.
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._record: Optional[UserRecord] = None

    def load(self, user_id: int) -> bool:
        self._record = self._database.get_user(user_id)
        return self._record is not None

    def dump(self) -> UserRecord:
        if self._record is None:
            return UserRecord()
        return UserRecord.from_mapping(vars(self._record))

    def set_last_visit(self, timestamp: Optional[int], user_id: int) -> bool:
        """Record the last visit time (``None`` means now) for ``user_id``."""

        if timestamp is None:
            visited_at = _current_timestamp()
        else:
            visited_at = datetime.fromtimestamp(int(timestamp), timezone.utc)

        with self._database.connection() as conn:
            cursor = conn.execute(
                "UPDATE users SET last_visit_date = ? WHERE id = ?",
                (_serialize_datetime(visited_at), user_id),
            )
            return cursor.rowcount > 0


__all__ = ["Database", "UserTable", "resolve_database_path"]
