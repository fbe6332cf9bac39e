from __future__ import annotations

from pathlib import Path
from unittest import mock

import pytest

from accounts.acl import Acl
from accounts.config import Settings
from accounts.context import create_context
from accounts.database import Database
from accounts.helper import UserHelper
from accounts.passwords import ALPHABET


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "helper.sqlite3")
    db.initialize()
    return db


def test_user_groups_are_listed_in_tree_order_with_levels(database: Database) -> None:
    # Inserted out of order to check the ORDER BY.
    admin = database.add_group("Administrator", lft=8, rgt=9)
    public = database.add_group("Public", lft=1, rgt=10)
    editor = database.add_group("Editor", lft=5, rgt=6)
    registered = database.add_group("Registered", lft=2, rgt=7, parent_id=public.id)
    author = database.add_group("Author", lft=3, rgt=4, parent_id=registered.id)

    groups = UserHelper(database, Acl(database)).get_user_groups()

    assert [group.id for group in groups] == [public.id, registered.id, author.id, editor.id, admin.id]
    assert [group.level for group in groups] == [0, 1, 2, 2, 1]
    assert groups[2].parent_id == registered.id
    assert (groups[0].lft, groups[0].rgt) == (1, 10)


def test_user_groups_empty_tree(database: Database) -> None:
    assert UserHelper(database, Acl(database)).get_user_groups() == []


def test_groups_by_user_delegates_to_acl(database: Database) -> None:
    acl = mock.Mock()
    acl.get_groups_by_user.return_value = [3, 4]

    assert UserHelper(database, acl).get_groups_by_user(9) == [3, 4]
    acl.get_groups_by_user.assert_called_once_with(9)


def test_random_password_uses_injected_source(database: Database) -> None:
    helper = UserHelper(database, Acl(database), random_bytes=lambda n: bytes(range(n)))

    # shift starts at 0 and accumulates 1, 2, 3 ...
    assert helper.gen_random_password(4) == "bdgk"


def test_random_password_default_source(database: Database) -> None:
    password = UserHelper(database, Acl(database)).gen_random_password(20)
    assert len(password) == 20
    assert set(password) <= set(ALPHABET)


def test_crypt_and_verify_password(database: Database) -> None:
    helper = UserHelper(database, Acl(database))

    hashed = helper.crypt_password("p4ssw0rd", options={"rounds": 4})

    assert hashed.startswith("$2b$04$")
    assert helper.verify_password("p4ssw0rd", hashed)
    assert not helper.verify_password("p4ssw0rd!", hashed)


def test_verify_password_accepts_non_default_schemes(database: Database) -> None:
    helper = UserHelper(database, Acl(database))
    hashed = helper.crypt_password("migrated", "pbkdf2_sha256")

    assert helper.verify_password("migrated", hashed)


def test_crypt_password_uses_configured_scheme(tmp_path: Path) -> None:
    settings = Settings(
        database_path=tmp_path / "configured.sqlite3",
        password_algo="pbkdf2_sha256",
        password_options={"rounds": 1000},
    )
    helper = create_context(settings).helper()

    hashed = helper.crypt_password("configured")

    assert hashed.startswith("$pbkdf2-sha256$1000$")
    assert helper.verify_password("configured", hashed)
