from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import Depends, FastAPI, Request, Response
from fastapi.testclient import TestClient

from accounts.config import Settings
from accounts.context import AccountContext, create_context
from accounts.sessions import SessionManager
from accounts.user import User
from accounts.web import SessionAuth


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(database_path=tmp_path / "web.sqlite3", password_algo="pbkdf2_sha256", session_ttl_seconds=900)


@pytest.fixture()
def context(settings: Settings) -> AccountContext:
    return create_context(settings)


@pytest.fixture()
def client(context: AccountContext, settings: Settings) -> TestClient:
    auth = SessionAuth(context, SessionManager.from_settings(settings), secure_cookies=False)
    app = FastAPI()

    @app.post("/login/{user_id}")
    def login(user_id: int, request: Request, response: Response):
        auth.sign_in(response, user_id, request)
        return {"ok": True}

    @app.post("/logout")
    def logout(request: Request, response: Response):
        auth.sign_out(request, response)
        return {"ok": True}

    @app.get("/me")
    def me(request: Request):
        user = auth.current_user(request)
        return {"id": user.id, "guest": user.is_guest()}

    @app.get("/articles/edit")
    def edit(user: User = Depends(auth.require("content.edit"))):
        return {"editor": user.username}

    return TestClient(app)


@pytest.fixture()
def editor_id(context: AccountContext) -> int:
    database = context.database
    group = database.add_group("Editors", lft=1, rgt=2)
    database.add_rule(group.id, "content", "edit")
    record = database.create_user("Eve", "eve", "eve@example.com", "password", hasher=context.hasher)
    database.add_user_to_group(record.id, group.id)
    return record.id


@pytest.fixture()
def reader_id(context: AccountContext) -> int:
    record = context.database.create_user("Ray", "ray", "ray@example.com", "password", hasher=context.hasher)
    return record.id


def test_anonymous_requests_are_guests(client: TestClient) -> None:
    assert client.get("/me").json() == {"id": 0, "guest": True}
    assert client.get("/articles/edit").status_code == 401


def test_signed_in_user_is_resolved_from_cookie(client: TestClient, editor_id: int) -> None:
    client.post(f"/login/{editor_id}")

    assert client.get("/me").json() == {"id": editor_id, "guest": False}
    response = client.get("/articles/edit")
    assert response.status_code == 200
    assert response.json() == {"editor": "eve"}


def test_session_cookie_uses_configured_ttl(client: TestClient, editor_id: int) -> None:
    response = client.post(f"/login/{editor_id}")

    assert "Max-Age=900" in response.headers["set-cookie"]


def test_users_without_permission_are_forbidden(client: TestClient, reader_id: int) -> None:
    client.post(f"/login/{reader_id}")

    response = client.get("/articles/edit")

    assert response.status_code == 403
    assert response.json()["detail"] == "You are not authorised to access this resource."


def test_sign_out_returns_to_guest(client: TestClient, editor_id: int) -> None:
    client.post(f"/login/{editor_id}")
    client.post("/logout")

    assert client.get("/me").json()["guest"] is True


def test_session_for_deleted_user_falls_back_to_guest(client: TestClient) -> None:
    client.post("/login/404")

    assert client.get("/me").json() == {"id": 0, "guest": True}
