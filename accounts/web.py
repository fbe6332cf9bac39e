"""FastAPI integration: resolve the current user and guard routes by permission."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import HTTPException, Request, Response, status

from .context import AccountContext
from .errors import UserNotFound
from .sessions import Session, SessionManager
from .user import User

logger = logging.getLogger("accounts.web")

SESSION_COOKIE_NAME = "accounts_session"


class SessionAuth:
    """Cookie-based session authentication backed by :class:`SessionManager`.

    Each request gets the shared context rebound to its own session, so the
    user cache and ACL are shared while ``session.get("user_id")`` is not.
    """

    def __init__(
        self,
        context: AccountContext,
        sessions: SessionManager,
        *,
        cookie_name: str = SESSION_COOKIE_NAME,
        secure_cookies: bool = True,
    ) -> None:
        self._context = context
        self._sessions = sessions
        self._cookie_name = cookie_name
        self._secure_cookies = secure_cookies

    def current_user(self, request: Request) -> User:
        token = request.cookies.get(self._cookie_name)
        session = self._sessions.resolve(token) or Session()
        context = self._context.with_session(session)
        try:
            return User(context).load()
        except UserNotFound:
            logger.warning("Session references missing user %s; signing out", session.get("user_id"))
            if token:
                self._sessions.destroy(token)
            return User(context)

    def require(self, permission: str) -> Callable[[Request], User]:
        """Return a dependency that only lets users holding ``permission`` through."""

        def dependency(request: Request) -> User:
            user = self.current_user(request)
            localizer = self._context.localizer
            if user.is_guest():
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=localizer.format_message("USER_ERROR_LOGIN_REQUIRED"),
                )
            if not user.authorise(permission):
                logger.info("User %s denied %s", user.id, permission)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=localizer.format_message("USER_ERROR_NOT_AUTHORISED"),
                )
            return user

        return dependency

    def sign_in(self, response: Response, user_id: int, request: Optional[Request] = None) -> str:
        """Start a session for ``user_id`` and set its cookie on ``response``."""

        if request is not None:
            existing = request.cookies.get(self._cookie_name)
            if existing:
                self._sessions.destroy(existing)

        token = self._sessions.create({"user_id": int(user_id)})
        response.set_cookie(
            self._cookie_name,
            token,
            max_age=self._sessions.cookie_max_age,
            secure=self._secure_cookies,
            httponly=True,
            samesite="lax",
            path="/",
        )
        logger.info("User %s signed in", user_id)
        return token

    def sign_out(self, request: Request, response: Response) -> None:
        token = request.cookies.get(self._cookie_name)
        if token:
            self._sessions.destroy(token)
        response.delete_cookie(self._cookie_name, path="/")


__all__ = ["SESSION_COOKIE_NAME", "SessionAuth"]
