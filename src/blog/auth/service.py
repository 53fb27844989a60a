# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from blog.auth.passwords import hash_password, verify_password
from blog.auth.session import clear_session_cookie, read_session, set_session_cookie
from blog.infra.db import Database
from blog.infra.user_repo import UserRepository

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str
    name: Optional[str] = None


class AuthService:
    """Login, registration and cookie sessions on top of the users table."""

    def __init__(self, db: Database):
        self.users = UserRepository(db)

    def get_current_user(self, request: Request) -> Optional[CurrentUser]:
        """Resolve the session cookie to a user.

        A session pointing at a user that no longer exists is flagged on
        ``request.state`` so the response clears the cookie.
        """
        user_id = read_session(request.headers.get("cookie"))
        if user_id is None:
            return None
        u = self.users.get_by_id(user_id)
        if u is None:
            _logger.warning("Session refers to missing user %s; forcing logout", user_id)
            request.state.session_stale = True
            return None
        return CurrentUser(id=u.id, email=u.email, name=u.name)

    def login(self, email: str, password: str) -> Optional[CurrentUser]:
        u = self.users.get_by_email(email)
        if not u or not verify_password(u.password_hash, password):
            _logger.warning("Failed login attempt")
            return None
        _logger.info("User %s logged in", u.id)
        return CurrentUser(id=u.id, email=u.email)

    def email_taken(self, email: str) -> bool:
        return self.users.get_by_email(email) is not None

    def register(self, email: str, password: str, name: Optional[str] = None) -> CurrentUser:
        u = self.users.create(email=email, password_hash=hash_password(password), name=name or None)
        _logger.info("Registered user %s", u.id)
        return CurrentUser(id=u.id, email=u.email, name=u.name)

    def create_session(self, user_id: int, redirect_to: str) -> RedirectResponse:
        resp = RedirectResponse(url=redirect_to, status_code=303)
        set_session_cookie(resp, user_id)
        return resp

    def logout(self, request: Request) -> RedirectResponse:
        user = getattr(request.state, "user", None)
        if user is not None:
            _logger.info("User %s logged out", user.id)
        resp = RedirectResponse(url="/login", status_code=303)
        clear_session_cookie(resp)
        return resp
