# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signed session cookie.

The cookie value is an itsdangerous token wrapping ``{"user_id": <int>}``.
Anything that fails to verify is reported as "no session".
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer
from starlette.requests import cookie_parser
from starlette.responses import Response

COOKIE_NAME = os.getenv("BLOG_COOKIE_NAME", "blog_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("BLOG_SESSION_MAX_AGE", "2592000"))  # 30 days


def _serializer() -> URLSafeTimedSerializer:
    secret = os.getenv("BLOG_SECRET_KEY") or os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing BLOG_SECRET_KEY (or SECRET_KEY) in environment")
    salt = os.getenv("BLOG_SESSION_SALT", "blog.session.v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


def cookie_secure() -> bool:
    forced = os.getenv("BLOG_COOKIE_SECURE", "").lower() in {"1", "true", "yes", "y"}
    return forced or os.getenv("BLOG_ENV", "development").lower() == "production"


@dataclass(frozen=True)
class SessionData:
    user_id: int


def _valid_user_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def sign_session(user_id: int) -> str:
    if not _valid_user_id(user_id):
        raise ValueError(f"Invalid user id for session: {user_id!r}")
    return _serializer().dumps({"user_id": user_id})


def verify_session(token: str, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> Optional[SessionData]:
    if not token:
        return None
    s = _serializer()
    try:
        data = s.loads(token, max_age=max_age)
    except BadData:
        return None
    if not isinstance(data, dict):
        return None
    user_id = data.get("user_id")
    if not _valid_user_id(user_id):
        return None
    return SessionData(user_id=user_id)


def cookie_settings() -> dict:
    return {"httponly": True, "samesite": "lax", "secure": cookie_secure()}


def set_session_cookie(response: Response, user_id: int) -> None:
    response.set_cookie(
        COOKIE_NAME,
        sign_session(user_id),
        max_age=DEFAULT_MAX_AGE_SECONDS,
        path="/",
        **cookie_settings(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(COOKIE_NAME, path="/", **cookie_settings())


def sets_session_cookie(response: Response) -> bool:
    """True when ``response`` already carries a Set-Cookie for the session."""
    return any(v.startswith(f"{COOKIE_NAME}=") for v in response.headers.getlist("set-cookie"))


def create_session(user_id: int) -> str:
    """Return a ``Set-Cookie`` header value carrying a fresh session for ``user_id``."""
    resp = Response()
    set_session_cookie(resp, user_id)
    return resp.headers["set-cookie"]


def read_session(cookie_header: Optional[str]) -> Optional[int]:
    """Return the user id from a ``Cookie`` request header, or None."""
    if not cookie_header:
        return None
    token = cookie_parser(cookie_header).get(COOKIE_NAME, "")
    sess = verify_session(token)
    return sess.user_id if sess else None


def destroy_session() -> str:
    """Return a ``Set-Cookie`` header value that expires the session cookie immediately."""
    resp = Response()
    clear_session_cookie(resp)
    return resp.headers["set-cookie"]
