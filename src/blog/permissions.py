# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import HTTPException, Request

from blog.auth.service import CurrentUser
from blog.infra.post_repo import PostRecord


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    return getattr(request.state, "user", None)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    loc = f"/login?next={quote(next_url, safe='/')}"
    raise HTTPException(status_code=303, headers={"Location": loc})


def is_owner(user: Optional[CurrentUser], post: PostRecord) -> bool:
    return user is not None and user.id == post.author_id


def can_view(user: Optional[CurrentUser], post: PostRecord) -> bool:
    """Published posts are public; drafts only for their author."""
    return post.published or is_owner(user, post)


def safe_next(next_url: str, default: str = "/dashboard") -> str:
    """Only allow local absolute paths as post-login redirect targets."""
    n = (next_url or "").strip()
    if not n.startswith("/") or n.startswith("//") or "\\" in n:
        return default
    return n
