# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog.auth.service import AuthService
from blog.auth.session import clear_session_cookie, sets_session_cookie
from blog.core.forms import (
    has_errors,
    validate_login,
    validate_post,
    validate_registration,
)
from blog.infra.db import DEFAULT_DATABASE_URL, Database
from blog.infra.post_repo import PostRecord, PostRepository
from blog.permissions import can_view, current_user_optional, is_owner, require_user, safe_next

_logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

HOME_POST_COUNT = 5

CACHE_PUBLIC = "public, max-age=60, s-maxage=300, stale-while-revalidate=604800"
CACHE_PRIVATE = "private, no-cache, no-store, must-revalidate"


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database(os.getenv("BLOG_DATABASE_URL", DEFAULT_DATABASE_URL))
    db.init()
    app.state.db = db
    app.state.auth = AuthService(db)
    app.state.posts = PostRepository(db)
    try:
        yield
    finally:
        db.close()


app = FastAPI(lifespan=lifespan)


def _auth(request: Request) -> AuthService:
    return request.app.state.auth


def _posts(request: Request) -> PostRepository:
    return request.app.state.posts


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.state.user = await run_in_threadpool(_auth(request).get_current_user, request)
    response = await call_next(request)
    # A route that just issued a fresh session (login/register) keeps it.
    if getattr(request.state, "session_stale", False) and not sets_session_cookie(response):
        clear_session_cookie(response)
    return response


app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _render(request: Request, template_name: str, ctx: dict, *, status_code: int = 200, headers: Optional[dict] = None):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": current_user_optional(request)}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (403, 404):
        return _render(request, "error.html", {"status_code": exc.status_code, "message": exc.detail}, status_code=exc.status_code)
    return await http_exception_handler(request, exc)


def _parse_post_id(raw: str) -> Optional[int]:
    s = (raw or "").strip()
    return int(s) if s.isdigit() else None


def _load_owned_post(request: Request, raw_id: str, user) -> PostRecord | RedirectResponse:
    """Fresh load + ownership check shared by the edit and delete paths."""
    post_id = _parse_post_id(raw_id)
    if post_id is None:
        return RedirectResponse(url="/dashboard", status_code=303)
    post = _posts(request).get_by_id(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if not is_owner(user, post):
        _logger.warning("User %s denied write access to post %s", user.id, post.id)
        return RedirectResponse(url=f"/posts/{post.id}", status_code=303)
    return post


# ------------------ Public pages ------------------


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    posts = _posts(request).list_published(limit=HOME_POST_COUNT)
    return _render(request, "index.html", {"posts": posts}, headers={"Cache-Control": CACHE_PUBLIC})


@app.get("/posts", response_class=HTMLResponse)
def posts_index(request: Request):
    posts = _posts(request).list_published()
    return _render(request, "posts.html", {"posts": posts}, headers={"Cache-Control": CACHE_PUBLIC})


# ------------------ Auth ------------------


@app.get("/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = "/dashboard"):
    if current_user_optional(request):
        return RedirectResponse(url=safe_next(next), status_code=303)
    return _render(request, "login.html", {"next": next, "errors": {}, "values": {}})


@app.post("/login")
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/dashboard"),
):
    errors = validate_login(email, password)
    if has_errors(errors):
        return _render(request, "login.html", {"next": next, "errors": errors, "values": {"email": email}})

    auth = _auth(request)
    u = auth.login(email, password)
    if not u:
        errors = {"email": "Invalid email address or password.", "password": None}
        return _render(request, "login.html", {"next": next, "errors": errors, "values": {"email": email}})
    return auth.create_session(u.id, safe_next(next))


@app.get("/register", response_class=HTMLResponse)
def register_get(request: Request):
    if current_user_optional(request):
        return RedirectResponse(url="/dashboard", status_code=303)
    return _render(request, "register.html", {"errors": {}, "values": {}})


@app.post("/register")
def register_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
):
    values = {"name": name, "email": email}
    errors = validate_registration(name, email, password, confirm_password)
    if has_errors(errors):
        return _render(request, "register.html", {"errors": errors, "values": values})

    auth = _auth(request)
    if auth.email_taken(email):
        errors = {"email": "This email address is already registered."}
        return _render(request, "register.html", {"errors": errors, "values": values})

    u = auth.register(email=email, password=password, name=name)
    return auth.create_session(u.id, "/dashboard")


@app.post("/logout")
def logout_post(request: Request):
    return _auth(request).logout(request)


@app.get("/logout")
def logout_get():
    return RedirectResponse(url="/", status_code=303)


# ------------------ Author pages ------------------


@app.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, user=Depends(require_user)):
    posts = _posts(request).list_by_author(user.id)
    return _render(request, "dashboard.html", {"user": user, "posts": posts}, headers={"Cache-Control": CACHE_PRIVATE})


@app.get("/posts/new", response_class=HTMLResponse)
def new_post_form(request: Request, user=Depends(require_user)):
    return _render(request, "post_form.html", {"post": None, "errors": {}, "values": {"publish_status": "draft"}})


@app.post("/posts/new")
def create_post(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    publish_status: str = Form("draft"),
    user=Depends(require_user),
):
    values = {"title": title, "content": content, "publish_status": publish_status}
    errors = validate_post(title, content, publish_status)
    if has_errors(errors):
        return _render(request, "post_form.html", {"post": None, "errors": errors, "values": values})

    post = _posts(request).create(
        title=title,
        content=content,
        author_id=user.id,
        published=(publish_status == "publish"),
    )
    return RedirectResponse(url=f"/posts/{post.id}", status_code=303)


@app.get("/posts/{post_id}", response_class=HTMLResponse)
def view_post(request: Request, post_id: str):
    pid = _parse_post_id(post_id)
    if pid is None:
        return RedirectResponse(url="/posts", status_code=303)

    post = _posts(request).get_by_id(pid)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    user = current_user_optional(request)
    if not can_view(user, post):
        raise HTTPException(status_code=403, detail="You do not have access to this post")

    cache = CACHE_PUBLIC if post.published else CACHE_PRIVATE
    return _render(
        request,
        "post.html",
        {"post": post, "is_owner": is_owner(user, post)},
        headers={"Cache-Control": cache},
    )


@app.get("/posts/{post_id}/edit", response_class=HTMLResponse)
def edit_post_form(request: Request, post_id: str, user=Depends(require_user)):
    post = _load_owned_post(request, post_id, user)
    if isinstance(post, RedirectResponse):
        return post
    values = {
        "title": post.title,
        "content": post.content,
        "publish_status": "publish" if post.published else "draft",
    }
    return _render(request, "post_form.html", {"post": post, "errors": {}, "values": values})


@app.post("/posts/{post_id}/edit")
def edit_post(
    request: Request,
    post_id: str,
    title: str = Form(""),
    content: str = Form(""),
    publish_status: str = Form("draft"),
    user=Depends(require_user),
):
    post = _load_owned_post(request, post_id, user)
    if isinstance(post, RedirectResponse):
        return post

    values = {"title": title, "content": content, "publish_status": publish_status}
    errors = validate_post(title, content, publish_status)
    if has_errors(errors):
        return _render(request, "post_form.html", {"post": post, "errors": errors, "values": values})

    _posts(request).update(
        post.id,
        title=title,
        content=content,
        published=(publish_status == "publish"),
    )
    return RedirectResponse(url=f"/posts/{post.id}", status_code=303)


@app.get("/posts/{post_id}/delete", response_class=HTMLResponse)
def delete_post_confirm(request: Request, post_id: str, user=Depends(require_user)):
    post = _load_owned_post(request, post_id, user)
    if isinstance(post, RedirectResponse):
        return post
    return _render(request, "post_delete.html", {"post": post})


@app.post("/posts/{post_id}/delete")
def delete_post(request: Request, post_id: str, user=Depends(require_user)):
    post = _load_owned_post(request, post_id, user)
    if isinstance(post, RedirectResponse):
        return post
    _posts(request).delete(post.id)
    return RedirectResponse(url="/dashboard", status_code=303)
