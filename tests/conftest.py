import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

os.environ.setdefault("BLOG_SECRET_KEY", "test-secret")

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from blog.auth.service import AuthService
from blog.infra.db import Database
from blog.infra.post_repo import PostRepository


@pytest.fixture()
def db(tmp_path: Path):
    """A fresh SQLite database in a temporary directory."""
    database = Database(f"sqlite:///{tmp_path / 'blog.db'}")
    database.init()
    yield database
    database.close()


@pytest.fixture()
def auth(db) -> AuthService:
    return AuthService(db)


@pytest.fixture()
def posts(db) -> PostRepository:
    return PostRepository(db)


@pytest.fixture()
def client(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("BLOG_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")

    from blog.app import app

    with TestClient(app) as c:
        yield c


def register_via_form(client: TestClient, email: str, password: str, name: str = "A"):
    return client.post(
        "/register",
        data={"name": name, "email": email, "password": password, "confirm_password": password},
        follow_redirects=False,
    )


def login_via_form(client: TestClient, email: str, password: str, next_url: str = "/dashboard"):
    return client.post(
        "/login",
        data={"email": email, "password": password, "next": next_url},
        follow_redirects=False,
    )
