import pytest
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from blog.auth.passwords import verify_password
from blog.auth.session import COOKIE_NAME, sign_session
from blog.infra.models import User


def _request(cookie: str = "") -> Request:
    headers = [(b"cookie", cookie.encode())] if cookie else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "query_string": b""})


def test_register_then_login(auth):
    u = auth.register("a@x.com", "pw1", name="A")
    assert u.id > 0 and u.name == "A"

    logged = auth.login("a@x.com", "pw1")
    assert logged is not None
    assert logged.id == u.id
    assert logged.email == "a@x.com"


def test_register_never_stores_plaintext(auth, db):
    auth.register("a@x.com", "pw1")
    with db.session() as s:
        stored = s.query(User).filter(User.email == "a@x.com").one().password
    assert stored != "pw1"
    assert verify_password(stored, "pw1")


def test_wrong_password_and_unknown_email_look_the_same(auth):
    auth.register("a@x.com", "pw1")
    assert auth.login("a@x.com", "nope") is None
    assert auth.login("nobody@x.com", "pw1") is None


def test_login_email_is_case_sensitive(auth):
    auth.register("a@x.com", "pw1")
    assert auth.login("A@X.com", "pw1") is None


def test_duplicate_register_is_a_store_error(auth):
    auth.register("a@x.com", "pw1")
    assert auth.email_taken("a@x.com")
    with pytest.raises(IntegrityError):
        auth.register("a@x.com", "pw2")


def test_get_current_user(auth):
    u = auth.register("a@x.com", "pw1", name="A")
    current = auth.get_current_user(_request(f"{COOKIE_NAME}={sign_session(u.id)}"))
    assert current is not None
    assert (current.id, current.email, current.name) == (u.id, "a@x.com", "A")


def test_get_current_user_without_session(auth):
    req = _request()
    assert auth.get_current_user(req) is None
    assert not getattr(req.state, "session_stale", False)
    assert auth.get_current_user(_request(f"{COOKIE_NAME}=forged.value.sig")) is None


def test_stale_session_is_flagged_for_logout(auth):
    req = _request(f"{COOKIE_NAME}={sign_session(999)}")
    assert auth.get_current_user(req) is None
    assert req.state.session_stale is True


def test_create_session_redirects_with_cookie(auth):
    resp = auth.create_session(3, "/dashboard")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard"
    assert resp.headers["set-cookie"].startswith(f"{COOKIE_NAME}=")


def test_logout_is_idempotent(auth):
    for _ in range(2):
        resp = auth.logout(_request())
        assert resp.status_code == 303
        assert resp.headers["location"] == "/login"
        assert "Max-Age=0" in resp.headers["set-cookie"]
