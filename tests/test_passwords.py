import pytest

from blog.auth.passwords import hash_password, verify_password


def test_hash_is_not_plaintext_and_verifies():
    h = hash_password("pw1")
    assert h != "pw1"
    assert h.startswith("$argon2")
    assert verify_password(h, "pw1")


def test_hash_is_salted():
    assert hash_password("same") != hash_password("same")


def test_wrong_password_returns_false():
    h = hash_password("right")
    assert verify_password(h, "wrong") is False


@pytest.mark.parametrize("hash_value", ["", "not-a-hash", "$argon2id$garbage"])
def test_malformed_hash_returns_false(hash_value):
    assert verify_password(hash_value, "pw") is False


def test_empty_password_rejected():
    with pytest.raises(ValueError):
        hash_password("")
    assert verify_password(hash_password("x"), "") is False
