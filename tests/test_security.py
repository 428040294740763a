# tests/test_security.py
from datetime import timedelta

import pytest
from jose import jwt

from config import Settings
from errors import InvalidToken
from security import (
    Identity,
    create_access_token,
    create_admin_token,
    create_user_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

SECRET = "unit-secret"


@pytest.fixture
def settings():
    return Settings(_env_file=None, SECRET_KEY=SECRET)


def test_password_hash_is_not_plaintext_and_verifies():
    hashed = get_password_hash("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


def test_verify_password_rejects_missing_hash():
    assert not verify_password("anything", "")


def test_admin_token_carries_role_and_expiry(settings):
    token = create_admin_token("a@x.com", "Admin", settings)
    claims = jwt.get_unverified_claims(token)
    assert claims["email"] == "a@x.com"
    assert claims["role"] == "Admin"
    assert "exp" in claims


def test_user_token_has_no_role_and_no_expiry_by_default(settings):
    claims = jwt.get_unverified_claims(create_user_token("u@x.com", settings))
    assert claims == {"email": "u@x.com"}


def test_user_token_expiry_can_be_configured():
    settings = Settings(_env_file=None, SECRET_KEY=SECRET, USER_TOKEN_EXPIRE_MINUTES=5)
    claims = jwt.get_unverified_claims(create_user_token("u@x.com", settings))
    assert "exp" in claims


def test_decode_returns_identity():
    token = create_access_token({"email": "a@x.com", "role": "admin"}, SECRET, "HS256")
    identity = decode_access_token(token, SECRET, "HS256")
    assert identity == Identity(email="a@x.com", role="admin")
    assert identity.is_admin


def test_both_admin_role_spellings_are_admin():
    assert Identity(email="a@x.com", role="Admin").is_admin
    assert Identity(email="a@x.com", role="admin").is_admin
    assert not Identity(email="u@x.com").is_admin


def test_decode_rejects_wrong_secret():
    token = create_access_token({"email": "a@x.com"}, "other-secret", "HS256")
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET, "HS256")


def test_decode_rejects_expired_token():
    token = create_access_token({"email": "a@x.com"}, SECRET, "HS256", timedelta(seconds=-10))
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET, "HS256")


def test_decode_rejects_token_without_email():
    token = create_access_token({"role": "admin"}, SECRET, "HS256")
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET, "HS256")


def test_decode_rejects_garbage():
    with pytest.raises(InvalidToken):
        decode_access_token("not-a-token", SECRET, "HS256")
