"""Tests for password hashing and access tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from ridehail.config import Settings
from ridehail.models.common import Role
from ridehail.security import (
    InvalidToken,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, secret_key="unit-test-key")


def test_password_hash_round_trip() -> None:
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed) is True
    assert verify_password("wrong horse", hashed) is False


def test_missing_or_foreign_hash_never_verifies() -> None:
    assert verify_password("anything", None) is False
    assert verify_password("anything", "plain-text-not-bcrypt") is False


def test_token_carries_identity(settings: Settings) -> None:
    token = create_access_token(settings, 42, Role.DRIVER, "Dana")

    identity = decode_access_token(settings, token)

    assert identity.id == 42
    assert identity.role == Role.DRIVER
    assert identity.username == "Dana"


def test_expired_token_is_rejected(settings: Settings) -> None:
    token = create_access_token(
        settings, 1, Role.ADMIN, expires_delta=timedelta(seconds=-1)
    )

    with pytest.raises(InvalidToken):
        decode_access_token(settings, token)


def test_token_with_unknown_role_is_rejected(settings: Settings) -> None:
    token = jwt.encode(
        {"sub": "1", "role": "superuser"}, settings.secret_key, algorithm="HS256"
    )

    with pytest.raises(InvalidToken):
        decode_access_token(settings, token)


def test_token_without_subject_is_rejected(settings: Settings) -> None:
    token = jwt.encode({"role": "admin"}, settings.secret_key, algorithm="HS256")

    with pytest.raises(InvalidToken):
        decode_access_token(settings, token)
