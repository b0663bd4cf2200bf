"""Password hashing and access tokens."""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from ridehail.config import Settings
from ridehail.models.common import Role


class Identity(BaseModel):
    """Verified caller, decoded from an access token."""

    id: int
    role: Role
    username: str | None = None


class InvalidToken(Exception):
    """Token is malformed, expired or carries unusable claims."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


def create_access_token(
    settings: Settings,
    subject_id: int,
    role: Role,
    username: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token for `subject_id` acting as `role`."""
    expires = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(subject_id), "role": role.value, "exp": expires}
    if username:
        claims["username"] = username
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Identity:
    """Verify signature and expiry, then read the identity claims."""
    try:
        claims = jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
        return Identity(
            id=int(claims["sub"]),
            role=claims["role"],
            username=claims.get("username"),
        )
    except (JWTError, KeyError, ValueError, ValidationError) as e:
        raise InvalidToken(str(e)) from e
