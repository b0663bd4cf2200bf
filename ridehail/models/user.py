"""Passenger, registration and admin models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ridehail.models.common import Role
from ridehail.models.driver import Gender, normalize_phone


class User(BaseModel):
    """Approved passenger account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str | None = None
    email: str
    phone: str | None = None
    gender: str | None = None
    role: Role = Role.PASSENGER
    created_at: datetime
    password_hash: str | None = Field(default=None, exclude=True, repr=False)


class PendingRegistration(BaseModel):
    """Registration waiting for admin approval."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str | None = None
    email: str
    phone: str | None = None
    gender: str | None = None
    role: Role = Role.PASSENGER
    created_at: datetime
    password_hash: str | None = Field(default=None, exclude=True, repr=False)


class Admin(BaseModel):
    """Administrator account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    password_hash: str | None = Field(default=None, exclude=True, repr=False)


class RegistrationRequest(BaseModel):
    """Passenger sign-up payload."""

    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = None
    gender: Gender | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else None


class LoginRequest(BaseModel):
    """Credentials; `email` also accepts a phone number."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminLoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
