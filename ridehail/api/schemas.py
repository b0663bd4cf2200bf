"""Request/response bodies shared by the routers."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from ridehail.models.common import Role
from ridehail.models.driver import DriverCreate

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Standard `{"data": ..., "message": ...}` response."""

    data: T | None = None
    message: str


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    """Issued access token."""

    token: str
    token_type: str = "bearer"
    role: Role
    id: int
    username: str | None = None
    message: str


class AssignDriverRequest(BaseModel):
    driver_id: int = Field(gt=0)


class CompleteRideRequest(BaseModel):
    """Optional trip details reported by the driver."""

    distance_miles: float | None = Field(default=None, ge=0)


class CancelRideRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class DriverRegistration(DriverCreate):
    """Self-service sign-up; unlike admin-created drivers a password is required."""

    password: str = Field(min_length=8, max_length=72)
