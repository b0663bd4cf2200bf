"""Driver records and driver-facing payloads."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ridehail.models.common import Location

Gender = Literal["men", "women", "other"]

_PHONE_RE = re.compile(r"^\+?\d{10,15}$")


def normalize_phone(value: str) -> str:
    """Strip separators and check the 10-15 digit format."""
    compact = re.sub(r"[\s-]", "", value)
    if not _PHONE_RE.match(compact):
        raise ValueError("Invalid phone number format (must be 10-15 digits, optional + prefix)")
    return compact


class Driver(BaseModel):
    """Driver profile as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None = None
    phone: str
    gender: str | None = None
    vehicle_type: str
    vehicle_number: str
    available: bool = True
    is_online: bool = False
    current_latitude: float | None = None
    current_longitude: float | None = None
    last_location_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    password_hash: str | None = Field(default=None, exclude=True, repr=False)

    @property
    def current_location(self) -> Location | None:
        if self.current_latitude is None or self.current_longitude is None:
            return None
        return Location(lat=self.current_latitude, lng=self.current_longitude)


class DriverCreate(BaseModel):
    """Fields needed to register a driver."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str
    vehicle_type: str = Field(min_length=1, max_length=50)
    vehicle_number: str = Field(min_length=1, max_length=20)
    gender: Gender = "men"
    available: bool = True
    password: str | None = Field(default=None, min_length=8, max_length=72)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)

    @field_validator("vehicle_type")
    @classmethod
    def validate_vehicle_type(cls, v: str) -> str:
        return v.strip().lower()


class DriverUpdate(BaseModel):
    """Partial profile update; availability goes through the engine."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    vehicle_type: str | None = Field(default=None, min_length=1, max_length=50)
    vehicle_number: str | None = Field(default=None, min_length=1, max_length=20)
    gender: Gender | None = None
    available: bool | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v is not None else None

    @field_validator("vehicle_type")
    @classmethod
    def validate_vehicle_type(cls, v: str | None) -> str | None:
        return v.strip().lower() if v is not None else None

    def profile_fields(self) -> dict[str, object]:
        """Set fields other than availability."""
        return self.model_dump(exclude_none=True, exclude={"available"})


class DriverStatusUpdate(BaseModel):
    """Location/status ping sent by a driver."""

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_online: bool | None = None
    available: bool | None = None

    @property
    def location(self) -> Location | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Location(lat=self.latitude, lng=self.longitude)
