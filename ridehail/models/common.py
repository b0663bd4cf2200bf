"""Shared value types."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the store round-trips datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    """Caller roles carried in access tokens."""

    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"


class Location(BaseModel):
    """Geographic location."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
