"""Ride request records and status enumeration."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ridehail.models.common import Location


class RideStatus(str, Enum):
    """Ride request status progression.

    CONFIRMED, ASSIGNED and ACCEPTED all mean "driver bound, not yet en
    route". CONFIRMED is only produced by older rows.
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ASSIGNED = "ASSIGNED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_bound(self) -> bool:
        return self in BOUND_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


BOUND_STATUSES = frozenset(
    {RideStatus.CONFIRMED, RideStatus.ASSIGNED, RideStatus.ACCEPTED}
)
ACTIVE_STATUSES = BOUND_STATUSES | {RideStatus.IN_PROGRESS}
# Statuses in which driver_id must be set
DRIVER_HELD_STATUSES = ACTIVE_STATUSES | {RideStatus.COMPLETED}
TERMINAL_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})


class RideRequest(BaseModel):
    """A ride request row, validated at the storage boundary."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    driver_id: int | None = None
    pickup_location: str
    dropoff_location: str
    pickup_latitude: float | None = None
    pickup_longitude: float | None = None
    dropoff_latitude: float | None = None
    dropoff_longitude: float | None = None
    vehicle_category: str
    status: RideStatus
    fare_amount: Decimal | None = None
    cancellation_reason: str | None = None

    # Timing
    request_time: datetime
    created_at: datetime
    updated_at: datetime
    accepted_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @model_validator(mode="after")
    def check_driver_binding(self) -> "RideRequest":
        """A driver is set exactly when the status says one is held."""
        held = self.status in DRIVER_HELD_STATUSES
        if held and self.driver_id is None:
            raise ValueError(f"status {self.status.value} requires a driver")
        if not held and self.driver_id is not None:
            raise ValueError(f"status {self.status.value} must not carry a driver")
        return self

    @property
    def is_bound(self) -> bool:
        return self.status.is_bound

    @property
    def pickup(self) -> Location | None:
        if self.pickup_latitude is None or self.pickup_longitude is None:
            return None
        return Location(lat=self.pickup_latitude, lng=self.pickup_longitude)

    @property
    def dropoff(self) -> Location | None:
        if self.dropoff_latitude is None or self.dropoff_longitude is None:
            return None
        return Location(lat=self.dropoff_latitude, lng=self.dropoff_longitude)


class NewRideRequest(BaseModel):
    """Fields a passenger supplies when asking for a ride."""

    pickup_location: str = Field(min_length=1, max_length=255)
    dropoff_location: str = Field(min_length=1, max_length=255)
    pickup_latitude: float | None = Field(default=None, ge=-90, le=90)
    pickup_longitude: float | None = Field(default=None, ge=-180, le=180)
    dropoff_latitude: float | None = Field(default=None, ge=-90, le=90)
    dropoff_longitude: float | None = Field(default=None, ge=-180, le=180)
    vehicle_category: str = Field(default="sedan", min_length=1, max_length=50)
    request_time: datetime | None = None

    @model_validator(mode="after")
    def normalize(self) -> "NewRideRequest":
        self.vehicle_category = self.vehicle_category.strip().lower()
        if self.request_time is not None and self.request_time.tzinfo is not None:
            self.request_time = self.request_time.astimezone(timezone.utc).replace(
                tzinfo=None
            )
        return self
