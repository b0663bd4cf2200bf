"""Data models for the dispatch backend."""

from ridehail.models.common import Location, Role, utcnow
from ridehail.models.driver import (
    Driver,
    DriverCreate,
    DriverStatusUpdate,
    DriverUpdate,
)
from ridehail.models.ride_request import (
    ACTIVE_STATUSES,
    BOUND_STATUSES,
    DRIVER_HELD_STATUSES,
    TERMINAL_STATUSES,
    NewRideRequest,
    RideRequest,
    RideStatus,
)
from ridehail.models.settings import PricingUpdate, SystemSettings, SystemSwitchesUpdate
from ridehail.models.user import (
    Admin,
    AdminLoginRequest,
    LoginRequest,
    PendingRegistration,
    RegistrationRequest,
    User,
)

__all__ = [
    # Common
    "Location",
    "Role",
    "utcnow",
    # Driver
    "Driver",
    "DriverCreate",
    "DriverUpdate",
    "DriverStatusUpdate",
    # Ride request
    "RideRequest",
    "RideStatus",
    "NewRideRequest",
    "ACTIVE_STATUSES",
    "BOUND_STATUSES",
    "DRIVER_HELD_STATUSES",
    "TERMINAL_STATUSES",
    # Settings
    "SystemSettings",
    "PricingUpdate",
    "SystemSwitchesUpdate",
    # Users
    "User",
    "PendingRegistration",
    "Admin",
    "RegistrationRequest",
    "LoginRequest",
    "AdminLoginRequest",
]
