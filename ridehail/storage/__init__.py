"""Storage modules."""

from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.storage.requests import RideRequestStore
from ridehail.storage.settings import SystemSettingsStore
from ridehail.storage.users import AdminStore, PendingRegistrationStore, UserStore

__all__ = [
    "Database",
    "DriverStore",
    "RideRequestStore",
    "SystemSettingsStore",
    "UserStore",
    "PendingRegistrationStore",
    "AdminStore",
]
