"""Read-only reporting over the dispatch stores."""

from ridehail.reporting.export import dashboard_csv, requests_csv, users_csv
from ridehail.reporting.queries import (
    Analytics,
    Dashboard,
    LiveRide,
    ReportingService,
    RequestView,
)

__all__ = [
    "ReportingService",
    "RequestView",
    "Analytics",
    "LiveRide",
    "Dashboard",
    "requests_csv",
    "users_csv",
    "dashboard_csv",
]
