"""CSV renderings of reporting projections."""

import csv
from datetime import datetime
from io import StringIO
from typing import Any, Iterable

from ridehail.models.user import User
from ridehail.reporting.queries import Dashboard, RequestView

REQUEST_FIELDS = [
    "id",
    "user_name",
    "pickup_location",
    "dropoff_location",
    "driver_name",
    "status",
    "fare_amount",
    "created_at",
]
USER_FIELDS = ["id", "name", "email", "phone", "gender", "created_at"]

DASHBOARD_HEADER = [
    "Section",
    "Total Rides",
    "Pending Requests",
    "Revenue",
    "Total Drivers",
    "Active Drivers",
    "Driver ID",
    "Driver Name",
    "Vehicle Type",
    "Vehicle Number",
    "Phone",
    "Request ID",
    "Pickup Location",
    "Dropoff Location",
    "User Name",
    "Status",
    "Created At",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


def _render(header: list[str], rows: Iterable[list[Any]]) -> str:
    buf = StringIO()
    w = csv.writer(buf)
    w.writerow(header)
    for row in rows:
        w.writerow([_cell(v) for v in row])
    return buf.getvalue()


def requests_csv(requests: Iterable[RequestView]) -> str:
    return _render(
        REQUEST_FIELDS,
        ([getattr(r, field) for field in REQUEST_FIELDS] for r in requests),
    )


def users_csv(users: Iterable[User]) -> str:
    return _render(
        USER_FIELDS,
        ([getattr(u, field) for field in USER_FIELDS] for u in users),
    )


def dashboard_csv(dashboard: Dashboard) -> str:
    """Three stacked sections in one sheet: totals, free drivers, waiting requests.

    Every row is padded to the full header width; each section leaves the
    other sections' columns empty.
    """
    width = len(DASHBOARD_HEADER)
    summary = dashboard.summary
    rows: list[list[Any]] = []

    def pad(offset: int, values: list[Any], section: str = "") -> list[Any]:
        row = [section] + [""] * (width - 1)
        row[offset : offset + len(values)] = values
        return row

    rows.append(
        pad(
            1,
            [
                summary.total_rides,
                summary.pending_requests,
                f"{summary.revenue:.2f}",
                summary.total_drivers,
                summary.active_drivers,
            ],
            section="Summary Stats",
        )
    )
    rows.append(pad(1, []))

    rows.append(
        pad(6, ["ID", "Name", "Vehicle Type", "Vehicle Number", "Phone"], "Active Drivers")
    )
    for driver in dashboard.active_drivers:
        rows.append(
            pad(
                6,
                [
                    driver.id,
                    driver.name,
                    driver.vehicle_type,
                    driver.vehicle_number,
                    driver.phone,
                ],
            )
        )
    rows.append(pad(1, []))

    rows.append(
        pad(
            11,
            ["ID", "Pickup Location", "Dropoff Location", "User Name", "Status", "Created At"],
            "Pending Requests",
        )
    )
    for request in dashboard.pending_requests:
        rows.append(
            pad(
                11,
                [
                    request.id,
                    request.pickup_location,
                    request.dropoff_location,
                    request.user_name or "N/A",
                    request.status,
                    request.created_at,
                ],
            )
        )

    return _render(DASHBOARD_HEADER, rows)
