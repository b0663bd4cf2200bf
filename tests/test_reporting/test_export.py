"""Tests for CSV rendering."""

import csv
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

from ridehail.models.driver import Driver
from ridehail.models.ride_request import RideStatus
from ridehail.models.user import User
from ridehail.reporting.export import (
    DASHBOARD_HEADER,
    REQUEST_FIELDS,
    dashboard_csv,
    requests_csv,
    users_csv,
)
from ridehail.reporting.queries import Dashboard, DashboardSummary, RequestView

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def view(**overrides) -> RequestView:
    fields = dict(
        id=7,
        user_id=3,
        pickup_location="Main St, Apt 4",
        dropoff_location="Airport",
        vehicle_category="sedan",
        status=RideStatus.PENDING,
        request_time=NOW,
        created_at=NOW,
        updated_at=NOW,
        user_name="Sam",
    )
    fields.update(overrides)
    return RequestView(**fields)


def test_requests_csv_quotes_commas_and_blanks_nulls() -> None:
    rows = list(csv.reader(StringIO(requests_csv([view()]))))

    assert rows[0] == REQUEST_FIELDS
    record = dict(zip(rows[0], rows[1]))
    assert record["pickup_location"] == "Main St, Apt 4"
    assert record["driver_name"] == ""
    assert record["fare_amount"] == ""
    assert record["status"] == "PENDING"
    assert record["created_at"] == NOW.isoformat()


def test_users_csv_excludes_password_hash() -> None:
    user = User(
        id=1,
        username="sam",
        name="Sam",
        email="sam@ridehail.io",
        created_at=NOW,
        password_hash="secret-hash",
    )

    text = users_csv([user])

    assert "secret-hash" not in text
    assert text.splitlines()[0] == "id,name,email,phone,gender,created_at"


def test_dashboard_csv_layout() -> None:
    driver = Driver(
        id=4,
        name="Lee",
        phone="+15550000004",
        vehicle_type="van",
        vehicle_number="VN-4",
        created_at=NOW,
        updated_at=NOW,
    )
    dashboard = Dashboard(
        summary=DashboardSummary(
            total_rides=10,
            pending_requests=1,
            revenue=Decimal("123.4"),
            total_drivers=3,
            active_drivers=1,
        ),
        active_drivers=[driver],
        pending_requests=[view(user_name=None)],
    )

    rows = list(csv.reader(StringIO(dashboard_csv(dashboard))))

    assert rows[0] == DASHBOARD_HEADER
    assert all(len(row) == len(DASHBOARD_HEADER) for row in rows)
    assert rows[1][:6] == ["Summary Stats", "10", "1", "123.40", "3", "1"]
    driver_row = rows[4]
    assert driver_row[6:11] == ["4", "Lee", "van", "VN-4", "+15550000004"]
    pending_row = rows[-1]
    assert pending_row[11:15] == ["7", "Main St, Apt 4", "Airport", "N/A"]
