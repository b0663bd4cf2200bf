"""Tests for the admin console endpoints."""

import csv
from io import StringIO

import pytest
from httpx import AsyncClient

from ridehail.models.common import Role


@pytest.fixture
def admin_headers(admin, auth_headers) -> dict[str, str]:
    return auth_headers(admin.id, Role.ADMIN, admin.username)


@pytest.mark.asyncio
async def test_driver_crud(client: AsyncClient, admin_headers) -> None:
    created = await client.post(
        "/api/admin/drivers",
        json={
            "name": "Casey Cab",
            "email": "casey@ridehail.io",
            "phone": "+1 555 020 3000",
            "vehicle_type": "Sedan",
            "vehicle_number": "CAB-77",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    driver = created.json()["data"]
    assert driver["phone"] == "+15550203000"
    assert driver["vehicle_type"] == "sedan"
    assert driver["available"] is True

    duplicate = await client.post(
        "/api/admin/drivers",
        json={
            "name": "Other",
            "email": "CASEY@ridehail.io",
            "phone": "+15550203001",
            "vehicle_type": "sedan",
            "vehicle_number": "CAB-78",
        },
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    updated = await client.put(
        f"/api/admin/drivers/{driver['id']}",
        json={"name": "Casey C.", "available": False},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "Casey C."
    assert updated.json()["data"]["available"] is False

    unavailable = await client.get(
        "/api/admin/drivers", params={"available": "false"}, headers=admin_headers
    )
    assert [d["id"] for d in unavailable.json()["data"]] == [driver["id"]]

    deleted = await client.delete(f"/api/admin/drivers/{driver['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = await client.get(f"/api/admin/drivers/{driver['id']}", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_driver_requires_fields(
    client: AsyncClient, admin_headers, make_driver
) -> None:
    driver = await make_driver()

    response = await client.put(
        f"/api/admin/drivers/{driver.id}", json={}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "NoFields"


@pytest.mark.asyncio
async def test_admin_cannot_free_busy_driver(
    client: AsyncClient, admin_headers, passenger, make_driver, make_request
) -> None:
    driver = await make_driver()
    request = await make_request(passenger.id)
    await client.put(
        f"/api/admin/requests/{request.id}/assign",
        json={"driver_id": driver.id},
        headers=admin_headers,
    )

    response = await client.put(
        f"/api/admin/drivers/{driver.id}", json={"available": True}, headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DriverBusy"


@pytest.mark.asyncio
async def test_driver_with_rides_is_not_deleted(
    client: AsyncClient, admin_headers, passenger, make_driver, make_request
) -> None:
    driver = await make_driver()
    request = await make_request(passenger.id)
    await client.put(
        f"/api/admin/requests/{request.id}/assign",
        json={"driver_id": driver.id},
        headers=admin_headers,
    )

    response = await client.delete(f"/api/admin/drivers/{driver.id}", headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_request_detail(
    client: AsyncClient, admin_headers, passenger, make_request
) -> None:
    request = await make_request(passenger.id)

    found = await client.get(f"/api/admin/requests/{request.id}", headers=admin_headers)
    missing = await client.get("/api/admin/requests/999", headers=admin_headers)

    assert found.status_code == 200
    assert found.json()["data"]["user_name"] == "Riley Rider"
    assert found.json()["data"]["user_gender"] == "women"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_users_listing_and_deletion(
    client: AsyncClient, admin_headers, passenger, make_request
) -> None:
    listed = await client.get("/api/admin/users", headers=admin_headers)
    assert [u["id"] for u in listed.json()["data"]] == [passenger.id]
    assert "password_hash" not in listed.json()["data"][0]

    await make_request(passenger.id)
    blocked = await client.delete(f"/api/admin/users/{passenger.id}", headers=admin_headers)
    assert blocked.status_code == 409


@pytest.mark.asyncio
async def test_delete_user_without_open_rides(
    client: AsyncClient, admin_headers, passenger
) -> None:
    deleted = await client.delete(f"/api/admin/users/{passenger.id}", headers=admin_headers)
    missing = await client.get(f"/api/admin/users/{passenger.id}", headers=admin_headers)

    assert deleted.status_code == 200
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_settings_roundtrip(client: AsyncClient, admin_headers) -> None:
    defaults = await client.get("/api/admin/settings", headers=admin_headers)
    assert defaults.status_code == 200
    assert float(defaults.json()["data"]["base_fare"]) == 5.0
    assert defaults.json()["data"]["maintenance_mode"] is False

    pricing = await client.put(
        "/api/admin/settings/pricing",
        json={"base_fare": "4.00", "price_per_mile": "1.25", "price_per_minute": "0.30"},
        headers=admin_headers,
    )
    assert pricing.status_code == 200
    assert float(pricing.json()["data"]["price_per_mile"]) == 1.25

    negative = await client.put(
        "/api/admin/settings/pricing",
        json={"base_fare": -1, "price_per_mile": 1, "price_per_minute": 1},
        headers=admin_headers,
    )
    assert negative.status_code == 422

    switches = await client.put(
        "/api/admin/settings/system",
        json={"maintenance_mode": True, "enable_notifications": False},
        headers=admin_headers,
    )
    assert switches.json()["data"]["maintenance_mode"] is True
    assert float(switches.json()["data"]["base_fare"]) == 4.0


@pytest.mark.asyncio
async def test_maintenance_mode_blocks_new_requests(
    client: AsyncClient, admin_headers, passenger, auth_headers
) -> None:
    await client.put(
        "/api/admin/settings/system",
        json={"maintenance_mode": True, "enable_notifications": True},
        headers=admin_headers,
    )

    response = await client.post(
        "/api/requests",
        json={"pickup_location": "A", "dropoff_location": "B"},
        headers=auth_headers(passenger.id, Role.PASSENGER),
    )

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"


@pytest.mark.asyncio
async def test_analytics_and_live_tracking(
    client: AsyncClient, admin_headers, passenger, make_driver, make_request, auth_headers
) -> None:
    driver = await make_driver(name="Top Driver")
    done = await make_request(passenger.id)
    live = await make_request(passenger.id)
    driver_headers = auth_headers(driver.id, Role.DRIVER)
    await client.post(f"/api/requests/{done.id}/accept", headers=driver_headers)
    await client.post(
        f"/api/requests/{done.id}/complete", json={"distance_miles": 1}, headers=driver_headers
    )
    await client.post(f"/api/requests/{live.id}/accept", headers=driver_headers)

    analytics = await client.get("/api/admin/analytics", headers=admin_headers)
    tracking = await client.get("/api/admin/live-tracking", headers=admin_headers)

    data = analytics.json()["data"]
    assert data["requests"][0]["count"] == 2
    assert data["drivers"][0]["name"] == "Top Driver"
    assert data["drivers"][0]["trips"] == 1
    assert data["status_counts"] == {"COMPLETED": 1, "ACCEPTED": 1}

    rides = tracking.json()["data"]
    assert [r["id"] for r in rides] == [live.id]
    assert rides[0]["driver_name"] == "Top Driver"


@pytest.mark.asyncio
async def test_csv_exports(
    client: AsyncClient, admin_headers, passenger, make_driver, make_request
) -> None:
    await make_driver(name="Free Driver")
    request = await make_request(passenger.id)

    requests_export = await client.get("/api/admin/requests/export", headers=admin_headers)
    users_export = await client.get("/api/admin/users/export", headers=admin_headers)
    dashboard_export = await client.get("/api/admin/dashboard/export", headers=admin_headers)

    assert requests_export.headers["content-type"].startswith("text/csv")
    assert "requests-export.csv" in requests_export.headers["content-disposition"]
    rows = list(csv.DictReader(StringIO(requests_export.text)))
    assert rows[0]["id"] == str(request.id)
    assert rows[0]["user_name"] == "Riley Rider"
    assert rows[0]["status"] == "PENDING"

    users = list(csv.DictReader(StringIO(users_export.text)))
    assert users[0]["email"] == passenger.email

    sheet = list(csv.reader(StringIO(dashboard_export.text)))
    sections = [row[0] for row in sheet if row[0]]
    assert sections == ["Section", "Summary Stats", "Active Drivers", "Pending Requests"]
    assert any("Free Driver" in row for row in sheet)


@pytest.mark.asyncio
async def test_refused_driver_edit_changes_nothing(
    client: AsyncClient,
    admin_headers,
    passenger,
    make_driver,
    make_request,
    auth_headers,
    get_driver,
) -> None:
    """A busy driver's profile stays as it was when the edit is refused."""
    driver = await make_driver(name="Original Name")
    request = await make_request(passenger.id)
    await client.post(
        f"/api/requests/{request.id}/accept", headers=auth_headers(driver.id, Role.DRIVER)
    )

    response = await client.put(
        f"/api/admin/drivers/{driver.id}",
        json={"name": "Renamed", "vehicle_number": "NEW-1", "available": True},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DriverBusy"
    stored = await get_driver(driver.id)
    assert stored.name == "Original Name"
    assert stored.vehicle_number == driver.vehicle_number
    assert stored.available is False


@pytest.mark.asyncio
async def test_driver_edit_with_taken_email_changes_nothing(
    client: AsyncClient, admin_headers, make_driver, get_driver
) -> None:
    first = await make_driver()
    second = await make_driver(name="Second")

    response = await client.put(
        f"/api/admin/drivers/{second.id}",
        json={"name": "Changed", "email": first.email, "available": False},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "EmailTaken"
    stored = await get_driver(second.id)
    assert stored.name == "Second"
    assert stored.available is True


@pytest.mark.asyncio
async def test_edit_unknown_driver(client: AsyncClient, admin_headers) -> None:
    response = await client.put(
        "/api/admin/drivers/9999", json={"name": "Nobody"}, headers=admin_headers
    )

    assert response.status_code == 404
