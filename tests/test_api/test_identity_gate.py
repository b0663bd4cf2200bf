"""Tests for bearer token checks and logins."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from ridehail.config import Settings
from ridehail.models.common import Role
from ridehail.security import create_access_token

PASSENGER_PASSWORD = "rider-pass-123"
DRIVER_PASSWORD = "driver-pass-123"
ADMIN_PASSWORD = "admin-pass-123"


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient) -> None:
    response = await client.get("/api/requests")

    assert response.status_code == 401
    assert response.json()["detail"]["message"] == "No token provided"


@pytest.mark.asyncio
async def test_garbage_token(client: AsyncClient) -> None:
    response = await client.get(
        "/api/requests", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json()["detail"]["message"] == "Invalid token"


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, settings: Settings) -> None:
    token = create_access_token(
        settings, 1, Role.PASSENGER, expires_delta=timedelta(minutes=-5)
    )

    response = await client.get(
        "/api/requests", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_key(client: AsyncClient, settings: Settings) -> None:
    forged = create_access_token(
        settings.model_copy(update={"secret_key": "someone-else"}), 1, Role.ADMIN
    )

    response = await client.get(
        "/api/admin/users", headers={"Authorization": f"Bearer {forged}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_wrong_role(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/admin/users", headers=auth_headers(1, Role.DRIVER))

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Unauthorized"


@pytest.mark.asyncio
async def test_passenger_login_by_email_and_phone(client: AsyncClient, passenger) -> None:
    by_email = await client.post(
        "/api/user/login",
        json={"email": "RILEY@ridehail.io", "password": PASSENGER_PASSWORD},
    )
    by_phone = await client.post(
        "/api/user/login",
        json={"email": passenger.phone, "password": PASSENGER_PASSWORD},
    )

    assert by_email.status_code == 200
    assert by_email.json()["role"] == "passenger"
    assert by_email.json()["id"] == passenger.id
    assert by_phone.status_code == 200


@pytest.mark.asyncio
async def test_passenger_login_bad_password(client: AsyncClient, passenger) -> None:
    response = await client.post(
        "/api/user/login",
        json={"email": passenger.email, "password": "wrong-password"},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["message"] == "Invalid email/phone or password"


@pytest.mark.asyncio
async def test_admin_login_is_case_insensitive(client: AsyncClient, admin) -> None:
    response = await client.post(
        "/api/admin/login", json={"username": "root", "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "Root"
    assert body["message"] == "Admin login successful"

    logout = await client.post(
        "/api/admin/logout", headers={"Authorization": f"Bearer {body['token']}"}
    )
    assert logout.status_code == 200
    assert logout.json()["message"] == "Logout successful"


@pytest.mark.asyncio
async def test_driver_without_password_cannot_log_in(
    client: AsyncClient, make_driver
) -> None:
    driver = await make_driver()

    response = await client.post(
        "/api/drivers/login", json={"email": driver.email, "password": DRIVER_PASSWORD}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_driver_token_works_on_driver_routes(client: AsyncClient, make_driver) -> None:
    driver = await make_driver(password=DRIVER_PASSWORD)
    login = await client.post(
        "/api/drivers/login", json={"email": driver.phone, "password": DRIVER_PASSWORD}
    )
    token = login.json()["token"]

    response = await client.get(
        "/api/drivers/me", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert response.json()["data"]["id"] == driver.id
    assert "password_hash" not in response.json()["data"]
