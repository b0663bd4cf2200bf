"""Tests for the service endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_reports_database(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "service": "ridehail-dispatch",
        "database": "ok",
    }


@pytest.mark.asyncio
async def test_root(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"
