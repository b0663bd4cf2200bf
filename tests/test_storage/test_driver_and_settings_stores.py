"""Tests for driver and system settings storage."""

from decimal import Decimal

import pytest

from ridehail.models.settings import SystemSettings
from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.storage.settings import SystemSettingsStore

drivers = DriverStore()


@pytest.mark.asyncio
async def test_availability_compare_and_swap(database: Database, make_driver) -> None:
    driver = await make_driver()

    async with database.transaction() as session:
        taken = await drivers.set_availability_if(
            session, driver.id, expected=True, new=False
        )
        taken_again = await drivers.set_availability_if(
            session, driver.id, expected=True, new=False
        )

    assert taken.available is False
    assert taken_again is None


@pytest.mark.asyncio
async def test_login_lookup_by_email_or_phone(database: Database, make_driver) -> None:
    driver = await make_driver(password="driver-pass-123")

    async with database.transaction() as session:
        by_email = await drivers.get_by_login(session, driver.email.upper())
        by_phone = await drivers.get_by_login(session, driver.phone)
        nobody = await drivers.get_by_login(session, "ghost@ridehail.io")

    assert by_email.id == driver.id
    assert by_phone.id == driver.id
    assert by_email.password_hash is not None
    assert nobody is None


@pytest.mark.asyncio
async def test_list_drivers_filters_on_availability(database: Database, make_driver) -> None:
    free = await make_driver(name="Alma")
    busy = await make_driver(name="Bert", available=False)

    async with database.transaction() as session:
        everyone = await drivers.list_drivers(session)
        available = await drivers.list_drivers(session, available=True)
        unavailable = await drivers.list_drivers(session, available=False)

    assert [d.id for d in everyone] == [free.id, busy.id]
    assert [d.id for d in available] == [free.id]
    assert [d.id for d in unavailable] == [busy.id]


@pytest.mark.asyncio
async def test_email_taken_ignores_own_row(database: Database, make_driver) -> None:
    driver = await make_driver()

    async with database.transaction() as session:
        assert await drivers.email_taken(session, driver.email) is True
        assert await drivers.email_taken(session, driver.email, exclude_id=driver.id) is False


@pytest.mark.asyncio
async def test_settings_default_until_saved(database: Database) -> None:
    store = SystemSettingsStore()

    async with database.transaction() as session:
        current = await store.get(session)

    assert current == SystemSettings()
    assert current.base_fare == Decimal("5.00")
    assert current.enable_notifications is True


@pytest.mark.asyncio
async def test_settings_upsert_keeps_other_fields(database: Database) -> None:
    store = SystemSettingsStore()

    async with database.transaction() as session:
        await store.upsert(session, {"maintenance_mode": True, "enable_notifications": False})
    async with database.transaction() as session:
        updated = await store.upsert(
            session,
            {
                "base_fare": Decimal("7.25"),
                "price_per_mile": Decimal("2.00"),
                "price_per_minute": Decimal("0.40"),
            },
        )

    assert updated.base_fare == Decimal("7.25")
    assert updated.maintenance_mode is True
    assert updated.enable_notifications is False
    assert updated.created_at is not None
