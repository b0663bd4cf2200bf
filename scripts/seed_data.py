"""Seed an admin, a small driver fleet and a demo passenger."""

import asyncio
import os

from ridehail.config import get_settings
from ridehail.models.driver import DriverCreate
from ridehail.models.user import RegistrationRequest
from ridehail.security import hash_password
from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.storage.users import AdminStore, PendingRegistrationStore, UserStore

ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin-change-me")
DEMO_PASSWORD = "demo-pass-123"


async def seed_admin(database: Database) -> None:
    """Create the admin account unless it exists."""
    print("Seeding admin...")

    store = AdminStore()
    async with database.transaction() as session:
        if await store.get_by_username(session, ADMIN_USERNAME):
            print(f"  • Admin '{ADMIN_USERNAME}' already exists")
            return
        await store.insert(session, ADMIN_USERNAME, hash_password(ADMIN_PASSWORD))

    print(f"✓ Created admin '{ADMIN_USERNAME}'")


async def seed_drivers(database: Database) -> None:
    """Seed drivers across vehicle categories."""
    print("\nSeeding drivers...")

    drivers = [
        DriverCreate(
            name="Alex Rivera",
            email="alex.rivera@ridehail.io",
            phone="+14155550101",
            vehicle_type="sedan",
            vehicle_number="SED-1001",
            gender="men",
            password=DEMO_PASSWORD,
        ),
        DriverCreate(
            name="Priya Shah",
            email="priya.shah@ridehail.io",
            phone="+14155550102",
            vehicle_type="sedan",
            vehicle_number="SED-1002",
            gender="women",
            password=DEMO_PASSWORD,
        ),
        DriverCreate(
            name="Marcus Cole",
            email="marcus.cole@ridehail.io",
            phone="+14155550103",
            vehicle_type="suv",
            vehicle_number="SUV-2001",
            gender="men",
            password=DEMO_PASSWORD,
        ),
        DriverCreate(
            name="Noor Haddad",
            email="noor.haddad@ridehail.io",
            phone="+14155550104",
            vehicle_type="van",
            vehicle_number="VAN-3001",
            gender="women",
            password=DEMO_PASSWORD,
        ),
    ]

    store = DriverStore()
    created = 0
    async with database.transaction() as session:
        for driver in drivers:
            if await store.email_taken(session, driver.email):
                continue
            await store.insert(session, driver, hash_password(DEMO_PASSWORD))
            created += 1

    print(f"✓ Seeded {created} drivers ({len(drivers) - created} already present)")


async def seed_passenger(database: Database) -> None:
    """Seed one approved passenger."""
    print("\nSeeding passenger...")

    registration = RegistrationRequest(
        username="demo_rider",
        email="rider@ridehail.io",
        password=DEMO_PASSWORD,
        name="Demo Rider",
        phone="+14155550199",
        gender="other",
    )

    users = UserStore()
    pending_store = PendingRegistrationStore()
    async with database.transaction() as session:
        if await users.find_conflict(session, registration.username, registration.email):
            print("  • Passenger 'demo_rider' already exists")
            return
        pending = await pending_store.insert(
            session, registration, hash_password(DEMO_PASSWORD)
        )
        await users.insert_from_pending(session, pending)
        await pending_store.delete(session, pending.id)

    print("✓ Created passenger 'demo_rider'")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Ride-Hailing Dispatch Data")
    print("=" * 50 + "\n")

    database = Database(get_settings())
    await database.connect()
    await database.create_all()

    try:
        await seed_admin(database)
        await seed_drivers(database)
        await seed_passenger(database)
    finally:
        await database.disconnect()

    print("\n" + "=" * 50)
    print("  ✓ Seeding Complete!")
    print("=" * 50 + "\n")
    print(f"Admin login: {ADMIN_USERNAME} / {ADMIN_PASSWORD}")
    print(f"Demo driver and passenger password: {DEMO_PASSWORD}\n")


if __name__ == "__main__":
    asyncio.run(main())
