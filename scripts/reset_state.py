"""Drop and recreate every table (useful for testing)."""

import asyncio

from ridehail.config import get_settings
from ridehail.storage.database import Database


async def reset_all_state() -> None:
    """Drop all tables and create them again, empty."""
    settings = get_settings()
    print(f"\n⚠️  WARNING: This will delete ALL data in {settings.database_url}!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    database = Database(settings)
    await database.connect()
    await database.drop_all()
    await database.create_all()
    await database.disconnect()

    print("✓ All tables dropped and recreated\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
