"""Validate that the system is properly set up and configured."""

import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from ridehail.config import Settings
from ridehail.storage.database import Database


async def check_python_version() -> bool:
    """Check if Python version is 3.11+."""
    print("Checking Python version...")

    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 11):
        print(f"  ❌ Python {version.major}.{version.minor} detected")
        print("  → Python 3.11+ required")
        return False

    print(f"  ✓ Python {version.major}.{version.minor} detected")
    return True


async def check_environment() -> bool:
    """Check that settings load from the environment or .env."""
    print("\nChecking environment configuration...")

    if not Path(".env").exists():
        print("  ℹ️  No .env file, reading process environment only")

    try:
        settings = Settings()
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        print(f"  ❌ Invalid or missing settings: {', '.join(missing)}")
        print("  → Set SECRET_KEY (and DATABASE_URL for PostgreSQL)")
        return False

    if settings.environment == "production" and settings.database_url.startswith("sqlite"):
        print("  ⚠️  SQLite configured for production")

    print(f"  ✓ Settings loaded ({settings.environment})")
    return True


async def check_database() -> bool:
    """Check the database is reachable and tables can be created."""
    print("\nChecking database...")

    try:
        settings = Settings()
    except ValidationError:
        print("  ℹ️  Skipped, settings are invalid")
        return False

    database = Database(settings)
    await database.connect()
    dialect = database.dialect
    try:
        if not await database.ping():
            print(f"  ❌ Cannot reach {settings.database_url}")
            return False
        await database.create_all()
    finally:
        await database.disconnect()

    print(f"  ✓ Connected ({dialect})")
    return True


async def check_project_structure() -> bool:
    """Check if all required directories and files exist."""
    print("\nChecking project structure...")

    required_paths = [
        "ridehail/dispatch/engine.py",
        "ridehail/storage/database.py",
        "ridehail/api/requests.py",
        "ridehail/main.py",
        "pyproject.toml",
    ]

    missing = [path for path in required_paths if not Path(path).exists()]

    if missing:
        print("  ❌ Missing files:")
        for path in missing:
            print(f"     - {path}")
        return False

    print("  ✓ All required files present")
    return True


CHECKS = {
    "Python Version": check_python_version,
    "Environment": check_environment,
    "Database": check_database,
    "Project Structure": check_project_structure,
}


async def main() -> None:
    """Run every check and exit non-zero if any failed."""
    banner = "=" * 60
    print(f"\n{banner}\n  Ride-Hailing Dispatch - Setup Validation\n{banner}\n")

    results: dict[str, bool] = {}
    for name, check in CHECKS.items():
        try:
            results[name] = await check()
        except Exception as e:
            print(f"  ❌ {name} check crashed: {e}")
            results[name] = False

    print(f"\n{banner}\n  Summary\n{banner}")
    for name, passed in results.items():
        print(f"  {'✓' if passed else '❌'} {name}")
    print(banner)

    if not all(results.values()):
        print("\n❌ Fix the failed checks above and run again.\n")
        sys.exit(1)

    print("\n✅ Ready to serve rides.")
    print("\nNext steps:")
    print("  1. Seed data:  python scripts/seed_data.py")
    print("  2. Start API:  python -m ridehail.main")
    print("  3. Health:     curl http://localhost:8000/health")
    print("  4. API docs:   http://localhost:8000/docs\n")


if __name__ == "__main__":
    asyncio.run(main())
