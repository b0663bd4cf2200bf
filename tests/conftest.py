"""Pytest configuration and fixtures."""

from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from ridehail.config import Settings
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.main import create_app
from ridehail.models.common import Role
from ridehail.models.driver import Driver, DriverCreate
from ridehail.models.ride_request import NewRideRequest, RideRequest
from ridehail.models.user import Admin, RegistrationRequest, User
from ridehail.security import create_access_token, hash_password
from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.storage.requests import RideRequestStore
from ridehail.storage.users import AdminStore, PendingRegistrationStore, UserStore

PASSENGER_PASSWORD = "rider-pass-123"
DRIVER_PASSWORD = "driver-pass-123"
ADMIN_PASSWORD = "admin-pass-123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ridehail.db'}",
        secret_key="test-secret-key",
        log_level="WARNING",
        log_format="text",
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Create a test database with all tables."""
    db = Database(settings)
    await db.connect()
    await db.create_all()
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def engine(database: Database, settings: Settings) -> AssignmentEngine:
    """Create a test assignment engine."""
    return AssignmentEngine(database, settings)


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Application with its lifespan running."""
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[..., dict[str, str]]:
    """Build bearer headers for an identity."""

    def _headers(subject_id: int, role: Role, username: str | None = None) -> dict[str, str]:
        token = create_access_token(settings, subject_id, role, username)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# Sample data fixtures


@pytest_asyncio.fixture
async def passenger(database: Database) -> User:
    """An approved passenger account."""
    pending_store = PendingRegistrationStore()
    async with database.transaction() as session:
        pending = await pending_store.insert(
            session,
            RegistrationRequest(
                username="riley",
                email="riley@ridehail.io",
                password=PASSENGER_PASSWORD,
                name="Riley Rider",
                phone="+15550001111",
                gender="women",
            ),
            hash_password(PASSENGER_PASSWORD),
        )
        user = await UserStore().insert_from_pending(session, pending)
        await pending_store.delete(session, pending.id)
    return user


@pytest_asyncio.fixture
async def admin(database: Database) -> Admin:
    async with database.transaction() as session:
        return await AdminStore().insert(session, "Root", hash_password(ADMIN_PASSWORD))


@pytest.fixture
def make_driver(database: Database) -> Callable[..., Awaitable[Driver]]:
    """Factory for drivers; each call gets a unique email and phone."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        vehicle_type: str = "sedan",
        available: bool = True,
        password: str | None = None,
    ) -> Driver:
        counter["n"] += 1
        n = counter["n"]
        data = DriverCreate(
            name=name or f"Driver {n}",
            email=f"driver{n}@ridehail.io",
            phone=f"+1555010{n:04d}",
            vehicle_type=vehicle_type,
            vehicle_number=f"RH-{n:04d}",
            available=available,
            password=password,
        )
        async with database.transaction() as session:
            return await DriverStore().insert(
                session, data, hash_password(password) if password else None
            )

    return _make


@pytest.fixture
def make_request(database: Database) -> Callable[..., Awaitable[RideRequest]]:
    """Factory for PENDING ride requests."""

    async def _make(
        user_id: int,
        vehicle_category: str = "sedan",
        pickup: str = "Union Station",
        dropoff: str = "Airport Terminal 2",
        **coordinates: float,
    ) -> RideRequest:
        payload = NewRideRequest(
            pickup_location=pickup,
            dropoff_location=dropoff,
            vehicle_category=vehicle_category,
            **coordinates,
        )
        async with database.transaction() as session:
            return await RideRequestStore().insert(session, user_id, payload)

    return _make


@pytest_asyncio.fixture
async def get_driver(database: Database) -> Callable[[int], Awaitable[Driver | None]]:
    """Re-read a driver outside any engine transaction."""

    async def _get(driver_id: int) -> Driver | None:
        async with database.transaction() as session:
            return await DriverStore().get_by_id(session, driver_id)

    return _get


@pytest_asyncio.fixture
async def get_request(
    database: Database,
) -> Callable[[int], Awaitable[RideRequest | None]]:
    """Re-read a ride request outside any engine transaction."""

    async def _get(request_id: int) -> RideRequest | None:
        async with database.transaction() as session:
            return await RideRequestStore().get_by_id(session, request_id)

    return _get
