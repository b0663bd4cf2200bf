"""Driver accounts and driver self-service."""

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from ridehail.api.deps import (
    get_database,
    get_engine,
    get_settings_dep,
    require_admin,
    require_driver,
)
from ridehail.api.errors import http_error, raise_for_result
from ridehail.api.schemas import DriverRegistration, Envelope, TokenResponse
from ridehail.config import Settings
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.models.common import Role
from ridehail.models.driver import Driver, DriverCreate, DriverStatusUpdate
from ridehail.models.user import LoginRequest
from ridehail.security import Identity, create_access_token, hash_password, verify_password
from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

driver_store = DriverStore()


async def create_driver(database: Database, data: DriverCreate) -> Driver:
    """Insert a driver after the email uniqueness check."""
    password_hash = (
        await run_in_threadpool(hash_password, data.password) if data.password else None
    )
    async with database.transaction() as session:
        if await driver_store.email_taken(session, data.email):
            raise http_error(status.HTTP_409_CONFLICT, "EmailTaken", "Email already exists")
        driver = await driver_store.insert(session, data, password_hash)

    logger.info(
        "driver_created",
        driver_id=driver.id,
        vehicle_type=driver.vehicle_type,
        can_login=password_hash is not None,
    )
    return driver


@router.post(
    "/register",
    response_model=Envelope[Driver],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: DriverRegistration,
    database: Database = Depends(get_database),
) -> Envelope[Driver]:
    driver = await create_driver(database, payload)
    return Envelope(data=driver, message="Driver registered successfully")


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    """Log in with email or phone number."""
    async with database.transaction() as session:
        driver = await driver_store.get_by_login(session, payload.email.strip())

    if driver is None or not await run_in_threadpool(
        verify_password, payload.password, driver.password_hash
    ):
        raise http_error(
            status.HTTP_401_UNAUTHORIZED,
            "InvalidCredentials",
            "Invalid email/phone or password",
        )

    logger.info("driver_logged_in", driver_id=driver.id)

    return TokenResponse(
        token=create_access_token(settings, driver.id, Role.DRIVER, driver.name),
        role=Role.DRIVER,
        id=driver.id,
        username=driver.name,
        message="Login successful",
    )


@router.get("/me", response_model=Envelope[Driver])
async def me(
    identity: Identity = Depends(require_driver),
    database: Database = Depends(get_database),
) -> Envelope[Driver]:
    async with database.transaction() as session:
        driver = await driver_store.get_by_id(session, identity.id)
    if driver is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "DriverNotFound", "Driver not found")
    return Envelope(data=driver, message="Driver fetched successfully")


@router.put("/me/status", response_model=Envelope[Driver])
async def update_status(
    payload: DriverStatusUpdate,
    identity: Identity = Depends(require_driver),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[Driver]:
    """
    Location, online and availability ping.

    A driver on an active ride cannot mark itself available.
    """
    result = raise_for_result(await engine.update_driver_status(identity.id, payload))
    return Envelope(data=result.driver, message="Status updated successfully")


@router.get(
    "/{driver_id}",
    response_model=Envelope[Driver],
    dependencies=[Depends(require_admin)],
)
async def get_driver(
    driver_id: int,
    database: Database = Depends(get_database),
) -> Envelope[Driver]:
    async with database.transaction() as session:
        driver = await driver_store.get_by_id(session, driver_id)
    if driver is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "DriverNotFound", "Driver not found")
    return Envelope(data=driver, message="Driver fetched successfully")


@router.post(
    "",
    response_model=Envelope[Driver],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_driver(
    payload: DriverCreate,
    database: Database = Depends(get_database),
) -> Envelope[Driver]:
    driver = await create_driver(database, payload)
    return Envelope(data=driver, message="Driver added successfully")
