"""Admin console: requests, drivers, users, analytics, settings and exports."""

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.concurrency import run_in_threadpool

from ridehail.api.deps import (
    get_database,
    get_engine,
    get_reporting,
    get_settings_dep,
    require_admin,
)
from ridehail.api.drivers import create_driver, driver_store
from ridehail.api.errors import http_error, raise_for_result
from ridehail.api.schemas import (
    AssignDriverRequest,
    Envelope,
    MessageResponse,
    TokenResponse,
)
from ridehail.config import Settings
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.models.common import Role
from ridehail.models.driver import Driver, DriverCreate, DriverStatusUpdate, DriverUpdate
from ridehail.models.ride_request import RideRequest, RideStatus
from ridehail.models.settings import PricingUpdate, SystemSettings, SystemSwitchesUpdate
from ridehail.models.user import AdminLoginRequest, User
from ridehail.reporting.export import dashboard_csv, requests_csv, users_csv
from ridehail.reporting.queries import Analytics, LiveRide, ReportingService, RequestView
from ridehail.security import Identity, create_access_token, verify_password
from ridehail.storage.database import Database
from ridehail.storage.requests import RideRequestStore
from ridehail.storage.users import AdminStore, UserStore
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

admin_store = AdminStore()
user_store = UserStore()
request_store = RideRequestStore()


def csv_attachment(content: str, filename: str) -> Response:
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return Response(content=content, media_type="text/csv", headers=headers)


# Session


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: AdminLoginRequest,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    """Admin login; the username is matched case-insensitively."""
    async with database.transaction() as session:
        admin = await admin_store.get_by_username(session, payload.username.strip())

    if admin is None or not await run_in_threadpool(
        verify_password, payload.password, admin.password_hash
    ):
        raise http_error(
            status.HTTP_401_UNAUTHORIZED,
            "InvalidCredentials",
            "Invalid username or password",
        )

    logger.info("admin_logged_in", admin_id=admin.id)

    return TokenResponse(
        token=create_access_token(settings, admin.id, Role.ADMIN, admin.username),
        role=Role.ADMIN,
        id=admin.id,
        username=admin.username,
        message="Admin login successful",
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(identity: Identity = Depends(require_admin)) -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    logger.info("admin_logged_out", admin_id=identity.id)
    return MessageResponse(message="Logout successful")


# Ride requests


@router.get(
    "/requests",
    response_model=Envelope[list[RequestView]],
    dependencies=[Depends(require_admin)],
)
async def list_requests(
    status_filter: RideStatus | None = Query(default=None, alias="status"),
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[list[RequestView]]:
    requests = await reporting.all_requests(status_filter)
    return Envelope(data=requests, message="Ride requests fetched successfully")


@router.get("/requests/export", dependencies=[Depends(require_admin)])
async def export_requests(
    reporting: ReportingService = Depends(get_reporting),
) -> Response:
    requests = await reporting.all_requests()
    return csv_attachment(requests_csv(requests), "requests-export.csv")


@router.get(
    "/requests/{request_id}",
    response_model=Envelope[RequestView],
    dependencies=[Depends(require_admin)],
)
async def get_request(
    request_id: int,
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[RequestView]:
    request = await reporting.request_detail(request_id)
    if request is None:
        raise http_error(
            status.HTTP_404_NOT_FOUND, "RequestNotFound", "Ride request not found"
        )
    return Envelope(data=request, message="Ride request fetched successfully")


@router.put("/requests/{request_id}/assign", response_model=Envelope[RideRequest])
async def assign_driver(
    request_id: int,
    payload: AssignDriverRequest,
    identity: Identity = Depends(require_admin),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    result = raise_for_result(
        await engine.assign_driver(request_id, payload.driver_id, identity.role)
    )
    return Envelope(data=result.request, message="Driver assigned successfully")


# Drivers


@router.get(
    "/drivers",
    response_model=Envelope[list[Driver]],
    dependencies=[Depends(require_admin)],
)
async def list_drivers(
    available: bool | None = None,
    database: Database = Depends(get_database),
) -> Envelope[list[Driver]]:
    async with database.transaction() as session:
        drivers = await driver_store.list_drivers(session, available=available)
    return Envelope(data=drivers, message="Drivers fetched successfully")


@router.post(
    "/drivers",
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


@router.get(
    "/drivers/{driver_id}",
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


@router.put(
    "/drivers/{driver_id}",
    response_model=Envelope[Driver],
    dependencies=[Depends(require_admin)],
)
async def update_driver(
    driver_id: int,
    payload: DriverUpdate,
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[Driver]:
    """
    Edit a driver's profile.

    Profile fields and availability are applied by the assignment engine in
    one transaction, so a driver on an active ride cannot be marked
    available and a refused edit changes nothing.
    """
    fields = payload.profile_fields()
    if not fields and payload.available is None:
        raise http_error(
            status.HTTP_400_BAD_REQUEST, "NoFields", "No fields provided for update"
        )

    result = raise_for_result(
        await engine.update_driver_status(
            driver_id,
            DriverStatusUpdate(available=payload.available),
            profile=fields,
        )
    )

    logger.info("driver_updated", driver_id=driver_id, fields=sorted(fields))

    return Envelope(data=result.driver, message="Driver updated successfully")


@router.delete(
    "/drivers/{driver_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_driver(
    driver_id: int,
    database: Database = Depends(get_database),
) -> MessageResponse:
    """Drivers with ride history are kept so past requests stay readable."""
    async with database.transaction() as session:
        driver = await driver_store.get_for_update(session, driver_id)
        if driver is None:
            raise http_error(
                status.HTTP_404_NOT_FOUND, "DriverNotFound", "Driver not found"
            )
        if await request_store.driver_has_any_request(session, driver_id):
            raise http_error(
                status.HTTP_409_CONFLICT,
                "DriverHasRides",
                "Driver has ride requests and cannot be deleted",
            )
        await driver_store.delete(session, driver_id)

    logger.info("driver_deleted", driver_id=driver_id)

    return MessageResponse(message="Driver deleted successfully")


# Users


@router.get(
    "/users",
    response_model=Envelope[list[User]],
    dependencies=[Depends(require_admin)],
)
async def list_users(
    database: Database = Depends(get_database),
) -> Envelope[list[User]]:
    async with database.transaction() as session:
        users = await user_store.list_users(session)
    return Envelope(data=users, message="Users fetched successfully")


@router.get("/users/export", dependencies=[Depends(require_admin)])
async def export_users(database: Database = Depends(get_database)) -> Response:
    async with database.transaction() as session:
        users = await user_store.list_users(session)
    return csv_attachment(users_csv(users), "users-export.csv")


@router.get(
    "/users/{user_id}",
    response_model=Envelope[User],
    dependencies=[Depends(require_admin)],
)
async def get_user(
    user_id: int,
    database: Database = Depends(get_database),
) -> Envelope[User]:
    async with database.transaction() as session:
        user = await user_store.get_by_id(session, user_id)
    if user is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "UserNotFound", "User not found")
    return Envelope(data=user, message="User fetched successfully")


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_user(
    user_id: int,
    database: Database = Depends(get_database),
) -> MessageResponse:
    """Remove a passenger and their finished rides; refused while a ride is open."""
    async with database.transaction() as session:
        user = await user_store.get_by_id(session, user_id)
        if user is None:
            raise http_error(status.HTTP_404_NOT_FOUND, "UserNotFound", "User not found")
        if await request_store.user_has_open_request(session, user_id):
            raise http_error(
                status.HTTP_409_CONFLICT,
                "UserHasOpenRides",
                "User has open ride requests and cannot be deleted",
            )
        removed = await request_store.delete_for_user(session, user_id)
        await user_store.delete(session, user_id)

    logger.info("user_deleted", user_id=user_id, requests_removed=removed)

    return MessageResponse(message="User deleted successfully")


# Dashboards


@router.get(
    "/analytics",
    response_model=Envelope[Analytics],
    dependencies=[Depends(require_admin)],
)
async def analytics(
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[Analytics]:
    data = await reporting.analytics()
    return Envelope(data=data, message="Analytics data fetched successfully")


@router.get(
    "/live-tracking",
    response_model=Envelope[list[LiveRide]],
    dependencies=[Depends(require_admin)],
)
async def live_tracking(
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[list[LiveRide]]:
    rides = await reporting.live_tracking()
    return Envelope(data=rides, message="Live tracking data fetched successfully")


@router.get("/dashboard/export", dependencies=[Depends(require_admin)])
async def export_dashboard(
    reporting: ReportingService = Depends(get_reporting),
) -> Response:
    dashboard = await reporting.dashboard()
    return csv_attachment(dashboard_csv(dashboard), "dashboard-export.csv")


# Settings


@router.get(
    "/settings",
    response_model=Envelope[SystemSettings],
    dependencies=[Depends(require_admin)],
)
async def get_system_settings(
    database: Database = Depends(get_database),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[SystemSettings]:
    async with database.transaction() as session:
        current = await engine.system_settings.get(session)
    return Envelope(data=current, message="Settings fetched successfully")


@router.put("/settings/pricing", response_model=Envelope[SystemSettings])
async def update_pricing(
    payload: PricingUpdate,
    identity: Identity = Depends(require_admin),
    database: Database = Depends(get_database),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[SystemSettings]:
    async with database.transaction() as session:
        updated = await engine.system_settings.upsert(session, payload.model_dump())

    logger.info(
        "pricing_updated",
        admin_id=identity.id,
        base_fare=str(updated.base_fare),
        price_per_mile=str(updated.price_per_mile),
        price_per_minute=str(updated.price_per_minute),
    )

    return Envelope(data=updated, message="Pricing settings updated successfully")


@router.put("/settings/system", response_model=Envelope[SystemSettings])
async def update_system_switches(
    payload: SystemSwitchesUpdate,
    identity: Identity = Depends(require_admin),
    database: Database = Depends(get_database),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[SystemSettings]:
    async with database.transaction() as session:
        updated = await engine.system_settings.upsert(session, payload.model_dump())

    logger.info(
        "system_settings_updated",
        admin_id=identity.id,
        maintenance_mode=updated.maintenance_mode,
        enable_notifications=updated.enable_notifications,
    )

    return Envelope(data=updated, message="System settings updated successfully")
