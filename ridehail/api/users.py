"""Passenger accounts: registration, login and approval."""

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from ridehail.api.deps import (
    get_database,
    get_reporting,
    get_settings_dep,
    require_admin,
    require_passenger,
)
from ridehail.api.errors import http_error
from ridehail.api.schemas import Envelope, MessageResponse, TokenResponse
from ridehail.config import Settings
from ridehail.models.common import Role
from ridehail.models.user import (
    LoginRequest,
    PendingRegistration,
    RegistrationRequest,
    User,
)
from ridehail.reporting.queries import ReportingService, RequestView
from ridehail.security import Identity, create_access_token, hash_password, verify_password
from ridehail.storage.database import Database
from ridehail.storage.users import PendingRegistrationStore, UserStore
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

user_store = UserStore()
pending_store = PendingRegistrationStore()


@router.post(
    "/register",
    response_model=Envelope[PendingRegistration],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegistrationRequest,
    database: Database = Depends(get_database),
) -> Envelope[PendingRegistration]:
    """
    Submit a passenger sign-up.

    The account stays in the pending list until an admin approves it.
    """
    password_hash = await run_in_threadpool(hash_password, payload.password)

    async with database.transaction() as session:
        existing = await user_store.find_conflict(
            session, payload.username, payload.email
        ) or await pending_store.find_conflict(session, payload.username, payload.email)
        if existing:
            field = "Email" if existing.email.lower() == payload.email.lower() else "Username"
            raise http_error(
                status.HTTP_409_CONFLICT, "AlreadyRegistered", f"{field} already exists"
            )

        pending = await pending_store.insert(session, payload, password_hash)

    logger.info("registration_submitted", pending_id=pending.id, username=pending.username)

    return Envelope(data=pending, message="Registration submitted for admin approval")


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    """Log in with email or phone number."""
    async with database.transaction() as session:
        user = await user_store.get_by_login(session, payload.email.strip())

    if user is None or not await run_in_threadpool(
        verify_password, payload.password, user.password_hash
    ):
        raise http_error(
            status.HTTP_401_UNAUTHORIZED,
            "InvalidCredentials",
            "Invalid email/phone or password",
        )

    logger.info("user_logged_in", user_id=user.id)

    return TokenResponse(
        token=create_access_token(settings, user.id, Role.PASSENGER, user.username),
        role=Role.PASSENGER,
        id=user.id,
        username=user.username,
        message="Login successful",
    )


@router.get("/requests", response_model=Envelope[list[RequestView]])
async def my_requests(
    identity: Identity = Depends(require_passenger),
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[list[RequestView]]:
    """The caller's ride history."""
    requests = await reporting.requests_for_user(identity.id)
    return Envelope(data=requests, message="Requests fetched successfully")


@router.get(
    "/pending-registrations",
    response_model=Envelope[list[PendingRegistration]],
    dependencies=[Depends(require_admin)],
)
async def pending_registrations(
    database: Database = Depends(get_database),
) -> Envelope[list[PendingRegistration]]:
    async with database.transaction() as session:
        pending = await pending_store.list_pending(session)
    return Envelope(data=pending, message="Pending registrations fetched successfully")


@router.post(
    "/approve-registration/{pending_id}",
    response_model=Envelope[User],
)
async def approve_registration(
    pending_id: int,
    identity: Identity = Depends(require_admin),
    database: Database = Depends(get_database),
) -> Envelope[User]:
    """Move a pending sign-up into the user table."""
    async with database.transaction() as session:
        pending = await pending_store.get_for_update(session, pending_id)
        if pending is None:
            raise http_error(
                status.HTTP_404_NOT_FOUND,
                "RegistrationNotFound",
                "Pending registration not found",
            )
        if await user_store.find_conflict(session, pending.username, pending.email):
            raise http_error(
                status.HTTP_409_CONFLICT,
                "AlreadyRegistered",
                "A user with this username or email already exists",
            )

        user = await user_store.insert_from_pending(session, pending)
        await pending_store.delete(session, pending_id)

    logger.info(
        "registration_approved",
        pending_id=pending_id,
        user_id=user.id,
        admin_id=identity.id,
    )

    return Envelope(data=user, message="Registration approved successfully")


@router.post(
    "/reject-registration/{pending_id}",
    response_model=MessageResponse,
)
async def reject_registration(
    pending_id: int,
    identity: Identity = Depends(require_admin),
    database: Database = Depends(get_database),
) -> MessageResponse:
    async with database.transaction() as session:
        deleted = await pending_store.delete(session, pending_id)

    if not deleted:
        raise http_error(
            status.HTTP_404_NOT_FOUND,
            "RegistrationNotFound",
            "Pending registration not found",
        )

    logger.info("registration_rejected", pending_id=pending_id, admin_id=identity.id)

    return MessageResponse(message="Registration rejected successfully")
