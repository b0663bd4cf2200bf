"""FastAPI dependencies: app-scoped services and the identity gate."""

from typing import Awaitable, Callable

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ridehail.api.errors import http_error
from ridehail.config import Settings
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.models.common import Role
from ridehail.reporting.queries import ReportingService
from ridehail.security import Identity, InvalidToken, decode_access_token
from ridehail.storage.database import Database
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_engine(request: Request) -> AssignmentEngine:
    return request.app.state.engine


def get_reporting(request: Request) -> ReportingService:
    return request.app.state.reporting


def authenticate(role: Role | None = None) -> Callable[..., Awaitable[Identity]]:
    """Build a dependency that admits callers holding a valid token.

    With `role=None` any authenticated caller passes.
    """

    async def dependency(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
        settings: Settings = Depends(get_settings_dep),
    ) -> Identity:
        if credentials is None or not credentials.credentials:
            raise http_error(
                status.HTTP_401_UNAUTHORIZED,
                "NoToken",
                "No token provided",
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            identity = decode_access_token(settings, credentials.credentials)
        except InvalidToken as e:
            logger.info("token_rejected", reason=str(e))
            raise http_error(
                status.HTTP_401_UNAUTHORIZED,
                "InvalidToken",
                "Invalid token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        if role is not None and identity.role != role:
            raise http_error(status.HTTP_403_FORBIDDEN, "Unauthorized", "Unauthorized")

        return identity

    return dependency


require_passenger = authenticate(Role.PASSENGER)
require_driver = authenticate(Role.DRIVER)
require_admin = authenticate(Role.ADMIN)
