"""Error taxonomy shared by the engine, the stores and the API layer."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Kinds of domain failure a caller can act on."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    AUTH = "auth"
    UNAVAILABLE = "unavailable"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.CONFLICT, ErrorKind.UNAVAILABLE)


class DispatchError(BaseModel):
    """A client-correctable failure, returned rather than raised."""

    kind: ErrorKind
    code: str
    message: str


def request_not_found(request_id: int) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.NOT_FOUND,
        code="RequestNotFound",
        message=f"Ride request {request_id} not found",
    )


def request_not_pending() -> DispatchError:
    return DispatchError(
        kind=ErrorKind.CONFLICT,
        code="RequestNotPending",
        message="Ride request is no longer available",
    )


def driver_not_found(driver_id: int) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.NOT_FOUND,
        code="DriverNotFound",
        message=f"Driver {driver_id} not found",
    )


def driver_unavailable(driver_id: int) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.CONFLICT,
        code="DriverUnavailable",
        message=f"Driver {driver_id} is not available",
    )


def driver_busy(driver_id: int) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.CONFLICT,
        code="DriverBusy",
        message=f"Driver {driver_id} has an active ride and cannot become available",
    )


def vehicle_category_mismatch(requested: str, offered: str) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.CONFLICT,
        code="VehicleCategoryMismatch",
        message=f"Request needs a {requested}, driver has a {offered}",
    )


def not_owner(request_id: int) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.AUTH,
        code="NotOwner",
        message=f"Ride request {request_id} is not assigned to this driver",
    )


def invalid_state(code: str, status: str) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.CONFLICT,
        code=code,
        message=f"Ride request cannot do that while {status}",
    )


def transition_timeout(action: str) -> DispatchError:
    return DispatchError(
        kind=ErrorKind.UNAVAILABLE,
        code="TransitionTimeout",
        message=f"Timed out waiting to {action}, please retry",
    )


class StoreFault(Exception):
    """Underlying storage failure. The only error raised past the stores."""

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.error_id = uuid4().hex[:12]
        self.cause = cause
