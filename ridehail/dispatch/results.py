"""Outcome of an engine operation."""

from pydantic import BaseModel

from ridehail.errors import DispatchError
from ridehail.models.driver import Driver
from ridehail.models.ride_request import RideRequest


class TransitionResult(BaseModel):
    """Result from a state transition.

    Domain failures (not found, conflict, not owner) come back here as
    `error`; storage faults are raised instead.
    """

    action: str
    success: bool
    request: RideRequest | None = None
    driver: Driver | None = None
    error: DispatchError | None = None
    execution_time_ms: float = 0.0

    @classmethod
    def ok(
        cls,
        action: str,
        request: RideRequest | None = None,
        driver: Driver | None = None,
    ) -> "TransitionResult":
        return cls(action=action, success=True, request=request, driver=driver)

    @classmethod
    def fail(cls, action: str, error: DispatchError) -> "TransitionResult":
        return cls(action=action, success=False, error=error)
