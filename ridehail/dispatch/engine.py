"""Assignment engine: the ride request state machine.

Every transition runs in one transaction. Rows are always locked in the
same order (ride request first, then driver) and every write is a
compare-and-swap keyed on the status the transition expects, so of two
concurrent callers racing for the same request exactly one commits and
the other gets a conflict result.
"""

import asyncio
import time
from decimal import Decimal
from typing import AsyncIterator, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import Settings, get_settings
from ridehail.dispatch.pricing import MeteredPricing, PricingPolicy
from ridehail.dispatch.results import TransitionResult
from ridehail.dispatch.transitions import RideTransitions
from ridehail.errors import (
    DispatchError,
    ErrorKind,
    StoreFault,
    driver_busy,
    driver_not_found,
    driver_unavailable,
    invalid_state,
    not_owner,
    request_not_found,
    request_not_pending,
    transition_timeout,
    vehicle_category_mismatch,
)
from ridehail.models.common import Role, utcnow
from ridehail.models.driver import Driver, DriverStatusUpdate
from ridehail.models.ride_request import NewRideRequest, RideRequest, RideStatus
from ridehail.models.settings import SystemSettings
from ridehail.storage.database import Database
from ridehail.storage.drivers import DriverStore
from ridehail.storage.requests import RideRequestStore
from ridehail.storage.settings import SystemSettingsStore
from ridehail.utils.logging import DispatchLogger
from ridehail.utils.tracing import TransitionTracer


def default_system_settings(settings: Settings) -> SystemSettings:
    """Pricing used until an admin saves the settings row."""
    return SystemSettings(
        base_fare=Decimal(str(settings.default_base_fare)),
        price_per_mile=Decimal(str(settings.default_price_per_mile)),
        price_per_minute=Decimal(str(settings.default_price_per_minute)),
    )


class AssignmentEngine:
    """Owns every mutation of ride requests and driver availability."""

    def __init__(
        self,
        database: Database,
        settings: Settings | None = None,
        pricing: PricingPolicy | None = None,
        requests: RideRequestStore | None = None,
        drivers: DriverStore | None = None,
        system_settings: SystemSettingsStore | None = None,
    ):
        self.database = database
        self.settings = settings or get_settings()
        self.pricing = pricing or MeteredPricing()
        self.requests = requests or RideRequestStore()
        self.drivers = drivers or DriverStore()
        self.system_settings = system_settings or SystemSettingsStore(
            default_system_settings(self.settings)
        )
        self.logger = DispatchLogger("assignment_engine")
        self.tracer = TransitionTracer(self.logger)

    # Passenger

    async def create_request(
        self, user_id: int, payload: NewRideRequest
    ) -> TransitionResult:
        """Open a new PENDING request for a passenger."""
        action = "create_request"

        async def operation() -> TransitionResult:
            async with self.database.transaction() as session:
                current = await self.system_settings.get(session)
                if current.maintenance_mode:
                    return await self._reject(
                        session,
                        action,
                        DispatchError(
                            kind=ErrorKind.UNAVAILABLE,
                            code="MaintenanceMode",
                            message="New ride requests are paused for maintenance",
                        ),
                    )
                request = await self.requests.insert(session, user_id, payload)

            self.logger.log_transition(
                action, request.id, None, request.status.value, user_id=user_id
            )
            return TransitionResult.ok(action, request=request)

        return await self._run(action, operation, user_id=user_id)

    # Binding

    async def assign_driver(
        self,
        request_id: int,
        driver_id: int,
        acting_role: Role = Role.ADMIN,
    ) -> TransitionResult:
        """Admin binds a driver to a pending request.

        Both rows are locked before any check, so a second admin assigning
        the same request waits and then sees it is no longer pending.
        """
        action = "assign_driver"

        async def operation() -> TransitionResult:
            if acting_role != Role.ADMIN:
                return TransitionResult.fail(
                    action,
                    DispatchError(
                        kind=ErrorKind.AUTH,
                        code="Unauthorized",
                        message="Only admins can assign drivers",
                    ),
                )

            async with self.database.transaction() as session:
                request = await self.requests.get_for_update(session, request_id)
                if request is None:
                    return await self._reject(session, action, request_not_found(request_id))
                if request.status != RideStatus.PENDING or request.driver_id is not None:
                    return await self._reject(session, action, request_not_pending())

                driver = await self.drivers.get_for_update(session, driver_id)
                if driver is None:
                    return await self._reject(session, action, driver_not_found(driver_id))
                if not driver.available:
                    return await self._reject(session, action, driver_unavailable(driver_id))

                bound = await self.requests.update_if_status_equals(
                    session,
                    request_id,
                    [RideStatus.PENDING],
                    {"driver_id": driver_id, "status": RideStatus.ASSIGNED},
                    require_unbound=True,
                )
                if bound is None:
                    return await self._reject(session, action, request_not_pending())

                driver = await self.drivers.set_availability_if(
                    session, driver_id, expected=True, new=False
                )
                if driver is None:
                    return await self._reject(session, action, driver_unavailable(driver_id))

            self.logger.log_transition(
                action,
                request_id,
                RideStatus.PENDING.value,
                bound.status.value,
                driver_id=driver_id,
                acting_role=acting_role.value,
            )
            return TransitionResult.ok(action, request=bound, driver=driver)

        return await self._run(
            action, operation, request_id=request_id, driver_id=driver_id
        )

    async def accept_request(self, request_id: int, driver_id: int) -> TransitionResult:
        """A driver claims a pending request for itself.

        `driver_id` must come from the caller's verified identity.
        """
        action = "accept_request"

        async def operation() -> TransitionResult:
            async with self.database.transaction() as session:
                request = await self.requests.get_by_id(session, request_id)
                if request is None:
                    return await self._reject(session, action, request_not_found(request_id))
                if request.status != RideStatus.PENDING or request.driver_id is not None:
                    return await self._reject(session, action, request_not_pending())

                driver = await self.drivers.get_by_id(session, driver_id)
                if driver is None:
                    return await self._reject(session, action, driver_not_found(driver_id))
                if driver.vehicle_type != request.vehicle_category:
                    return await self._reject(
                        session,
                        action,
                        vehicle_category_mismatch(
                            request.vehicle_category, driver.vehicle_type
                        ),
                    )

                # Single conditional write; a concurrent winner leaves no row to match.
                bound = await self.requests.update_if_status_equals(
                    session,
                    request_id,
                    [RideStatus.PENDING],
                    {
                        "driver_id": driver_id,
                        "status": RideStatus.ACCEPTED,
                        "accepted_at": utcnow(),
                    },
                    require_unbound=True,
                )
                if bound is None:
                    return await self._reject(session, action, request_not_pending())

                driver = await self.drivers.set_availability_if(
                    session, driver_id, expected=True, new=False
                )
                if driver is None:
                    # Rolls the request back to PENDING as well
                    return await self._reject(session, action, driver_unavailable(driver_id))

            self.logger.log_transition(
                action,
                request_id,
                RideStatus.PENDING.value,
                bound.status.value,
                driver_id=driver_id,
            )
            return TransitionResult.ok(action, request=bound, driver=driver)

        return await self._run(
            action, operation, request_id=request_id, driver_id=driver_id
        )

    # Trip progress

    async def start_trip(self, request_id: int, driver_id: int) -> TransitionResult:
        """The bound driver picks the passenger up."""
        action = "start_trip"

        async def operation() -> TransitionResult:
            async with self.database.transaction() as session:
                request = await self.requests.get_for_update(session, request_id)
                if request is None:
                    return await self._reject(session, action, request_not_found(request_id))
                if request.driver_id != driver_id:
                    return await self._reject(session, action, not_owner(request_id))
                if not RideTransitions.can_transition(request.status, RideStatus.IN_PROGRESS):
                    return await self._reject(
                        session,
                        action,
                        invalid_state("InvalidStateForStart", request.status.value),
                    )

                started = await self.requests.update_if_status_equals(
                    session,
                    request_id,
                    RideTransitions.sources_for(RideStatus.IN_PROGRESS),
                    {"status": RideStatus.IN_PROGRESS, "started_at": utcnow()},
                    bound_driver_id=driver_id,
                )
                if started is None:
                    return await self._reject(
                        session,
                        action,
                        invalid_state("InvalidStateForStart", request.status.value),
                    )

            self.logger.log_transition(
                action,
                request_id,
                request.status.value,
                started.status.value,
                driver_id=driver_id,
            )
            return TransitionResult.ok(action, request=started)

        return await self._run(
            action, operation, request_id=request_id, driver_id=driver_id
        )

    async def complete_request(
        self,
        request_id: int,
        driver_id: int,
        distance_miles: float | None = None,
    ) -> TransitionResult:
        """The bound driver finishes the ride; the fare is fixed exactly once."""
        action = "complete_request"

        async def operation() -> TransitionResult:
            async with self.database.transaction() as session:
                request = await self.requests.get_for_update(session, request_id)
                if request is None:
                    return await self._reject(session, action, request_not_found(request_id))
                if request.driver_id != driver_id:
                    return await self._reject(session, action, not_owner(request_id))
                if not RideTransitions.can_transition(request.status, RideStatus.COMPLETED):
                    return await self._reject(
                        session,
                        action,
                        invalid_state("InvalidStateForCompletion", request.status.value),
                    )

                pricing = await self.system_settings.get(session)
                completed_at = utcnow()
                fare = self.pricing(request, pricing, completed_at, distance_miles)

                completed = await self.requests.update_if_status_equals(
                    session,
                    request_id,
                    RideTransitions.sources_for(RideStatus.COMPLETED),
                    {
                        "status": RideStatus.COMPLETED,
                        "completed_at": completed_at,
                        "fare_amount": fare,
                    },
                    bound_driver_id=driver_id,
                )
                if completed is None:
                    return await self._reject(
                        session,
                        action,
                        invalid_state("InvalidStateForCompletion", request.status.value),
                    )

                driver = await self._release_driver(session, driver_id)

            self.logger.log_transition(
                action,
                request_id,
                request.status.value,
                completed.status.value,
                driver_id=driver_id,
                fare_amount=str(fare),
            )
            return TransitionResult.ok(action, request=completed, driver=driver)

        return await self._run(
            action, operation, request_id=request_id, driver_id=driver_id
        )

    async def cancel_request(
        self, request_id: int, reason: str | None = None
    ) -> TransitionResult:
        """Administrative override: end a non-terminal request.

        The driver reference is cleared and the driver freed.
        """
        action = "cancel_request"

        async def operation() -> TransitionResult:
            async with self.database.transaction() as session:
                request = await self.requests.get_for_update(session, request_id)
                if request is None:
                    return await self._reject(session, action, request_not_found(request_id))
                if not RideTransitions.can_transition(request.status, RideStatus.CANCELLED):
                    return await self._reject(
                        session,
                        action,
                        invalid_state("RequestNotCancellable", request.status.value),
                    )

                cancelled = await self.requests.update_if_status_equals(
                    session,
                    request_id,
                    RideTransitions.sources_for(RideStatus.CANCELLED),
                    {
                        "status": RideStatus.CANCELLED,
                        "cancelled_at": utcnow(),
                        "cancellation_reason": reason,
                        "driver_id": None,
                    },
                )
                if cancelled is None:
                    return await self._reject(
                        session,
                        action,
                        invalid_state("RequestNotCancellable", request.status.value),
                    )

                driver = None
                if request.driver_id is not None:
                    driver = await self._release_driver(session, request.driver_id)

            self.logger.log_transition(
                action,
                request_id,
                request.status.value,
                cancelled.status.value,
                driver_id=request.driver_id,
                reason=reason,
            )
            return TransitionResult.ok(action, request=cancelled, driver=driver)

        return await self._run(action, operation, request_id=request_id)

    # Driver self-service

    async def update_driver_status(
        self,
        driver_id: int,
        update: DriverStatusUpdate,
        profile: dict[str, object] | None = None,
    ) -> TransitionResult:
        """Location/online/availability ping from a driver, or an admin edit.

        `profile` carries admin-edited fields (name, email, vehicle, ...). They
        are written in the same transaction as the availability change, so a
        refused change leaves the row untouched.
        """
        action = "update_driver_status"

        async def operation() -> TransitionResult:
            if (update.latitude is None) != (update.longitude is None):
                return TransitionResult.fail(
                    action,
                    DispatchError(
                        kind=ErrorKind.VALIDATION,
                        code="IncompleteLocation",
                        message="Both latitude and longitude are required",
                    ),
                )

            async with self.database.transaction() as session:
                driver = await self.drivers.get_for_update(session, driver_id)
                if driver is None:
                    return await self._reject(session, action, driver_not_found(driver_id))

                values: dict[str, object] = {}
                if update.location is not None:
                    values["current_latitude"] = update.location.lat
                    values["current_longitude"] = update.location.lng
                    values["last_location_at"] = utcnow()
                if update.is_online is not None:
                    values["is_online"] = update.is_online
                if update.available is True and not driver.available:
                    if await self.requests.driver_has_active_request(session, driver_id):
                        return await self._reject(session, action, driver_busy(driver_id))
                    values["available"] = True
                elif update.available is False:
                    values["available"] = False

                if profile:
                    if "email" in profile and await self.drivers.email_taken(
                        session, str(profile["email"]), exclude_id=driver_id
                    ):
                        return await self._reject(
                            session,
                            action,
                            DispatchError(
                                kind=ErrorKind.CONFLICT,
                                code="EmailTaken",
                                message="Email already exists",
                            ),
                        )
                    values.update(profile)

                if values:
                    driver = await self.drivers.update(session, driver_id, values)

            self.logger.logger.info(
                "driver_status_updated",
                driver_id=driver_id,
                fields=sorted(values),
            )
            return TransitionResult.ok(action, driver=driver)

        return await self._run(action, operation, driver_id=driver_id)

    async def list_available_requests_for_driver(
        self,
        driver_id: int,
        vehicle_category: str | None = None,
    ) -> AsyncIterator[RideRequest]:
        """Open requests a driver could accept, oldest first.

        Reads one page per short transaction and holds no lock while the
        caller consumes; a listed request may still be lost to a faster
        driver, which `accept_request` reports as a conflict.
        """
        if vehicle_category is None:
            async with self.database.transaction() as session:
                driver = await self.drivers.get_by_id(session, driver_id)
            if driver is None:
                return
            vehicle_category = driver.vehicle_type

        category = vehicle_category.strip().lower()
        page_size = self.settings.available_requests_page_size
        after = None

        while True:
            async with self.database.transaction() as session:
                page = await self.requests.find_pending_unbound_matching(
                    session, category, after=after, limit=page_size
                )
            for request in page:
                yield request
            if len(page) < page_size:
                break
            last = page[-1]
            after = (last.created_at, last.id)

    # Internals

    async def _release_driver(
        self, session: AsyncSession, driver_id: int
    ) -> Driver | None:
        """Mark a driver available again after its ride ends."""
        driver = await self.drivers.set_availability_if(
            session, driver_id, expected=False, new=True
        )
        if driver is None:
            driver = await self.drivers.get_by_id(session, driver_id)
        return driver

    async def _reject(
        self, session: AsyncSession, action: str, error: DispatchError
    ) -> TransitionResult:
        """Undo anything written so far and report the precondition failure."""
        await session.rollback()
        return TransitionResult.fail(action, error)

    async def _run(
        self,
        action: str,
        operation: Callable[[], Awaitable[TransitionResult]],
        **metadata: object,
    ) -> TransitionResult:
        """Run one transition under the timeout, with timing and logging."""
        start_time = time.perf_counter()

        with self.tracer.trace_transition(action, **metadata) as trace:
            try:
                result = await asyncio.wait_for(
                    operation(), timeout=self.settings.transition_timeout_seconds
                )
            except asyncio.TimeoutError:
                result = TransitionResult.fail(action, transition_timeout(action))
            except StoreFault as e:
                self.logger.log_error(str(e), action, error_id=e.error_id, **metadata)
                raise

            result.execution_time_ms = (time.perf_counter() - start_time) * 1000
            trace.success = result.success

            if result.error is not None:
                trace.metadata["code"] = result.error.code
                self.logger.log_rejection(
                    action,
                    metadata.get("request_id"),
                    result.error.code,
                    kind=result.error.kind.value,
                    **{k: v for k, v in metadata.items() if k != "request_id"},
                )

            return result
