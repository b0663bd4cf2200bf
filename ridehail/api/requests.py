"""Ride request lifecycle endpoints."""

from fastapi import APIRouter, Depends, Query, status

from ridehail.api.deps import (
    get_engine,
    get_reporting,
    require_admin,
    require_driver,
    require_passenger,
)
from ridehail.api.errors import raise_for_result
from ridehail.api.schemas import (
    AssignDriverRequest,
    CancelRideRequest,
    CompleteRideRequest,
    Envelope,
)
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.models.ride_request import NewRideRequest, RideRequest, RideStatus
from ridehail.reporting.queries import ReportingService, RequestView
from ridehail.security import Identity

router = APIRouter()


@router.post(
    "",
    response_model=Envelope[RideRequest],
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    payload: NewRideRequest,
    identity: Identity = Depends(require_passenger),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    """Ask for a ride. The request starts PENDING with no driver."""
    result = raise_for_result(await engine.create_request(identity.id, payload))
    return Envelope(data=result.request, message="Ride request created successfully")


@router.get("", response_model=Envelope[list[RequestView]])
async def list_my_requests(
    identity: Identity = Depends(require_passenger),
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[list[RequestView]]:
    requests = await reporting.requests_for_user(identity.id)
    return Envelope(data=requests, message="Ride requests fetched successfully")


@router.get(
    "/all",
    response_model=Envelope[list[RequestView]],
    dependencies=[Depends(require_admin)],
)
async def list_all_requests(
    status_filter: RideStatus | None = Query(default=None, alias="status"),
    reporting: ReportingService = Depends(get_reporting),
) -> Envelope[list[RequestView]]:
    requests = await reporting.all_requests(status_filter)
    return Envelope(data=requests, message="Ride requests fetched successfully")


@router.get("/available", response_model=Envelope[list[RideRequest]])
async def list_available_requests(
    identity: Identity = Depends(require_driver),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[list[RideRequest]]:
    """Open requests matching the caller's vehicle, oldest first."""
    requests = [
        request
        async for request in engine.list_available_requests_for_driver(identity.id)
    ]
    return Envelope(data=requests, message="Available requests fetched successfully")


@router.put("/{request_id}/assign", response_model=Envelope[RideRequest])
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


@router.post("/{request_id}/accept", response_model=Envelope[RideRequest])
async def accept_request(
    request_id: int,
    identity: Identity = Depends(require_driver),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    """Claim a pending request. Loses with 409 if another driver got there first."""
    result = raise_for_result(await engine.accept_request(request_id, identity.id))
    return Envelope(data=result.request, message="Ride request accepted successfully")


@router.post("/{request_id}/start", response_model=Envelope[RideRequest])
async def start_trip(
    request_id: int,
    identity: Identity = Depends(require_driver),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    result = raise_for_result(await engine.start_trip(request_id, identity.id))
    return Envelope(data=result.request, message="Trip started")


@router.post("/{request_id}/complete", response_model=Envelope[RideRequest])
async def complete_request(
    request_id: int,
    payload: CompleteRideRequest | None = None,
    identity: Identity = Depends(require_driver),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    distance = payload.distance_miles if payload else None
    result = raise_for_result(
        await engine.complete_request(request_id, identity.id, distance)
    )
    return Envelope(data=result.request, message="Ride completed successfully")


@router.post("/{request_id}/cancel", response_model=Envelope[RideRequest])
async def cancel_request(
    request_id: int,
    payload: CancelRideRequest | None = None,
    identity: Identity = Depends(require_admin),
    engine: AssignmentEngine = Depends(get_engine),
) -> Envelope[RideRequest]:
    reason = payload.reason if payload else None
    result = raise_for_result(await engine.cancel_request(request_id, reason))
    return Envelope(data=result.request, message="Ride request cancelled")
