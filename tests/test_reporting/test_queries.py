"""Tests for reporting projections."""

from decimal import Decimal

import pytest
from sqlalchemy import update

from ridehail.dispatch.engine import AssignmentEngine
from ridehail.errors import StoreFault
from ridehail.models.ride_request import RideStatus
from ridehail.reporting.queries import ReportingService
from ridehail.storage.database import Database
from ridehail.storage.tables import cab_requests


@pytest.fixture
def reporting(database: Database) -> ReportingService:
    return ReportingService(database)


@pytest.mark.asyncio
async def test_history_joins_driver_details(
    reporting: ReportingService,
    engine: AssignmentEngine,
    passenger,
    make_driver,
    make_request,
) -> None:
    driver = await make_driver(name="Quinn")
    older = await make_request(passenger.id, pickup="First")
    newer = await make_request(passenger.id, pickup="Second")
    await engine.assign_driver(newer.id, driver.id)

    history = await reporting.requests_for_user(passenger.id)

    assert [r.id for r in history] == [newer.id, older.id]
    assert history[0].driver_name == "Quinn"
    assert history[0].driver_phone == driver.phone
    assert history[0].vehicle_type == "sedan"
    assert history[1].driver_name is None
    assert history[1].user_name == "Riley Rider"


@pytest.mark.asyncio
async def test_all_requests_filters_status(
    reporting: ReportingService,
    engine: AssignmentEngine,
    passenger,
    make_request,
) -> None:
    kept = await make_request(passenger.id)
    dropped = await make_request(passenger.id)
    await engine.cancel_request(dropped.id, "Rider changed plans")

    pending = await reporting.all_requests(RideStatus.PENDING)
    cancelled = await reporting.all_requests(RideStatus.CANCELLED)

    assert [r.id for r in pending] == [kept.id]
    assert [r.id for r in cancelled] == [dropped.id]
    assert cancelled[0].cancellation_reason == "Rider changed plans"


@pytest.mark.asyncio
async def test_request_detail_missing(reporting: ReportingService) -> None:
    assert await reporting.request_detail(12345) is None


@pytest.mark.asyncio
async def test_analytics_counts_completed_earnings(
    reporting: ReportingService,
    engine: AssignmentEngine,
    passenger,
    make_driver,
    make_request,
) -> None:
    busy = await make_driver(name="Busy")
    await make_driver(name="Idle")
    for _ in range(2):
        request = await make_request(passenger.id)
        await engine.accept_request(request.id, busy.id)
        await engine.complete_request(request.id, busy.id, distance_miles=2)

    analytics = await reporting.analytics()

    assert analytics.status_counts == {"COMPLETED": 2}
    assert analytics.requests[0].count == 2
    assert analytics.requests[0].revenue >= Decimal("16.00")
    assert [(d.name, d.trips) for d in analytics.drivers] == [("Busy", 2), ("Idle", 0)]
    assert analytics.drivers[1].earnings == 0


@pytest.mark.asyncio
async def test_live_tracking_only_lists_active_rides(
    reporting: ReportingService,
    engine: AssignmentEngine,
    passenger,
    make_driver,
    make_request,
) -> None:
    driver = await make_driver()
    waiting = await make_request(passenger.id)
    riding = await make_request(passenger.id)
    await engine.accept_request(riding.id, driver.id)
    await engine.start_trip(riding.id, driver.id)

    rides = await reporting.live_tracking()

    assert [r.id for r in rides] == [riding.id]
    assert rides[0].status == RideStatus.IN_PROGRESS
    assert waiting.id not in {r.id for r in rides}


@pytest.mark.asyncio
async def test_dashboard_summary(
    reporting: ReportingService,
    engine: AssignmentEngine,
    passenger,
    make_driver,
    make_request,
) -> None:
    free = await make_driver(name="Free")
    taken = await make_driver(name="Taken")
    await make_request(passenger.id)
    bound = await make_request(passenger.id)
    await engine.assign_driver(bound.id, taken.id)

    dashboard = await reporting.dashboard()

    assert dashboard.summary.total_rides == 2
    assert dashboard.summary.pending_requests == 1
    assert dashboard.summary.revenue == 0
    assert dashboard.summary.total_drivers == 2
    assert dashboard.summary.active_drivers == 1
    assert [d.id for d in dashboard.active_drivers] == [free.id]
    assert len(dashboard.pending_requests) == 1


@pytest.mark.asyncio
async def test_analytics_rejects_unknown_stored_status(
    reporting: ReportingService, database: Database, passenger, make_request
) -> None:
    request = await make_request(passenger.id)
    async with database.transaction() as session:
        await session.execute(
            update(cab_requests)
            .where(cab_requests.c.id == request.id)
            .values(status="ON_HOLD")
        )

    with pytest.raises(StoreFault):
        await reporting.analytics()
