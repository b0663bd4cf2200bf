"""Read-only projections over requests, drivers and users."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ValidationError
from sqlalchemy import Select, case, func, select
from sqlalchemy.engine import RowMapping

from ridehail.errors import StoreFault
from ridehail.models.driver import Driver
from ridehail.models.ride_request import ACTIVE_STATUSES, RideRequest, RideStatus
from ridehail.storage.database import Database
from ridehail.storage.drivers import to_driver
from ridehail.storage.tables import cab_requests, drivers, users


class RequestView(RideRequest):
    """A ride request joined with passenger and driver names."""

    user_name: str | None = None
    user_gender: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = None
    vehicle_type: str | None = None
    vehicle_number: str | None = None


class DailyActivity(BaseModel):
    day: date
    count: int
    revenue: Decimal


class DriverPerformance(BaseModel):
    id: int
    name: str
    trips: int
    earnings: Decimal


class Analytics(BaseModel):
    requests: list[DailyActivity]
    drivers: list[DriverPerformance]
    status_counts: dict[str, int]


class LiveRide(BaseModel):
    id: int
    user_id: int
    driver_id: int
    status: RideStatus
    pickup_location: str
    dropoff_location: str
    user_name: str | None = None
    driver_name: str | None = None
    driver_latitude: float | None = None
    driver_longitude: float | None = None
    last_location_at: datetime | None = None


class DashboardSummary(BaseModel):
    total_rides: int
    pending_requests: int
    revenue: Decimal
    total_drivers: int
    active_drivers: int


class Dashboard(BaseModel):
    summary: DashboardSummary
    active_drivers: list[Driver]
    pending_requests: list[RequestView]


def _to_view(row: RowMapping) -> RequestView:
    try:
        return RequestView.model_validate(dict(row))
    except ValidationError as e:
        raise StoreFault(f"Unreadable ride request row {row.get('id')}", cause=e) from e


def _known_status(value: str) -> RideStatus:
    try:
        return RideStatus(value)
    except ValueError as e:
        raise StoreFault(f"Unknown ride request status {value!r}", cause=e) from e


def _joined_requests() -> Select:
    return select(
        cab_requests,
        users.c.name.label("user_name"),
        users.c.gender.label("user_gender"),
        drivers.c.name.label("driver_name"),
        drivers.c.phone.label("driver_phone"),
        drivers.c.vehicle_type,
        drivers.c.vehicle_number,
    ).select_from(
        cab_requests.outerjoin(users, cab_requests.c.user_id == users.c.id).outerjoin(
            drivers, cab_requests.c.driver_id == drivers.c.id
        )
    )


class ReportingService:
    """Queries for history views, admin dashboards and exports. Never writes."""

    def __init__(self, database: Database):
        self.database = database

    async def requests_for_user(self, user_id: int) -> list[RequestView]:
        """A passenger's ride history with the bound driver, newest first."""
        stmt = (
            _joined_requests()
            .where(cab_requests.c.user_id == user_id)
            .order_by(cab_requests.c.request_time.desc(), cab_requests.c.id.desc())
        )
        async with self.database.transaction() as session:
            result = await session.execute(stmt)
            return [_to_view(row) for row in result.mappings()]

    async def all_requests(self, status: RideStatus | None = None) -> list[RequestView]:
        stmt = _joined_requests()
        if status is not None:
            stmt = stmt.where(cab_requests.c.status == status.value)
        stmt = stmt.order_by(cab_requests.c.created_at.desc(), cab_requests.c.id.desc())

        async with self.database.transaction() as session:
            result = await session.execute(stmt)
            return [_to_view(row) for row in result.mappings()]

    async def request_detail(self, request_id: int) -> RequestView | None:
        stmt = _joined_requests().where(cab_requests.c.id == request_id)
        async with self.database.transaction() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
            return _to_view(row) if row else None

    async def analytics(self, days: int = 30, top_drivers: int = 10) -> Analytics:
        """Daily volume and revenue, best drivers, and a status breakdown."""
        day = func.date(cab_requests.c.created_at).label("day")
        daily_stmt = (
            select(
                day,
                func.count(cab_requests.c.id).label("count"),
                func.coalesce(func.sum(cab_requests.c.fare_amount), 0).label("revenue"),
            )
            .group_by(day)
            .order_by(day.desc())
            .limit(days)
        )

        trips = func.count(cab_requests.c.id).label("trips")
        drivers_stmt = (
            select(
                drivers.c.id,
                drivers.c.name,
                trips,
                func.coalesce(func.sum(cab_requests.c.fare_amount), 0).label("earnings"),
            )
            .select_from(
                drivers.outerjoin(
                    cab_requests,
                    (cab_requests.c.driver_id == drivers.c.id)
                    & (cab_requests.c.status == RideStatus.COMPLETED.value),
                )
            )
            .group_by(drivers.c.id, drivers.c.name)
            .order_by(trips.desc(), drivers.c.id)
            .limit(top_drivers)
        )

        status_stmt = select(cab_requests.c.status, func.count()).group_by(
            cab_requests.c.status
        )

        async with self.database.transaction() as session:
            daily = (await session.execute(daily_stmt)).mappings().all()
            top = (await session.execute(drivers_stmt)).mappings().all()
            statuses = (await session.execute(status_stmt)).all()

        return Analytics(
            requests=[DailyActivity.model_validate(dict(row)) for row in daily],
            drivers=[DriverPerformance.model_validate(dict(row)) for row in top],
            status_counts={
                _known_status(status).value: count for status, count in statuses
            },
        )

    async def live_tracking(self) -> list[LiveRide]:
        """Rides with a driver on them, with the driver's last position."""
        stmt = (
            select(
                cab_requests.c.id,
                cab_requests.c.user_id,
                cab_requests.c.driver_id,
                cab_requests.c.status,
                cab_requests.c.pickup_location,
                cab_requests.c.dropoff_location,
                users.c.name.label("user_name"),
                drivers.c.name.label("driver_name"),
                drivers.c.current_latitude.label("driver_latitude"),
                drivers.c.current_longitude.label("driver_longitude"),
                drivers.c.last_location_at,
            )
            .select_from(
                cab_requests.outerjoin(users, cab_requests.c.user_id == users.c.id).join(
                    drivers, cab_requests.c.driver_id == drivers.c.id
                )
            )
            .where(cab_requests.c.status.in_([s.value for s in ACTIVE_STATUSES]))
            .order_by(cab_requests.c.updated_at.desc(), cab_requests.c.id.desc())
        )
        async with self.database.transaction() as session:
            result = await session.execute(stmt)
            return [LiveRide.model_validate(dict(row)) for row in result.mappings()]

    async def dashboard(self) -> Dashboard:
        """Summary figures plus available drivers and waiting requests."""
        requests_stmt = select(
            func.count(cab_requests.c.id).label("total_rides"),
            func.coalesce(
                func.sum(
                    case((cab_requests.c.status == RideStatus.PENDING.value, 1), else_=0)
                ),
                0,
            ).label("pending_requests"),
            func.coalesce(
                func.sum(
                    case(
                        (
                            cab_requests.c.status == RideStatus.COMPLETED.value,
                            cab_requests.c.fare_amount,
                        ),
                        else_=0,
                    )
                ),
                0,
            ).label("revenue"),
        )
        drivers_stmt = select(
            func.count(drivers.c.id).label("total_drivers"),
            func.coalesce(
                func.sum(case((drivers.c.available.is_(True), 1), else_=0)),
                0,
            ).label("active_drivers"),
        )
        active_stmt = (
            select(drivers)
            .where(drivers.c.available.is_(True))
            .order_by(drivers.c.name, drivers.c.id)
        )
        pending_stmt = (
            _joined_requests()
            .where(cab_requests.c.status == RideStatus.PENDING.value)
            .order_by(cab_requests.c.created_at.desc(), cab_requests.c.id.desc())
        )

        async with self.database.transaction() as session:
            request_totals = (await session.execute(requests_stmt)).mappings().one()
            driver_totals = (await session.execute(drivers_stmt)).mappings().one()
            active = (await session.execute(active_stmt)).mappings().all()
            pending = (await session.execute(pending_stmt)).mappings().all()

        return Dashboard(
            summary=DashboardSummary(**request_totals, **driver_totals),
            active_drivers=[to_driver(row) for row in active],
            pending_requests=[_to_view(row) for row in pending],
        )
