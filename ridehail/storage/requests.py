"""Ride request store: storage primitives, no business rules."""

from datetime import datetime
from typing import Any, Iterable

from pydantic import ValidationError
from sqlalchemy import delete, exists, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.errors import StoreFault
from ridehail.models.common import utcnow
from ridehail.models.ride_request import (
    ACTIVE_STATUSES,
    NewRideRequest,
    RideRequest,
    RideStatus,
)
from ridehail.storage.tables import cab_requests


def to_ride_request(row: RowMapping) -> RideRequest:
    """Convert a row, refusing unknown statuses or broken bindings."""
    try:
        return RideRequest.model_validate(dict(row))
    except ValidationError as e:
        raise StoreFault(f"Unreadable ride request row {row.get('id')}", cause=e) from e


def _status_values(statuses: Iterable[RideStatus]) -> list[str]:
    return [RideStatus(s).value for s in statuses]


class RideRequestStore:
    """Reads and writes `cab_requests` through a caller-owned session."""

    async def get_by_id(
        self, session: AsyncSession, request_id: int
    ) -> RideRequest | None:
        result = await session.execute(
            select(cab_requests).where(cab_requests.c.id == request_id)
        )
        row = result.mappings().first()
        return to_ride_request(row) if row else None

    async def get_for_update(
        self, session: AsyncSession, request_id: int
    ) -> RideRequest | None:
        """Read a request and hold its row lock until the transaction ends."""
        result = await session.execute(
            select(cab_requests)
            .where(cab_requests.c.id == request_id)
            .with_for_update()
        )
        row = result.mappings().first()
        return to_ride_request(row) if row else None

    async def insert(
        self, session: AsyncSession, user_id: int, payload: NewRideRequest
    ) -> RideRequest:
        now = utcnow()
        values = payload.model_dump(exclude={"request_time"})
        result = await session.execute(
            insert(cab_requests)
            .values(
                user_id=user_id,
                status=RideStatus.PENDING.value,
                request_time=payload.request_time or now,
                created_at=now,
                updated_at=now,
                **values,
            )
            .returning(*cab_requests.c)
        )
        return to_ride_request(result.mappings().one())

    async def update_if_status_equals(
        self,
        session: AsyncSession,
        request_id: int,
        expected: Iterable[RideStatus],
        values: dict[str, Any],
        *,
        require_unbound: bool = False,
        bound_driver_id: int | None = None,
    ) -> RideRequest | None:
        """Compare-and-swap update.

        Applies `values` only if the row's status is one of `expected` (and,
        optionally, it is unbound or bound to `bound_driver_id`). Returns the
        updated request, or None when the row did not match.
        """
        stmt = update(cab_requests).where(
            cab_requests.c.id == request_id,
            cab_requests.c.status.in_(_status_values(expected)),
        )
        if require_unbound:
            stmt = stmt.where(cab_requests.c.driver_id.is_(None))
        if bound_driver_id is not None:
            stmt = stmt.where(cab_requests.c.driver_id == bound_driver_id)

        values = dict(values)
        if "status" in values:
            values["status"] = RideStatus(values["status"]).value
        values.setdefault("updated_at", utcnow())

        result = await session.execute(
            stmt.values(**values).returning(*cab_requests.c)
        )
        row = result.mappings().first()
        return to_ride_request(row) if row else None

    async def find_pending_unbound_matching(
        self,
        session: AsyncSession,
        vehicle_category: str,
        *,
        after: tuple[datetime, int] | None = None,
        limit: int = 50,
    ) -> list[RideRequest]:
        """Open requests for a category, oldest first, keyset-paginated."""
        stmt = select(cab_requests).where(
            cab_requests.c.status == RideStatus.PENDING.value,
            cab_requests.c.driver_id.is_(None),
            cab_requests.c.vehicle_category == vehicle_category,
        )
        if after is not None:
            created_at, request_id = after
            stmt = stmt.where(
                (cab_requests.c.created_at > created_at)
                | (
                    (cab_requests.c.created_at == created_at)
                    & (cab_requests.c.id > request_id)
                )
            )
        stmt = stmt.order_by(cab_requests.c.created_at, cab_requests.c.id).limit(limit)

        result = await session.execute(stmt)
        return [to_ride_request(row) for row in result.mappings()]

    async def list_requests(
        self,
        session: AsyncSession,
        *,
        user_id: int | None = None,
        driver_id: int | None = None,
        statuses: Iterable[RideStatus] | None = None,
    ) -> list[RideRequest]:
        """Plain filtered listing, newest first."""
        stmt = select(cab_requests)
        if user_id is not None:
            stmt = stmt.where(cab_requests.c.user_id == user_id)
        if driver_id is not None:
            stmt = stmt.where(cab_requests.c.driver_id == driver_id)
        if statuses is not None:
            stmt = stmt.where(cab_requests.c.status.in_(_status_values(statuses)))
        stmt = stmt.order_by(cab_requests.c.request_time.desc(), cab_requests.c.id.desc())

        result = await session.execute(stmt)
        return [to_ride_request(row) for row in result.mappings()]

    async def driver_has_active_request(
        self, session: AsyncSession, driver_id: int
    ) -> bool:
        result = await session.execute(
            select(
                exists().where(
                    cab_requests.c.driver_id == driver_id,
                    cab_requests.c.status.in_(_status_values(ACTIVE_STATUSES)),
                )
            )
        )
        return bool(result.scalar())

    async def driver_has_any_request(
        self, session: AsyncSession, driver_id: int
    ) -> bool:
        result = await session.execute(
            select(exists().where(cab_requests.c.driver_id == driver_id))
        )
        return bool(result.scalar())

    async def user_has_open_request(self, session: AsyncSession, user_id: int) -> bool:
        open_statuses = ACTIVE_STATUSES | {RideStatus.PENDING}
        result = await session.execute(
            select(
                exists().where(
                    cab_requests.c.user_id == user_id,
                    cab_requests.c.status.in_(_status_values(open_statuses)),
                )
            )
        )
        return bool(result.scalar())

    async def delete_for_user(self, session: AsyncSession, user_id: int) -> int:
        """Administrative removal of a user's finished requests."""
        result = await session.execute(
            delete(cab_requests).where(cab_requests.c.user_id == user_id)
        )
        return result.rowcount
