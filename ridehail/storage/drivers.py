"""Driver store: storage primitives, no business rules."""

from typing import Any

from pydantic import ValidationError
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.errors import StoreFault
from ridehail.models.common import utcnow
from ridehail.models.driver import Driver, DriverCreate
from ridehail.storage.tables import drivers


def to_driver(row: RowMapping) -> Driver:
    try:
        return Driver.model_validate(dict(row))
    except ValidationError as e:
        raise StoreFault(f"Unreadable driver row {row.get('id')}", cause=e) from e


class DriverStore:
    """Reads and writes `drivers` through a caller-owned session."""

    async def get_by_id(self, session: AsyncSession, driver_id: int) -> Driver | None:
        result = await session.execute(select(drivers).where(drivers.c.id == driver_id))
        row = result.mappings().first()
        return to_driver(row) if row else None

    async def get_for_update(
        self, session: AsyncSession, driver_id: int
    ) -> Driver | None:
        """Read a driver and hold its row lock until the transaction ends."""
        result = await session.execute(
            select(drivers).where(drivers.c.id == driver_id).with_for_update()
        )
        row = result.mappings().first()
        return to_driver(row) if row else None

    async def get_by_login(self, session: AsyncSession, login: str) -> Driver | None:
        """Look a driver up by email (case-insensitive) or phone."""
        result = await session.execute(
            select(drivers).where(
                (func.lower(drivers.c.email) == login.lower())
                | (drivers.c.phone == login)
            )
        )
        row = result.mappings().first()
        return to_driver(row) if row else None

    async def email_taken(
        self, session: AsyncSession, email: str, *, exclude_id: int | None = None
    ) -> bool:
        stmt = select(drivers.c.id).where(func.lower(drivers.c.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(drivers.c.id != exclude_id)
        result = await session.execute(stmt)
        return result.first() is not None

    async def insert(
        self,
        session: AsyncSession,
        data: DriverCreate,
        password_hash: str | None = None,
    ) -> Driver:
        now = utcnow()
        result = await session.execute(
            insert(drivers)
            .values(
                **data.model_dump(exclude={"password"}),
                password_hash=password_hash,
                is_online=False,
                created_at=now,
                updated_at=now,
            )
            .returning(*drivers.c)
        )
        return to_driver(result.mappings().one())

    async def update(
        self, session: AsyncSession, driver_id: int, values: dict[str, Any]
    ) -> Driver | None:
        """Unconditional field update; returns None if the driver is gone."""
        values = dict(values)
        values.setdefault("updated_at", utcnow())
        result = await session.execute(
            update(drivers)
            .where(drivers.c.id == driver_id)
            .values(**values)
            .returning(*drivers.c)
        )
        row = result.mappings().first()
        return to_driver(row) if row else None

    async def set_availability_if(
        self,
        session: AsyncSession,
        driver_id: int,
        *,
        expected: bool,
        new: bool,
    ) -> Driver | None:
        """Compare-and-swap on the `available` flag."""
        result = await session.execute(
            update(drivers)
            .where(drivers.c.id == driver_id, drivers.c.available == expected)
            .values(available=new, updated_at=utcnow())
            .returning(*drivers.c)
        )
        row = result.mappings().first()
        return to_driver(row) if row else None

    async def list_drivers(
        self, session: AsyncSession, *, available: bool | None = None
    ) -> list[Driver]:
        stmt = select(drivers)
        if available is not None:
            stmt = stmt.where(drivers.c.available == available)
        stmt = stmt.order_by(drivers.c.name, drivers.c.id)

        result = await session.execute(stmt)
        return [to_driver(row) for row in result.mappings()]

    async def delete(self, session: AsyncSession, driver_id: int) -> bool:
        result = await session.execute(delete(drivers).where(drivers.c.id == driver_id))
        return result.rowcount > 0
