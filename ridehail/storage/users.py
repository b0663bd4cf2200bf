"""Passenger, pending registration and admin stores."""

from pydantic import ValidationError
from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.errors import StoreFault
from ridehail.models.common import utcnow
from ridehail.models.user import Admin, PendingRegistration, RegistrationRequest, User
from ridehail.storage.tables import admins, pending_users, users


def _convert(model: type, row: RowMapping):
    try:
        return model.model_validate(dict(row))
    except ValidationError as e:
        raise StoreFault(f"Unreadable {model.__name__} row {row.get('id')}", cause=e) from e


class UserStore:
    """Approved passenger accounts."""

    async def get_by_id(self, session: AsyncSession, user_id: int) -> User | None:
        result = await session.execute(select(users).where(users.c.id == user_id))
        row = result.mappings().first()
        return _convert(User, row) if row else None

    async def get_by_login(self, session: AsyncSession, login: str) -> User | None:
        """Look a user up by email (case-insensitive) or phone."""
        result = await session.execute(
            select(users).where(
                (func.lower(users.c.email) == login.lower()) | (users.c.phone == login)
            )
        )
        row = result.mappings().first()
        return _convert(User, row) if row else None

    async def find_conflict(
        self, session: AsyncSession, username: str, email: str
    ) -> User | None:
        result = await session.execute(
            select(users).where(
                (func.lower(users.c.email) == email.lower())
                | (func.lower(users.c.username) == username.lower())
            )
        )
        row = result.mappings().first()
        return _convert(User, row) if row else None

    async def insert_from_pending(
        self, session: AsyncSession, pending: PendingRegistration
    ) -> User:
        result = await session.execute(
            insert(users)
            .values(
                username=pending.username,
                name=pending.name,
                email=pending.email,
                phone=pending.phone,
                gender=pending.gender,
                role=pending.role.value,
                password_hash=pending.password_hash,
                created_at=utcnow(),
            )
            .returning(*users.c)
        )
        return _convert(User, result.mappings().one())

    async def list_users(self, session: AsyncSession) -> list[User]:
        result = await session.execute(
            select(users).order_by(users.c.created_at.desc(), users.c.id.desc())
        )
        return [_convert(User, row) for row in result.mappings()]

    async def delete(self, session: AsyncSession, user_id: int) -> bool:
        result = await session.execute(delete(users).where(users.c.id == user_id))
        return result.rowcount > 0


class PendingRegistrationStore:
    """Sign-ups awaiting admin approval."""

    async def insert(
        self, session: AsyncSession, data: RegistrationRequest, password_hash: str
    ) -> PendingRegistration:
        result = await session.execute(
            insert(pending_users)
            .values(
                username=data.username,
                name=data.name,
                email=data.email,
                phone=data.phone,
                gender=data.gender,
                role="passenger",
                password_hash=password_hash,
                created_at=utcnow(),
            )
            .returning(*pending_users.c)
        )
        return _convert(PendingRegistration, result.mappings().one())

    async def get_for_update(
        self, session: AsyncSession, pending_id: int
    ) -> PendingRegistration | None:
        result = await session.execute(
            select(pending_users)
            .where(pending_users.c.id == pending_id)
            .with_for_update()
        )
        row = result.mappings().first()
        return _convert(PendingRegistration, row) if row else None

    async def find_conflict(
        self, session: AsyncSession, username: str, email: str
    ) -> PendingRegistration | None:
        result = await session.execute(
            select(pending_users).where(
                (func.lower(pending_users.c.email) == email.lower())
                | (func.lower(pending_users.c.username) == username.lower())
            )
        )
        row = result.mappings().first()
        return _convert(PendingRegistration, row) if row else None

    async def list_pending(self, session: AsyncSession) -> list[PendingRegistration]:
        result = await session.execute(
            select(pending_users).order_by(
                pending_users.c.created_at.desc(), pending_users.c.id.desc()
            )
        )
        return [_convert(PendingRegistration, row) for row in result.mappings()]

    async def delete(self, session: AsyncSession, pending_id: int) -> bool:
        result = await session.execute(
            delete(pending_users).where(pending_users.c.id == pending_id)
        )
        return result.rowcount > 0


class AdminStore:
    """Administrator accounts."""

    async def get_by_username(self, session: AsyncSession, username: str) -> Admin | None:
        result = await session.execute(
            select(admins).where(func.lower(admins.c.username) == username.lower())
        )
        row = result.mappings().first()
        return _convert(Admin, row) if row else None

    async def insert(
        self, session: AsyncSession, username: str, password_hash: str
    ) -> Admin:
        result = await session.execute(
            insert(admins)
            .values(username=username, password_hash=password_hash, created_at=utcnow())
            .returning(*admins.c)
        )
        return _convert(Admin, result.mappings().one())
