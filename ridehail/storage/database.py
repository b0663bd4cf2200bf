"""Async database handle shared by the stores."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ridehail.config import Settings
from ridehail.errors import StoreFault
from ridehail.storage.tables import Base
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Make SQLite take its write lock at BEGIN.

    SQLite has no row locks, so each transaction holds the database write
    lock for its whole duration; concurrent writers queue on the busy
    timeout instead of failing mid-transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the engine and hands out one session per transaction."""

    def __init__(self, settings: Settings) -> None:
        self.url = settings.database_url
        self.echo = settings.database_echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def dialect(self) -> str | None:
        return self.engine.dialect.name if self.engine else None

    async def connect(self) -> None:
        """Create the engine and session factory."""
        if self.engine is None:
            self.engine = create_async_engine(self.url, echo=self.echo)
            if self.engine.dialect.name == "sqlite":
                _use_immediate_transactions(self.engine)
            self.session_factory = async_sessionmaker(
                self.engine, expire_on_commit=False
            )
            logger.info("database_connected", dialect=self.engine.dialect.name)

    async def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("database_disconnected")

    async def create_all(self) -> None:
        """Create any missing tables."""
        if not self.engine:
            await self.connect()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop every table."""
        if not self.engine:
            await self.connect()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        """Check connectivity."""
        try:
            async with self.transaction() as session:
                await session.execute(text("SELECT 1"))
        except StoreFault:
            return False
        return True

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session inside one transaction; commit on clean exit."""
        if not self.session_factory:
            await self.connect()

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("database_error", error=str(e))
            raise StoreFault("Database operation failed", cause=e) from e
