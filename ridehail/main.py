"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ridehail import __version__
from ridehail.api import router
from ridehail.api.errors import store_fault_handler
from ridehail.config import Settings, get_settings
from ridehail.dispatch.engine import AssignmentEngine
from ridehail.errors import StoreFault
from ridehail.reporting.queries import ReportingService
from ridehail.storage.database import Database
from ridehail.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around one database handle."""
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        # Startup
        logger.info("application_starting", environment=settings.environment)

        database = Database(settings)
        await database.connect()
        await database.create_all()

        app.state.settings = settings
        app.state.database = database
        app.state.engine = AssignmentEngine(database, settings)
        app.state.reporting = ReportingService(database)
        logger.info("database_initialized", dialect=database.dialect)

        yield

        # Shutdown
        logger.info("application_shutting_down")
        await database.disconnect()

    app = FastAPI(
        title="Ride-Hailing Dispatch API",
        description="Ride request lifecycle and driver assignment backend",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreFault, store_fault_handler)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        database: Database = app.state.database
        healthy = await database.ping()
        return {
            "status": "healthy" if healthy else "degraded",
            "service": "ridehail-dispatch",
            "database": "ok" if healthy else "unreachable",
        }

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Ride-Hailing Dispatch API",
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(router, prefix="/api")

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ridehail.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
