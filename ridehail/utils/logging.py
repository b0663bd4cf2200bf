"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from ridehail.config import Settings, get_settings

SERVICE_NAME = "ridehail-dispatch"

# Third-party loggers routed through the root handler
_LIBRARY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine")


def _build_handler(log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "asctime": "timestamp"},
                static_fields={"service": SERVICE_NAME},
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
    return handler


def setup_logging(settings: Settings | None = None) -> None:
    """Route stdlib and structlog output through one handler."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_build_handler(settings.log_format))

    for name in _LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers.clear()
        library_logger.propagate = True
    # SQL statements only when asked for
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class DispatchLogger:
    """Specialized logger for ride-request state transitions."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        action: str,
        request_id: int,
        from_status: str | None,
        to_status: str,
        driver_id: int | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a committed state transition."""
        self.logger.info(
            "request_transition",
            component=self.component,
            action=action,
            request_id=request_id,
            from_status=from_status,
            to_status=to_status,
            driver_id=driver_id,
            **kwargs,
        )

    def log_rejection(
        self,
        action: str,
        request_id: int | None,
        code: str,
        **kwargs: Any,
    ) -> None:
        """Log a transition refused by a precondition."""
        self.logger.info(
            "transition_rejected",
            component=self.component,
            action=action,
            request_id=request_id,
            code=code,
            **kwargs,
        )

    def log_timing(
        self,
        action: str,
        duration_ms: float,
        success: bool,
        **kwargs: Any,
    ) -> None:
        """Log how long a transition took."""
        self.logger.debug(
            "transition_timing",
            component=self.component,
            action=action,
            duration_ms=duration_ms,
            success=success,
            **kwargs,
        )

    def log_error(
        self,
        error: str,
        action: str,
        **kwargs: Any,
    ) -> None:
        """Log an error."""
        self.logger.error(
            "dispatch_error",
            component=self.component,
            action=action,
            error=error,
            **kwargs,
        )
