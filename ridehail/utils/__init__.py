"""Utility modules."""

from ridehail.utils.logging import DispatchLogger, get_logger, setup_logging
from ridehail.utils.tracing import TransitionTracer

__all__ = ["setup_logging", "get_logger", "DispatchLogger", "TransitionTracer"]
