"""Transition timing and tracing."""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generator

from ridehail.utils.logging import DispatchLogger


@dataclass
class TraceEvent:
    """Individual timed step of a transition."""

    timestamp: datetime
    action: str
    duration_ms: float
    success: bool
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class TransitionTrace:
    """Mutable outcome holder handed to the traced block."""

    success: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


class TransitionTracer:
    """Records timed transitions for one engine instance."""

    def __init__(self, logger: DispatchLogger, max_events: int = 200):
        self.logger = logger
        self.max_events = max_events
        self.events: list[TraceEvent] = []

    @contextmanager
    def trace_transition(
        self, action: str, **metadata: Any
    ) -> Generator[TransitionTrace, None, None]:
        """Context manager to time a transition and log its outcome."""
        trace = TransitionTrace(metadata=dict(metadata))
        start = time.perf_counter()
        try:
            yield trace
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self.events.append(
                TraceEvent(
                    timestamp=datetime.now(timezone.utc),
                    action=action,
                    duration_ms=duration_ms,
                    success=trace.success,
                    metadata=trace.metadata,
                )
            )
            # Bounded history
            if len(self.events) > self.max_events:
                del self.events[: len(self.events) - self.max_events]
            self.logger.log_timing(
                action, duration_ms, trace.success, **trace.metadata
            )

    def get_trace_summary(self) -> dict[str, Any]:
        """Get per-action counts and timings."""
        action_stats: dict[str, dict[str, Any]] = {}
        for event in self.events:
            stats = action_stats.setdefault(
                event.action,
                {"count": 0, "succeeded": 0, "total_duration_ms": 0.0},
            )
            stats["count"] += 1
            stats["total_duration_ms"] += event.duration_ms
            if event.success:
                stats["succeeded"] += 1

        return {
            "total_events": len(self.events),
            "actions": action_stats,
        }
