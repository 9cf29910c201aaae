"""Utilities for tracing the steps of a build pipeline."""

from collections import defaultdict
import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "TraceCollector",
    "get_trace_collector",
    "trace_context",
]


@dataclass
class TraceCollector:
    """Accumulates the time spent in each named step."""

    timings: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    """Total seconds spent per step name."""

    counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    """Number of times each step ran."""

    def add(self, name: str, duration: float) -> None:
        """Record a single run of a step."""
        self.timings[name] += duration
        self.counts[name] += 1


trace: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")
_collector: contextvars.ContextVar[TraceCollector | None] = contextvars.ContextVar(
    "collector", default=None
)


@contextmanager
def get_trace_collector() -> Generator[TraceCollector, None, None]:
    """Collect step timings for everything traced within the block."""
    collector = TraceCollector()
    token = _collector.set(collector)
    try:
        yield collector
    finally:
        _collector.reset(token)


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log the elapsed time of a step, nested under any enclosing steps."""
    stack = trace.get([])
    token = trace.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        elapsed = perf_counter() - t1
        trace.reset(token)
        if (collector := _collector.get()) is not None:
            collector.add(name, elapsed)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, elapsed)
