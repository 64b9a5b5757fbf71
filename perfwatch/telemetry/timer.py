"""
Named start/stop timing on top of the active recorder.

Provides:
- start_mark / end_mark pairs keyed by name
- measure_sync / measure_async wrappers for callables
- measure / measure_async_block context managers
"""

import inspect
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import (
    Any,
    AsyncGenerator,
    Awaitable,
    Callable,
    Generator,
    TypeVar,
    Union,
)

from perfwatch.telemetry.clock import Clock
from perfwatch.telemetry.models import CATEGORY_CUSTOM, UNIT_MS, Sample
from perfwatch.telemetry.recorder import Recorder

T = TypeVar("T")


class MarkTimer:
    """
    Mark-based timer.

    Durations come from the monotonic clock and sample timestamps from wall
    time. The measure_* helpers time each call locally instead of going
    through the mark table, so overlapping measurements that share a name
    are each recorded.
    """

    def __init__(
        self,
        recorder: Callable[[], Recorder],
        clock: Clock,
        lock: threading.RLock,
    ):
        self._recorder = recorder
        self._clock = clock
        self._lock = lock

    def start_mark(self, name: str) -> None:
        with self._lock:
            self._recorder().start_mark(name)

    def end_mark(self, name: str) -> float:
        with self._lock:
            return self._recorder().end_mark(name)

    def _recording(self, name: str) -> bool:
        """Whether a measurement under name will be recorded. Empty names raise ValueError."""
        if not name:
            raise ValueError("Sample name must be non-empty")
        return self._recorder().enabled

    def _record_elapsed(self, name: str, started_at: float) -> float:
        duration = max(0.0, self._clock.now() - started_at)
        sample = Sample(
            name=name,
            value=duration,
            unit=UNIT_MS,
            timestamp=self._clock.wall_time(),
            category=CATEGORY_CUSTOM,
        )
        with self._lock:
            recorded = self._recorder().add_metric(sample)
        return duration if recorded else 0.0

    def measure_sync(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run fn and record its elapsed time under name.

        The sample is recorded whether or not fn raises; any exception is
        re-raised unchanged.
        """
        if not self._recording(name):
            return fn(*args, **kwargs)

        started_at = self._clock.now()
        try:
            return fn(*args, **kwargs)
        finally:
            self._record_elapsed(name, started_at)

    async def measure_async(
        self,
        name: str,
        operation: Union[Callable[..., Awaitable[T]], Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Await operation and record its elapsed time under name.

        Accepts either a callable returning an awaitable or an awaitable.
        The sample is recorded on success, failure and cancellation; the
        original exception propagates unchanged. An operation that never
        settles never records.
        """
        awaitable = operation if inspect.isawaitable(operation) else None
        try:
            recording = self._recording(name)
        except ValueError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise

        if not recording:
            if awaitable is not None:
                return await awaitable
            return await operation(*args, **kwargs)

        started_at = self._clock.now()
        try:
            if awaitable is not None:
                return await awaitable
            return await operation(*args, **kwargs)
        finally:
            self._record_elapsed(name, started_at)

    @contextmanager
    def measure(self, name: str) -> Generator[None, None, None]:
        """
        Context manager to time a block.

        Usage:
            with engine.measure("build-index"):
                # ... work ...
        """
        if not self._recording(name):
            yield
            return

        started_at = self._clock.now()
        try:
            yield
        finally:
            self._record_elapsed(name, started_at)

    @asynccontextmanager
    async def measure_async_block(self, name: str) -> AsyncGenerator[None, None]:
        """
        Async context manager to time a block containing awaits.

        Usage:
            async with engine.measure_async_block("fetch-patients"):
                # ... awaited work ...
        """
        if not self._recording(name):
            yield
            return

        started_at = self._clock.now()
        try:
            yield
        finally:
            self._record_elapsed(name, started_at)
