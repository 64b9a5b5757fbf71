"""Clock sources for duration and timestamp capture."""

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for clock implementations."""

    def now(self) -> float:
        """Monotonic time in ms, used for durations."""
        ...

    def wall_time(self) -> float:
        """Wall-clock time in ms since epoch, used for sample timestamps."""
        ...


class SystemClock:
    """Clock backed by time.perf_counter and time.time."""

    def now(self) -> float:
        return time.perf_counter() * 1000

    def wall_time(self) -> float:
        return time.time() * 1000
