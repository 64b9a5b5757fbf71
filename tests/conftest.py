"""
Shared fixtures for telemetry tests.

Provides:
- A manually advanced clock so durations are exact
- A fresh engine per test (no shared state between tests)
"""
import pytest

from perfwatch.telemetry.engine import PerformanceEngine
from perfwatch.telemetry.models import CATEGORY_CUSTOM, UNIT_MS, Sample


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: float = 1000.0, wall_start: float = 1_700_000_000_000.0):
        self.monotonic = start
        self.wall = wall_start

    def now(self) -> float:
        return self.monotonic

    def wall_time(self) -> float:
        return self.wall

    def advance(self, ms: float) -> None:
        self.monotonic += ms
        self.wall += ms


def make_sample(
    name: str = "test-metric",
    value: float = 100.0,
    unit: str = UNIT_MS,
    category: str = CATEGORY_CUSTOM,
    timestamp: float = 0.0,
) -> Sample:
    return Sample(name=name, value=value, unit=unit, timestamp=timestamp, category=category)


@pytest.fixture
def clock():
    """Manual clock shared by the engine under test."""
    return ManualClock()


@pytest.fixture
def engine(clock):
    """Fresh engine with a manual clock and no memory probe."""
    engine = PerformanceEngine(clock=clock, memory_probe=None)
    yield engine
    engine.reset()
