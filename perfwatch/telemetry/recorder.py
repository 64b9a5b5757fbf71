"""
Recording strategies.

The engine holds exactly one recorder at a time. ActiveRecorder writes to
the metric store and the mark table; NullRecorder implements the same
interface as no-ops returning sentinel values. Toggling the engine swaps
the recorder instead of branching on a flag at every call site.
"""

from typing import Callable, Dict, Optional, Protocol

from perfwatch.core.logging import get_logger
from perfwatch.telemetry.clock import Clock
from perfwatch.telemetry.models import CATEGORY_CUSTOM, UNIT_MS, ActiveMark, Sample
from perfwatch.telemetry.store import MetricStore

logger = get_logger(__name__)


class MarkTable:
    """Pending named timers, at most one per name (last start wins)."""

    def __init__(self) -> None:
        self._marks: Dict[str, ActiveMark] = {}

    def start(self, name: str, started_at: float) -> ActiveMark:
        mark = ActiveMark(name=name, started_at=started_at)
        self._marks[name] = mark
        return mark

    def pop(self, name: str) -> Optional[ActiveMark]:
        return self._marks.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._marks

    def __len__(self) -> int:
        return len(self._marks)

    def clear(self) -> None:
        self._marks.clear()


class Recorder(Protocol):
    """Interface shared by the active and null recorders."""

    enabled: bool

    def add_metric(self, sample: Sample) -> bool:
        """Record a sample. Returns True if it was stored."""
        ...

    def start_mark(self, name: str) -> None:
        ...

    def end_mark(self, name: str) -> float:
        """Close a mark and return its duration in ms, or 0 if nothing was recorded."""
        ...


class ActiveRecorder:
    """Recorder used while the engine is enabled."""

    enabled = True

    def __init__(
        self,
        store: MetricStore,
        marks: MarkTable,
        clock: Clock,
        on_recorded: Callable[[Sample], None],
    ):
        self._store = store
        self._marks = marks
        self._clock = clock
        self._on_recorded = on_recorded

    def add_metric(self, sample: Sample) -> bool:
        self._store.append(sample)
        # Runs after eviction, so listeners can already query the sample
        self._on_recorded(sample)
        return True

    def start_mark(self, name: str) -> None:
        self._marks.start(name, self._clock.now())

    def end_mark(self, name: str) -> float:
        mark = self._marks.pop(name)
        if mark is None:
            logger.debug("No start mark found", name=name)
            return 0.0

        duration = max(0.0, self._clock.now() - mark.started_at)
        self.add_metric(
            Sample(
                name=name,
                value=duration,
                unit=UNIT_MS,
                timestamp=self._clock.wall_time(),
                category=CATEGORY_CUSTOM,
            )
        )
        return duration


class NullRecorder:
    """Recorder used while the engine is disabled."""

    enabled = False

    def add_metric(self, sample: Sample) -> bool:
        return False

    def start_mark(self, name: str) -> None:
        return None

    def end_mark(self, name: str) -> float:
        return 0.0


NULL_RECORDER = NullRecorder()
