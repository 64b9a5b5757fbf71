"""
Bounded, append-only sample storage.

Samples are kept oldest-first. Once the store holds ``capacity`` samples,
each new append evicts the oldest one, so the store always retains the
most recent ``capacity`` samples.
"""

from collections import deque
from typing import Deque, List, Optional

from perfwatch.core.logging import get_logger
from perfwatch.core.metrics import track_sample_evicted, track_sample_recorded
from perfwatch.telemetry.models import Sample

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100


class MetricStore:
    """FIFO-evicting sample store.

    The store has no enabled flag of its own; suppressing writes while the
    engine is disabled is the recorder's job (see recorder.py).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: Sample) -> Optional[Sample]:
        """
        Append a sample, evicting the oldest one when full.

        Returns:
            The evicted sample, or None if nothing was evicted.
        """
        evicted = self._samples[0] if len(self._samples) == self._capacity else None
        self._samples.append(sample)

        track_sample_recorded(sample.category, len(self._samples))
        if evicted is not None:
            track_sample_evicted()
            logger.debug("Evicted oldest sample", name=evicted.name, capacity=self._capacity)

        return evicted

    def snapshot(self) -> List[Sample]:
        """All retained samples, oldest-first, as a new list."""
        return list(self._samples)

    def by_category(self, category: str) -> List[Sample]:
        return [s for s in self.snapshot() if s.category == category]

    def by_name(self, name: str) -> List[Sample]:
        return [s for s in self.snapshot() if s.name == name]

    def clear(self) -> None:
        self._samples.clear()
