"""
Budget monitoring.

Every sample the active recorder stores is passed to BudgetMonitor.inspect.
If budget alerts are enabled and the sample's value exceeds its budget, a
BudgetViolation is dispatched synchronously to every subscriber, in
registration order. A failing subscriber is logged and skipped; it never
stops delivery to the others and never reaches the code that recorded the
sample.
"""

import threading
from collections import deque
from typing import Callable, Deque, Dict, List, Mapping, Optional, Tuple

from perfwatch.config.settings import Settings, get_settings
from perfwatch.core.logging import get_logger
from perfwatch.core.metrics import track_budget_violation, track_subscriber_error
from perfwatch.telemetry.models import BudgetViolation, Sample

logger = get_logger(__name__)

ViolationCallback = Callable[[BudgetViolation], None]


class BudgetMonitor:
    """Threshold-violation detector with subscriber dispatch."""

    def __init__(
        self,
        budgets: Optional[Mapping[str, float]] = None,
        category_budgets: Optional[Mapping[str, float]] = None,
        enabled: bool = False,
        lock: Optional[threading.RLock] = None,
    ):
        self._budgets: Dict[str, float] = dict(budgets or {})
        self._category_budgets: Dict[str, float] = dict(category_budgets or {})
        self._enabled = enabled
        self._subscribers: List[ViolationCallback] = []
        self._lock = lock or threading.RLock()

    # ========================================
    # Configuration
    # ========================================

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable_budget_alerts(self, enabled: bool) -> None:
        with self._lock:
            self._enabled = enabled
        logger.info("Budget alerts toggled", enabled=enabled)

    def set_budget(self, name: str, budget: float) -> None:
        with self._lock:
            self._budgets[name] = budget

    def set_category_budget(self, category: str, budget: float) -> None:
        with self._lock:
            self._category_budgets[category] = budget

    def remove_budget(self, name: str) -> None:
        with self._lock:
            self._budgets.pop(name, None)

    def _lookup(self, sample: Sample) -> Optional[Tuple[str, float]]:
        """Matching budget key and threshold: the sample name first, then its category."""
        if sample.name in self._budgets:
            return sample.name, self._budgets[sample.name]
        if sample.category in self._category_budgets:
            return f"category:{sample.category}", self._category_budgets[sample.category]
        return None

    def budget_for(self, sample: Sample) -> Optional[float]:
        match = self._lookup(sample)
        return match[1] if match is not None else None

    # ========================================
    # Subscription
    # ========================================

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def on_budget_violation(self, callback: ViolationCallback) -> Callable[[], None]:
        """
        Register a violation subscriber.

        Returns:
            A function that unsubscribes the callback. Calling it more than
            once is harmless.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers.remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    # ========================================
    # Detection
    # ========================================

    def inspect(self, sample: Sample) -> Optional[BudgetViolation]:
        """Check a freshly stored sample and notify subscribers on violation."""
        if not self._enabled:
            return None

        match = self._lookup(sample)
        if match is None or sample.value <= match[1]:
            return None

        budget_key, budget = match
        violation = BudgetViolation.for_sample(sample, budget)
        track_budget_violation(budget_key)
        logger.warning(
            "Performance budget exceeded",
            metric_name=sample.name,
            budget_key=budget_key,
            value=sample.value,
            budget=budget,
            exceeded=violation.exceeded,
        )
        self._dispatch(violation)
        return violation

    def _dispatch(self, violation: BudgetViolation) -> None:
        # Copy so callbacks may unsubscribe during delivery
        for callback in list(self._subscribers):
            try:
                callback(violation)
            except Exception:
                track_subscriber_error()
                logger.exception(
                    "Budget violation subscriber failed",
                    metric_name=violation.metric.name,
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                )


class ViolationHistory:
    """
    Caller-owned bounded history of budget violations.

    Instances are callable, so they can be registered directly:

        history = ViolationHistory(max_violations=50)
        unsubscribe = engine.on_budget_violation(history)
    """

    def __init__(self, max_violations: int = 50):
        self._violations: Deque[BudgetViolation] = deque(maxlen=max_violations)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ViolationHistory":
        settings = settings or get_settings()
        return cls(max_violations=settings.max_violations)

    def __call__(self, violation: BudgetViolation) -> None:
        self._violations.append(violation)

    def __len__(self) -> int:
        return len(self._violations)

    @property
    def violations(self) -> List[BudgetViolation]:
        return list(self._violations)

    def count_for(self, probe_name: str) -> int:
        """Violations whose metric name contains probe_name (case-insensitive)."""
        needle = probe_name.lower()
        return sum(1 for v in self._violations if needle in v.metric.name.lower())

    def clear(self) -> None:
        self._violations.clear()
