"""
Performance telemetry engine.

PerformanceEngine is the explicit context object handed to every
instrumentation call site. It owns the metric store, the mark table, the
budget monitor and the regression detector, and exposes the full recording,
subscription and query surface. Construct one per process (or per test) and
reset it explicitly; there is no hidden module-level instance.

All mutation paths run under one re-entrant lock, so a host with several
threads keeps insertion order and the guarantee that a recorded sample is
queryable, and any violation callback has fired, before the recording call
returns. Budget subscribers run inside the lock on the recording thread and
may call back into the engine.
"""

import threading
from datetime import datetime, timezone
from typing import (
    Any,
    AsyncContextManager,
    Awaitable,
    Callable,
    ContextManager,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from perfwatch.config.settings import Settings, get_settings
from perfwatch.core.logging import get_logger
from perfwatch.core.metrics import set_engine_info
from perfwatch.telemetry.budget import BudgetMonitor, ViolationCallback, ViolationHistory
from perfwatch.telemetry.clock import Clock, SystemClock
from perfwatch.telemetry.models import (
    CATEGORY_CUSTOM,
    CATEGORY_INTERACTION,
    CATEGORY_RESOURCE,
    UNIT_BYTES,
    UNIT_MS,
    BaselineMetrics,
    PerformanceAggregates,
    PerformanceReport,
    PerformanceSummary,
    ProbeMetrics,
    RegressionAlert,
    Sample,
    WebVitals,
)
from perfwatch.telemetry.recorder import NULL_RECORDER, ActiveRecorder, MarkTable, Recorder
from perfwatch.telemetry.regression import (
    RegressionDetector,
    RegressionThresholds,
    collect_aggregates,
)
from perfwatch.telemetry.report import ReportAggregator, VitalsProvider
from perfwatch.telemetry.resources import process_memory_usage
from perfwatch.telemetry.store import DEFAULT_CAPACITY, MetricStore
from perfwatch.telemetry.timer import MarkTimer

logger = get_logger(__name__)

T = TypeVar("T")

MemoryProbe = Callable[[], Optional[float]]


class PerformanceEngine:
    """In-process performance telemetry and regression detection."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        enabled: bool = True,
        clock: Optional[Clock] = None,
        vitals_provider: Optional[VitalsProvider] = None,
        memory_probe: Optional[MemoryProbe] = process_memory_usage,
        budgets: Optional[Mapping[str, float]] = None,
        category_budgets: Optional[Mapping[str, float]] = None,
        budget_alerts_enabled: bool = False,
        thresholds: Optional[RegressionThresholds] = None,
        probe_names: Sequence[str] = (),
    ):
        """
        Initialize the engine.

        Args:
            capacity: Maximum samples retained by the metric store
            enabled: Whether recording starts enabled
            clock: Clock source (monotonic durations, wall-clock timestamps)
            vitals_provider: Callable returning host-supplied web vitals
            memory_probe: Callable returning process memory in bytes, or None
            budgets: Budget thresholds keyed by metric name
            category_budgets: Budget thresholds keyed by category
            budget_alerts_enabled: Whether budget checks start enabled
            thresholds: Regression severity thresholds
            probe_names: Probes summarized when summarize() gets none
        """
        self._lock = threading.RLock()
        self._clock = clock or SystemClock()
        self._memory_probe = memory_probe
        self._probe_names = tuple(probe_names)

        self._store = MetricStore(capacity)
        self._marks = MarkTable()
        self._budget_monitor = BudgetMonitor(
            budgets=budgets,
            category_budgets=category_budgets,
            enabled=budget_alerts_enabled,
            lock=self._lock,
        )
        self._active_recorder = ActiveRecorder(
            self._store, self._marks, self._clock, self._budget_monitor.inspect
        )
        self._recorder: Recorder = self._active_recorder if enabled else NULL_RECORDER

        self._timer = MarkTimer(lambda: self._recorder, self._clock, self._lock)
        self._aggregator = ReportAggregator(self._store, self._clock, vitals_provider)
        self._detector = RegressionDetector(thresholds, self._clock, self._lock)

        set_engine_info(version="1.0.0", capacity=capacity)
        logger.info("Performance engine initialized", capacity=capacity, enabled=enabled)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        **overrides: Any,
    ) -> "PerformanceEngine":
        """Create an engine from application settings."""
        settings = settings or get_settings()
        options = dict(
            capacity=settings.capacity,
            enabled=settings.enabled,
            budgets=settings.budgets,
            category_budgets=settings.category_budgets,
            budget_alerts_enabled=settings.budget_alerts_enabled,
            thresholds=RegressionThresholds(
                warning_threshold=settings.regression_warning_threshold,
                critical_threshold=settings.regression_critical_threshold,
                min_samples=settings.regression_min_samples,
            ),
            probe_names=settings.probe_names,
        )
        options.update(overrides)
        return cls(**options)

    # ========================================
    # Component Access
    # ========================================

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def budget_monitor(self) -> BudgetMonitor:
        return self._budget_monitor

    @property
    def detector(self) -> RegressionDetector:
        return self._detector

    @property
    def capacity(self) -> int:
        return self._store.capacity

    # ========================================
    # Recording
    # ========================================

    @property
    def enabled(self) -> bool:
        return self._recorder.enabled

    def set_enabled(self, enabled: bool) -> None:
        """Swap between the active and null recorders. Reads are unaffected."""
        with self._lock:
            self._recorder = self._active_recorder if enabled else NULL_RECORDER
        logger.info("Performance recording toggled", enabled=enabled)

    def add_metric(self, sample: Sample) -> None:
        """Append a sample; dropped silently while disabled."""
        with self._lock:
            self._recorder.add_metric(sample)

    def record(
        self,
        name: str,
        value: float,
        unit: str = UNIT_MS,
        category: str = CATEGORY_CUSTOM,
    ) -> None:
        """Record a value under name, stamped with the current wall time."""
        if not self._recorder.enabled:
            return
        self.add_metric(
            Sample(
                name=name,
                value=value,
                unit=unit,
                timestamp=self._clock.wall_time(),
                category=category,
            )
        )

    def record_interaction(self, name: str, duration: float) -> None:
        """Record a user interaction timing in ms."""
        self.record(name, duration, unit=UNIT_MS, category=CATEGORY_INTERACTION)

    def record_memory_usage(self) -> Optional[float]:
        """Record process memory as a bytes sample. Returns the value recorded."""
        memory = self.memory_usage()
        if memory is not None:
            self.record("memory-usage", memory, unit=UNIT_BYTES, category=CATEGORY_RESOURCE)
        return memory

    def start_mark(self, name: str) -> None:
        self._timer.start_mark(name)

    def end_mark(self, name: str) -> float:
        return self._timer.end_mark(name)

    def measure_sync(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return self._timer.measure_sync(name, fn, *args, **kwargs)

    async def measure_async(
        self,
        name: str,
        operation: Union[Callable[..., Awaitable[T]], Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        return await self._timer.measure_async(name, operation, *args, **kwargs)

    def measure(self, name: str) -> ContextManager[None]:
        return self._timer.measure(name)

    def measure_async_block(self, name: str) -> AsyncContextManager[None]:
        return self._timer.measure_async_block(name)

    def clear(self) -> None:
        """Drop all samples and pending marks, whether enabled or not."""
        with self._lock:
            self._store.clear()
            self._marks.clear()

    def reset(self) -> None:
        """Clear samples and marks and forget the baseline."""
        with self._lock:
            self.clear()
            self._detector.clear_baseline()

    # ========================================
    # Budget Monitoring
    # ========================================

    def enable_budget_alerts(self, enabled: bool) -> None:
        self._budget_monitor.enable_budget_alerts(enabled)

    def set_budget(self, name: str, budget: float) -> None:
        self._budget_monitor.set_budget(name, budget)

    def set_category_budget(self, category: str, budget: float) -> None:
        self._budget_monitor.set_category_budget(category, budget)

    def on_budget_violation(self, callback: ViolationCallback) -> Callable[[], None]:
        return self._budget_monitor.on_budget_violation(callback)

    # ========================================
    # Queries
    # ========================================

    def get_metrics(self) -> List[Sample]:
        return self._store.snapshot()

    def get_metrics_by_category(self, category: str) -> List[Sample]:
        return self._store.by_category(category)

    def get_average_duration(self, name: str) -> float:
        return self._aggregator.get_average_duration(name)

    def web_vitals(self) -> WebVitals:
        return self._aggregator.web_vitals()

    def memory_usage(self) -> Optional[float]:
        if self._memory_probe is None:
            return None
        return self._memory_probe()

    def generate_report(self) -> PerformanceReport:
        return self._aggregator.generate_report()

    def probe_metrics(
        self,
        probe_names: Sequence[str],
        violations: Optional[ViolationHistory] = None,
    ) -> List[ProbeMetrics]:
        return self._aggregator.probe_metrics(probe_names, violations)

    def summarize(
        self,
        probe_names: Optional[Sequence[str]] = None,
        violations: Optional[ViolationHistory] = None,
    ) -> PerformanceSummary:
        if probe_names is None:
            probe_names = self._probe_names
        return self._aggregator.summarize(probe_names, violations, self.memory_usage())

    def export_report(
        self,
        probe_names: Optional[Sequence[str]] = None,
        violations: Optional[ViolationHistory] = None,
    ) -> Dict[str, Any]:
        """
        Full report plus summary as plain data, ready for JSON encoding.

        Returns:
            The report fields, a "summary" entry and an ISO-8601 "exported_at"
            taken from the engine clock.
        """
        data = self.generate_report().to_dict()
        data["summary"] = self.summarize(probe_names, violations).to_dict()
        data["exported_at"] = datetime.fromtimestamp(
            self._clock.wall_time() / 1000, tz=timezone.utc
        ).isoformat()
        return data

    # ========================================
    # Baselines and Regressions
    # ========================================

    def current_aggregates(self) -> PerformanceAggregates:
        return collect_aggregates(self.get_metrics(), self.web_vitals(), self.memory_usage())

    def capture_baseline(
        self, aggregates: Optional[PerformanceAggregates] = None
    ) -> BaselineMetrics:
        """Capture a baseline from the given aggregates, or the current ones."""
        return self._detector.capture_baseline(aggregates or self.current_aggregates())

    def clear_baseline(self) -> None:
        self._detector.clear_baseline()

    @property
    def baseline(self) -> Optional[BaselineMetrics]:
        return self._detector.baseline

    def compare_to_baseline(
        self, aggregates: Optional[PerformanceAggregates] = None
    ) -> List[RegressionAlert]:
        """Compare the given aggregates, or the current ones, to the baseline."""
        return self._detector.compare_to_baseline(aggregates or self.current_aggregates())
