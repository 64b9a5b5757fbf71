"""
Baseline capture and regression detection.

A baseline is an immutable snapshot of PerformanceAggregates. Comparing the
current aggregates against it yields one RegressionAlert per aggregate whose
degradation reaches the warning threshold:

    degradation = (current - baseline) / baseline * 100

    degradation <  warning              -> no alert
    warning <= degradation < critical   -> "warning"
    degradation >= critical             -> "critical"

A zero baseline degrades by 0 if the current value is also zero and by
infinity otherwise.
"""

import math
import threading
import uuid
from collections import deque
from dataclasses import replace
from typing import Deque, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, model_validator

from perfwatch.config.settings import Settings, get_settings
from perfwatch.core.logging import get_logger
from perfwatch.core.metrics import track_regression
from perfwatch.telemetry.clock import Clock, SystemClock
from perfwatch.telemetry.models import (
    CATEGORY_INTERACTION,
    SEVERITY_CRITICAL,
    SEVERITY_WARNING,
    UNIT_MS,
    BaselineMetrics,
    PerformanceAggregates,
    RegressionAlert,
    Sample,
    WebVitals,
)

logger = get_logger(__name__)

# Attribute name and display label for each always-tracked aggregate
TRACKED_AGGREGATES: Tuple[Tuple[str, str], ...] = (
    ("avg_render_time", "Average Render Time"),
    ("avg_interaction_time", "Average Interaction Time"),
    ("page_load", "Page Load"),
    ("fcp", "First Contentful Paint"),
    ("tti", "Time to Interactive"),
)
MEMORY_USAGE_LABEL = "Memory Usage"


class RegressionThresholds(BaseModel):
    """Severity thresholds as percentage degradation."""

    warning_threshold: float = Field(default=20.0, ge=0, description="Degradation % for warning")
    critical_threshold: float = Field(default=50.0, ge=0, description="Degradation % for critical")
    min_samples: int = Field(default=0, ge=0, description="Samples required before alerting")

    @model_validator(mode="after")
    def check_ordering(self) -> "RegressionThresholds":
        if self.warning_threshold >= self.critical_threshold:
            raise ValueError("warning_threshold must be lower than critical_threshold")
        return self


def calculate_degradation(current: float, baseline: float) -> float:
    """Percentage change from baseline to current; positive means slower/larger."""
    if baseline == 0:
        if current == 0:
            return 0.0
        return math.copysign(math.inf, current)
    return ((current - baseline) / baseline) * 100


def classify_degradation(degradation: float, thresholds: RegressionThresholds) -> Optional[str]:
    if degradation >= thresholds.critical_threshold:
        return SEVERITY_CRITICAL
    if degradation >= thresholds.warning_threshold:
        return SEVERITY_WARNING
    return None


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def collect_aggregates(
    samples: Sequence[Sample],
    vitals: Optional[WebVitals] = None,
    memory_usage: Optional[float] = None,
) -> PerformanceAggregates:
    """
    Derive the aggregates compared against a baseline.

    Render time averages every ms sample whose name mentions "render";
    interaction time averages ms samples in the interaction category.
    """
    vitals = vitals or WebVitals()
    render_values = [s.value for s in samples if s.unit == UNIT_MS and "render" in s.name.lower()]
    interaction_values = [
        s.value for s in samples if s.category == CATEGORY_INTERACTION and s.unit == UNIT_MS
    ]

    return PerformanceAggregates(
        sample_count=len(samples),
        avg_render_time=_mean(render_values),
        avg_interaction_time=_mean(interaction_values),
        page_load=vitals.page_load,
        fcp=vitals.first_contentful_paint,
        tti=vitals.time_to_interactive,
        memory_usage=memory_usage,
    )


class RegressionDetector:
    """Holds the single active baseline and compares aggregates against it."""

    def __init__(
        self,
        thresholds: Optional[RegressionThresholds] = None,
        clock: Optional[Clock] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.thresholds = thresholds or RegressionThresholds()
        self._clock = clock or SystemClock()
        self._lock = lock or threading.RLock()
        self._baseline: Optional[BaselineMetrics] = None

    @property
    def baseline(self) -> Optional[BaselineMetrics]:
        return self._baseline

    def capture_baseline(self, aggregates: PerformanceAggregates) -> BaselineMetrics:
        """Snapshot aggregates as the new baseline, replacing any previous one."""
        baseline = BaselineMetrics.from_aggregates(aggregates, timestamp=self._clock.wall_time())
        with self._lock:
            self._baseline = baseline
        logger.info(
            "Performance baseline captured",
            sample_count=baseline.sample_count,
            avg_render_time=baseline.avg_render_time,
            fcp=baseline.fcp,
        )
        return baseline

    def restore_baseline(self, baseline: BaselineMetrics) -> None:
        """Install a baseline the caller persisted earlier."""
        with self._lock:
            self._baseline = baseline

    def clear_baseline(self) -> None:
        with self._lock:
            self._baseline = None

    def _pairs(
        self, baseline: BaselineMetrics, current: PerformanceAggregates
    ) -> Iterable[Tuple[str, str, float, float]]:
        for attr, label in TRACKED_AGGREGATES:
            yield attr, label, getattr(baseline, attr), getattr(current, attr)

        if baseline.memory_usage is not None and current.memory_usage is not None:
            yield "memory_usage", MEMORY_USAGE_LABEL, baseline.memory_usage, current.memory_usage

        for key in sorted(baseline.extra.keys() & current.extra.keys()):
            yield key, key, baseline.extra[key], current.extra[key]

    def compare_to_baseline(self, current: PerformanceAggregates) -> List[RegressionAlert]:
        """
        Compare current aggregates against the baseline.

        Returns:
            A fresh list of alerts; empty when no baseline is held or too few
            samples have been recorded.
        """
        baseline = self._baseline
        if baseline is None:
            return []
        if current.sample_count < self.thresholds.min_samples:
            return []

        now = self._clock.wall_time()
        alerts: List[RegressionAlert] = []

        for key, label, baseline_value, current_value in self._pairs(baseline, current):
            degradation = calculate_degradation(current_value, baseline_value)
            severity = classify_degradation(degradation, self.thresholds)
            if severity is None:
                continue

            alerts.append(
                RegressionAlert(
                    id=f"{key}-{uuid.uuid4().hex[:8]}",
                    metric=label,
                    baseline=baseline_value,
                    current=current_value,
                    degradation=degradation,
                    severity=severity,
                    timestamp=now,
                )
            )
            track_regression(label, severity)
            logger.warning(
                "Performance regression detected",
                metric_name=label,
                baseline=baseline_value,
                current=current_value,
                degradation=degradation,
                severity=severity,
            )

        return alerts


class AlertLog:
    """
    Caller-owned list of regression alerts.

    Merging replaces older alerts for the same metric and keeps the newest
    max_alerts entries.
    """

    def __init__(self, max_alerts: int = 20):
        self._max_alerts = max_alerts
        self._alerts: Deque[RegressionAlert] = deque(maxlen=max_alerts)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AlertLog":
        settings = settings or get_settings()
        return cls(max_alerts=settings.max_alerts)

    @property
    def alerts(self) -> List[RegressionAlert]:
        return list(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def merge(self, new_alerts: Sequence[RegressionAlert]) -> None:
        if not new_alerts:
            return
        replaced = {a.metric for a in new_alerts}
        kept = [a for a in self._alerts if a.metric not in replaced]
        self._alerts = deque(kept + list(new_alerts), maxlen=self._max_alerts)

    def acknowledge(self, alert_id: str) -> bool:
        """Mark one alert acknowledged. Returns False if the id is unknown."""
        found = False
        updated = []
        for alert in self._alerts:
            if alert.id == alert_id:
                alert = replace(alert, acknowledged=True)
                found = True
            updated.append(alert)
        self._alerts = deque(updated, maxlen=self._max_alerts)
        return found

    def acknowledge_all(self) -> None:
        self._alerts = deque(
            (replace(a, acknowledged=True) for a in self._alerts), maxlen=self._max_alerts
        )

    def clear(self) -> None:
        self._alerts.clear()

    @property
    def has_regression(self) -> bool:
        return any(not a.acknowledged for a in self._alerts)

    def status(self) -> str:
        """Overall status derived from unacknowledged alerts."""
        unacknowledged = [a for a in self._alerts if not a.acknowledged]
        if any(a.severity == SEVERITY_CRITICAL for a in unacknowledged):
            return "critical"
        if any(a.severity == SEVERITY_WARNING for a in unacknowledged):
            return "warning"
        return "healthy"
