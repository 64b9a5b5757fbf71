"""
Performance telemetry module - sample recording, budgets and regression detection.

ARCHITECTURE:
-------------
- models.py: Data models (samples, violations, baselines, alerts, reports)
- clock.py: Monotonic/wall clock sources
- store.py: Bounded FIFO metric store
- recorder.py: Active/null recording strategies and the mark table
- timer.py: Mark-based timing and measure wrappers
- budget.py: Budget monitor and violation history
- regression.py: Baseline capture, regression detection, alert log
- report.py: Reports, averages and per-probe aggregation
- resources.py: psutil-backed memory probe
- engine.py: PerformanceEngine, the context object tying it together
- instrumentation.py: Decorator and tracker helpers for call sites
"""

from perfwatch.telemetry.budget import BudgetMonitor, ViolationHistory
from perfwatch.telemetry.clock import Clock, SystemClock
from perfwatch.telemetry.engine import PerformanceEngine
from perfwatch.telemetry.models import (
    ActiveMark,
    BaselineMetrics,
    BudgetViolation,
    PerformanceAggregates,
    PerformanceReport,
    PerformanceSummary,
    ProbeMetrics,
    RegressionAlert,
    Sample,
    WebVitals,
)
from perfwatch.telemetry.regression import (
    AlertLog,
    RegressionDetector,
    RegressionThresholds,
    calculate_degradation,
    collect_aggregates,
)
from perfwatch.telemetry.store import MetricStore

__all__ = [
    # Engine
    "PerformanceEngine",
    "MetricStore",
    "BudgetMonitor",
    "ViolationHistory",
    "RegressionDetector",
    "RegressionThresholds",
    "AlertLog",
    "calculate_degradation",
    "collect_aggregates",
    # Clock
    "Clock",
    "SystemClock",
    # Models
    "ActiveMark",
    "BaselineMetrics",
    "BudgetViolation",
    "PerformanceAggregates",
    "PerformanceReport",
    "PerformanceSummary",
    "ProbeMetrics",
    "RegressionAlert",
    "Sample",
    "WebVitals",
]
