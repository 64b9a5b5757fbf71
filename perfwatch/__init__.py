"""perfwatch - in-process performance telemetry and regression detection."""
from perfwatch.telemetry import (
    BaselineMetrics,
    BudgetViolation,
    PerformanceEngine,
    PerformanceReport,
    RegressionAlert,
    Sample,
)

__version__ = "1.0.0"

__all__ = [
    "BaselineMetrics",
    "BudgetViolation",
    "PerformanceEngine",
    "PerformanceReport",
    "RegressionAlert",
    "Sample",
    "__version__",
]
