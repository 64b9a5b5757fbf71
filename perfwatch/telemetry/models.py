"""
Data models for the telemetry engine.

Plain dataclasses with no engine behavior attached:
- Samples and active marks (recording)
- Budget violations (threshold monitoring)
- Aggregates, baselines and regression alerts (regression detection)
- Web vitals, reports and summaries (reporting)
"""

from dataclasses import asdict, dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

# ========================================
# Units and Categories
# ========================================

UNIT_MS = "ms"
UNIT_SECONDS = "s"
UNIT_COUNT = "count"
UNIT_BYTES = "bytes"

# Units whose values are durations or sizes and can never be negative
NON_NEGATIVE_UNITS = frozenset({UNIT_MS, UNIT_SECONDS, UNIT_BYTES})

CATEGORY_NAVIGATION = "navigation"
CATEGORY_RESOURCE = "resource"
CATEGORY_INTERACTION = "interaction"
CATEGORY_CUSTOM = "custom"

SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"


# ========================================
# Recording
# ========================================


@dataclass(frozen=True)
class Sample:
    """Represents a single recorded measurement."""

    name: str
    value: float
    unit: str = UNIT_MS
    timestamp: float = 0.0  # Wall-clock ms since epoch
    category: str = CATEGORY_CUSTOM

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Sample name must be non-empty")
        if self.unit in NON_NEGATIVE_UNITS and self.value < 0:
            raise ValueError(
                f"Sample '{self.name}' has negative value {self.value} for unit '{self.unit}'"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ActiveMark:
    """A pending named timer started on the monotonic clock."""

    name: str
    started_at: float


# ========================================
# Budget Monitoring
# ========================================


@dataclass(frozen=True)
class BudgetViolation:
    """A sample whose value exceeded its configured budget."""

    metric: Sample
    budget: float
    exceeded: float

    @classmethod
    def for_sample(cls, sample: Sample, budget: float) -> "BudgetViolation":
        return cls(metric=sample, budget=budget, exceeded=sample.value - budget)


# ========================================
# Baselines and Regressions
# ========================================


@dataclass(frozen=True)
class PerformanceAggregates:
    """Currently observable aggregate figures, the input to baseline comparison."""

    sample_count: int = 0
    avg_render_time: float = 0.0
    avg_interaction_time: float = 0.0
    page_load: float = 0.0
    fcp: float = 0.0
    tti: float = 0.0
    memory_usage: Optional[float] = None  # Bytes, None when the host cannot report it
    extra: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BaselineMetrics:
    """Frozen reference snapshot of aggregate performance figures."""

    timestamp: float
    sample_count: int
    avg_render_time: float
    avg_interaction_time: float
    page_load: float
    fcp: float
    tti: float
    memory_usage: Optional[float] = None
    extra: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only copy; the baseline must not change once captured
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_aggregates(
        cls, aggregates: PerformanceAggregates, timestamp: float
    ) -> "BaselineMetrics":
        return cls(
            timestamp=timestamp,
            sample_count=aggregates.sample_count,
            avg_render_time=aggregates.avg_render_time,
            avg_interaction_time=aggregates.avg_interaction_time,
            page_load=aggregates.page_load,
            fcp=aggregates.fcp,
            tti=aggregates.tti,
            memory_usage=aggregates.memory_usage,
            extra=dict(aggregates.extra),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["extra"] = dict(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaselineMetrics":
        return cls(
            timestamp=float(data["timestamp"]),
            sample_count=int(data.get("sample_count", 0)),
            avg_render_time=float(data.get("avg_render_time", 0.0)),
            avg_interaction_time=float(data.get("avg_interaction_time", 0.0)),
            page_load=float(data.get("page_load", 0.0)),
            fcp=float(data.get("fcp", 0.0)),
            tti=float(data.get("tti", 0.0)),
            memory_usage=data.get("memory_usage"),
            extra={k: float(v) for k, v in (data.get("extra") or {}).items()},
        )


@dataclass(frozen=True)
class RegressionAlert:
    """Degradation of one aggregate relative to the baseline."""

    id: str
    metric: str
    baseline: float
    current: float
    degradation: float  # Percentage
    severity: str  # "warning", "critical"
    timestamp: float
    acknowledged: bool = False


# ========================================
# Reporting
# ========================================


@dataclass(frozen=True)
class WebVitals:
    """Host-supplied page readiness figures in ms."""

    page_load: float = 0.0
    first_contentful_paint: float = 0.0
    time_to_interactive: float = 0.0
    largest_contentful_paint: float = 0.0
    first_input_delay: float = 0.0
    cumulative_layout_shift: float = 0.0


@dataclass
class PerformanceReport:
    """Read-only projection of the metric store plus host vitals."""

    page_load: float
    first_contentful_paint: float
    largest_contentful_paint: float
    first_input_delay: float
    cumulative_layout_shift: float
    time_to_interactive: float
    custom_metrics: List[Sample] = field(default_factory=list)
    averages: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_load": self.page_load,
            "first_contentful_paint": self.first_contentful_paint,
            "largest_contentful_paint": self.largest_contentful_paint,
            "first_input_delay": self.first_input_delay,
            "cumulative_layout_shift": self.cumulative_layout_shift,
            "time_to_interactive": self.time_to_interactive,
            "custom_metrics": [s.to_dict() for s in self.custom_metrics],
            "averages": dict(self.averages),
        }


@dataclass(frozen=True)
class ProbeMetrics:
    """Aggregated figures for one named instrumentation point."""

    name: str
    avg_render_time: float = 0.0
    total_renders: float = 0.0
    last_render_time: float = 0.0
    violations: int = 0


@dataclass
class PerformanceSummary:
    """Dashboard-style summary of the engine state."""

    total_metrics: int
    avg_interaction_time: float
    budget_violations: List[BudgetViolation]
    probe_metrics: List[ProbeMetrics]
    web_vitals: WebVitals
    memory_usage: Optional[float]
    last_updated: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
