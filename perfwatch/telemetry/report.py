"""
Read-only summaries over the metric store.

Nothing here mutates the store. Every query works on a snapshot and
returns zeros or empty collections when there is nothing to summarize.
"""

from typing import Callable, Dict, List, Optional, Sequence

from perfwatch.telemetry.budget import ViolationHistory
from perfwatch.telemetry.clock import Clock
from perfwatch.telemetry.models import (
    CATEGORY_INTERACTION,
    UNIT_COUNT,
    UNIT_MS,
    BudgetViolation,
    PerformanceReport,
    PerformanceSummary,
    ProbeMetrics,
    Sample,
    WebVitals,
)
from perfwatch.telemetry.store import MetricStore

VitalsProvider = Callable[[], WebVitals]


def no_vitals() -> WebVitals:
    """Vitals provider for hosts that report none."""
    return WebVitals()


def _average(samples: Sequence[Sample]) -> float:
    if not samples:
        return 0.0
    return sum(s.value for s in samples) / len(samples)


class ReportAggregator:
    """Turns the store contents into reports, averages and probe figures."""

    def __init__(
        self,
        store: MetricStore,
        clock: Clock,
        vitals_provider: Optional[VitalsProvider] = None,
    ):
        self._store = store
        self._clock = clock
        self._vitals_provider = vitals_provider or no_vitals

    def web_vitals(self) -> WebVitals:
        return self._vitals_provider()

    def get_average_duration(self, name: str) -> float:
        """Mean value of samples named exactly name, or 0 if there are none."""
        return _average(self._store.by_name(name))

    def averages(self, samples: Sequence[Sample]) -> Dict[str, float]:
        grouped: Dict[str, List[Sample]] = {}
        for sample in samples:
            grouped.setdefault(sample.name, []).append(sample)
        return {name: _average(group) for name, group in grouped.items()}

    def generate_report(self) -> PerformanceReport:
        samples = self._store.snapshot()
        vitals = self.web_vitals()

        return PerformanceReport(
            page_load=vitals.page_load,
            first_contentful_paint=vitals.first_contentful_paint,
            largest_contentful_paint=vitals.largest_contentful_paint,
            first_input_delay=vitals.first_input_delay,
            cumulative_layout_shift=vitals.cumulative_layout_shift,
            time_to_interactive=vitals.time_to_interactive,
            custom_metrics=samples,
            averages=self.averages(samples),
        )

    def probe_metrics(
        self,
        probe_names: Sequence[str],
        violations: Optional[ViolationHistory] = None,
    ) -> List[ProbeMetrics]:
        """
        Aggregate figures for each probe name.

        A sample belongs to a probe when its name contains the probe name,
        ignoring case. Render counts are running tallies kept by the caller,
        so the total is the largest count sample rather than their sum.
        """
        samples = self._store.snapshot()
        results = []

        for probe in probe_names:
            needle = probe.lower()
            matching = [s for s in samples if needle in s.name.lower()]
            timings = [s for s in matching if s.unit == UNIT_MS]
            counts = [s.value for s in matching if s.unit == UNIT_COUNT]

            results.append(
                ProbeMetrics(
                    name=probe,
                    avg_render_time=_average(timings),
                    total_renders=max(counts) if counts else 0.0,
                    last_render_time=timings[-1].value if timings else 0.0,
                    violations=violations.count_for(probe) if violations is not None else 0,
                )
            )

        return results

    def summarize(
        self,
        probe_names: Sequence[str] = (),
        violations: Optional[ViolationHistory] = None,
        memory_usage: Optional[float] = None,
    ) -> PerformanceSummary:
        samples = self._store.snapshot()
        interactions = [s for s in samples if s.category == CATEGORY_INTERACTION]
        budget_violations: List[BudgetViolation] = (
            violations.violations if violations is not None else []
        )

        return PerformanceSummary(
            total_metrics=len(samples),
            avg_interaction_time=_average(interactions),
            budget_violations=budget_violations,
            probe_metrics=self.probe_metrics(probe_names, violations),
            web_vitals=self.web_vitals(),
            memory_usage=memory_usage,
            last_updated=self._clock.wall_time(),
        )
