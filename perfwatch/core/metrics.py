from prometheus_client import Counter, Gauge, Info, CollectorRegistry, generate_latest
from prometheus_client.multiprocess import MultiProcessCollector
import os


registry = CollectorRegistry()
if os.getenv('prometheus_multiproc_dir'):
    MultiProcessCollector(registry)


samples_recorded_total = Counter(
    'perfwatch_samples_recorded_total',
    'Total samples appended to the metric store',
    ['category'],
    registry=registry
)

samples_evicted_total = Counter(
    'perfwatch_samples_evicted_total',
    'Samples evicted from the metric store at capacity',
    registry=registry
)

store_size = Gauge(
    'perfwatch_store_size',
    'Samples currently retained by the most recently updated store',
    registry=registry
)

budget_violations_total = Counter(
    'perfwatch_budget_violations_total',
    'Total budget violations detected, by the budget key that matched',
    ['budget'],
    registry=registry
)

subscriber_errors_total = Counter(
    'perfwatch_subscriber_errors_total',
    'Budget violation subscribers that raised during dispatch',
    registry=registry
)

regressions_detected_total = Counter(
    'perfwatch_regressions_detected_total',
    'Total performance regressions detected against a baseline',
    ['metric', 'severity'],
    registry=registry
)

engine_info = Info(
    'perfwatch_engine',
    'Performance telemetry engine information',
    registry=registry
)


def track_sample_recorded(category: str, store_length: int):
    samples_recorded_total.labels(category=category).inc()
    store_size.set(store_length)


def track_sample_evicted():
    samples_evicted_total.inc()


def track_budget_violation(budget_key: str):
    budget_violations_total.labels(budget=budget_key).inc()


def track_subscriber_error():
    subscriber_errors_total.inc()


def track_regression(metric: str, severity: str):
    regressions_detected_total.labels(metric=metric, severity=severity).inc()


def get_metrics() -> bytes:
    return generate_latest(registry)


def set_engine_info(version: str, capacity: int):
    engine_info.info({
        'version': version,
        'capacity': str(capacity)
    })
