"""
Tests for the bounded metric store and engine-level recording.

Covers:
- FIFO eviction at capacity
- Category filtering and snapshot semantics
- Disabled-state no-ops and unconditional clear
"""

import pytest

from perfwatch.telemetry.models import Sample
from perfwatch.telemetry.store import DEFAULT_CAPACITY, MetricStore
from tests.conftest import make_sample


class TestMetricStore:
    """Tests for MetricStore."""

    def test_default_capacity_is_100(self):
        """Test the default store capacity."""
        assert MetricStore().capacity == DEFAULT_CAPACITY == 100

    def test_append_preserves_insertion_order(self):
        """Test that samples come back oldest-first."""
        store = MetricStore()
        for i in range(3):
            store.append(make_sample(name=f"metric-{i}", value=i))

        assert [s.name for s in store.snapshot()] == ["metric-0", "metric-1", "metric-2"]

    def test_length_never_exceeds_capacity(self):
        """Test that the store never grows past its capacity."""
        store = MetricStore(capacity=100)
        for i in range(150):
            store.append(make_sample(name=f"metric-{i}", value=i))
            assert len(store) <= 100

    def test_keeps_most_recent_samples(self):
        """Test that eviction drops the oldest samples first."""
        store = MetricStore(capacity=100)
        for i in range(150):
            store.append(make_sample(name=f"metric-{i}", value=i))

        retained = store.snapshot()
        assert len(retained) == 100
        assert retained[0].name == "metric-50"
        assert retained[-1].name == "metric-149"

    def test_append_returns_evicted_sample(self):
        """Test that append reports the evicted sample."""
        store = MetricStore(capacity=2)
        first = make_sample(name="first")
        assert store.append(first) is None
        assert store.append(make_sample(name="second")) is None
        assert store.append(make_sample(name="third")) is first

    def test_snapshot_is_a_copy(self):
        """Test that snapshots are detached from the store."""
        store = MetricStore()
        store.append(make_sample())

        snapshot = store.snapshot()
        snapshot.clear()

        assert len(store) == 1

    def test_by_category_exact_match(self):
        """Test exact category filtering in insertion order."""
        store = MetricStore()
        store.append(make_sample(name="nav-1", category="navigation"))
        store.append(make_sample(name="custom-1", category="custom"))
        store.append(make_sample(name="nav-2", category="navigation"))
        store.append(make_sample(name="nav-3", category="Navigation"))

        assert [s.name for s in store.by_category("navigation")] == ["nav-1", "nav-2"]

    def test_invalid_capacity(self):
        """Test that a capacity below one is rejected."""
        with pytest.raises(ValueError):
            MetricStore(capacity=0)


class TestSample:
    """Tests for the Sample construction contract."""

    def test_empty_name_rejected(self):
        """Test that a sample needs a name."""
        with pytest.raises(ValueError):
            Sample(name="", value=1.0)

    def test_negative_duration_rejected(self):
        """Test that durations cannot be negative."""
        with pytest.raises(ValueError):
            Sample(name="render", value=-1.0, unit="ms")

    def test_negative_count_allowed(self):
        """Test that count samples may be negative."""
        sample = Sample(name="delta", value=-3, unit="count")
        assert sample.value == -3

    def test_sample_is_immutable(self):
        """Test that samples are frozen."""
        sample = make_sample()
        with pytest.raises(AttributeError):
            sample.value = 5  # type: ignore[misc]


class TestEngineRecording:
    """Tests for add_metric / get_metrics on the engine."""

    def test_add_and_retrieve(self, engine):
        """Test recording and reading samples through the engine."""
        engine.add_metric(make_sample(name="test-metric", value=100))

        metrics = engine.get_metrics()
        assert len(metrics) == 1
        assert metrics[0].name == "test-metric"
        assert metrics[0].value == 100

    def test_get_metrics_by_category(self, engine):
        """Test category filtering through the engine."""
        engine.add_metric(make_sample(name="nav-metric", value=50, category="navigation"))
        engine.add_metric(make_sample(name="custom-metric", value=100, category="custom"))

        nav = engine.get_metrics_by_category("navigation")
        assert len(nav) == 1
        assert nav[0].name == "nav-metric"

    def test_capacity_enforced_through_engine(self, engine):
        """Test that the engine enforces store capacity."""
        for i in range(150):
            engine.add_metric(make_sample(name=f"metric-{i}", value=i))

        metrics = engine.get_metrics()
        assert len(metrics) == 100
        assert metrics[0].name == "metric-50"

    def test_disabled_drops_samples(self, engine):
        """Test that samples are dropped while disabled."""
        engine.set_enabled(False)
        engine.add_metric(make_sample())
        engine.record("other", 5)

        assert engine.get_metrics() == []

    def test_reads_work_while_disabled(self, engine):
        """Test that reads still work while disabled."""
        engine.add_metric(make_sample(name="kept"))
        engine.set_enabled(False)

        assert [s.name for s in engine.get_metrics()] == ["kept"]
        assert engine.get_average_duration("kept") == 100

    def test_reenable_resumes_recording(self, engine):
        """Test that re-enabling resumes recording."""
        engine.set_enabled(False)
        engine.set_enabled(True)
        engine.add_metric(make_sample())

        assert len(engine.get_metrics()) == 1
        assert engine.enabled is True

    def test_clear_when_enabled(self, engine):
        """Test clearing an enabled engine."""
        engine.add_metric(make_sample())
        engine.clear()
        assert len(engine.get_metrics()) == 0

    def test_clear_when_disabled(self, engine):
        """Test clearing a disabled engine."""
        engine.add_metric(make_sample())
        engine.set_enabled(False)
        engine.clear()
        assert len(engine.get_metrics()) == 0

    def test_record_stamps_wall_time(self, engine, clock):
        """Test that record() stamps samples with wall time."""
        engine.record("load", 12.5, unit="ms", category="navigation")

        sample = engine.get_metrics()[0]
        assert sample.timestamp == clock.wall
        assert sample.category == "navigation"

    def test_record_interaction(self, engine):
        """Test recording an interaction timing."""
        engine.record_interaction("save-click", 42)

        sample = engine.get_metrics_by_category("interaction")[0]
        assert sample.name == "save-click"
        assert sample.unit == "ms"
        assert sample.value == 42
