"""
Tests for configuration, logging and metrics wiring.
"""

import structlog
import structlog.testing

from perfwatch.config.settings import Settings, get_settings
from perfwatch.core.logging import configure_logging, get_logger
from perfwatch.core.metrics import get_metrics
from perfwatch.telemetry.engine import PerformanceEngine
from tests.conftest import make_sample


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self):
        """Test default settings values."""
        settings = Settings(_env_file=None)

        assert settings.enabled is True
        assert settings.capacity == 100
        assert settings.budget_alerts_enabled is False
        assert settings.regression_warning_threshold == 20.0
        assert settings.regression_critical_threshold == 50.0
        assert settings.max_violations == 50
        assert settings.max_alerts == 20

    def test_env_prefix(self, monkeypatch):
        """Test overrides from PERFWATCH_ environment variables."""
        monkeypatch.setenv("PERFWATCH_CAPACITY", "25")
        monkeypatch.setenv("PERFWATCH_ENABLED", "false")
        monkeypatch.setenv("PERFWATCH_BUDGETS", '{"render": 16}')

        settings = Settings(_env_file=None)

        assert settings.capacity == 25
        assert settings.enabled is False
        assert settings.budgets == {"render": 16.0}

    def test_get_settings_is_cached(self):
        """Test that get_settings returns a cached instance."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()


class TestLogging:
    """Tests for structlog configuration."""

    def test_configure_logging(self):
        """Test that logging can be configured with the console renderer."""
        configure_logging(Settings(_env_file=None, log_level="DEBUG", log_json=False))
        try:
            logger = get_logger("perfwatch.test")
            logger.info("Configured", component="test")
        finally:
            structlog.reset_defaults()

    def test_violation_is_logged(self, clock):
        """Test that budget violations are logged as warnings."""
        engine = PerformanceEngine(clock=clock, memory_probe=None, budgets={"render": 50})
        engine.enable_budget_alerts(True)

        with structlog.testing.capture_logs() as logs:
            engine.add_metric(make_sample(name="render", value=80))

        events = [entry["event"] for entry in logs]
        assert "Performance budget exceeded" in events

    def test_subscriber_failure_is_logged(self, clock):
        """Test that a failing subscriber is logged with its traceback."""
        engine = PerformanceEngine(clock=clock, memory_probe=None, budgets={"render": 50})
        engine.enable_budget_alerts(True)

        def broken(violation):
            raise RuntimeError("boom")

        engine.on_budget_violation(broken)

        with structlog.testing.capture_logs() as logs:
            engine.add_metric(make_sample(name="render", value=80))

        failures = [e for e in logs if e["event"] == "Budget violation subscriber failed"]
        assert len(failures) == 1


class TestPrometheusMetrics:
    """Tests for the prometheus mirror of engine activity."""

    def test_exposition_contains_engine_counters(self, clock):
        """Test that engine activity shows up in the prometheus exposition."""
        engine = PerformanceEngine(clock=clock, memory_probe=None)
        engine.add_metric(make_sample(category="navigation"))

        output = get_metrics().decode()

        assert 'perfwatch_samples_recorded_total{category="navigation"}' in output
        assert "perfwatch_engine_info" in output
