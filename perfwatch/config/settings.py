"""Engine configuration settings."""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Recording
    enabled: bool = True
    capacity: int = 100

    # Budget monitoring (values in ms unless the sample unit says otherwise)
    budget_alerts_enabled: bool = False
    budgets: dict[str, float] = {}
    category_budgets: dict[str, float] = {}
    max_violations: int = 50  # Bounded violation history kept for summaries

    # Regression detection thresholds (percentage degradation)
    regression_warning_threshold: float = 20.0
    regression_critical_threshold: float = 50.0
    regression_min_samples: int = 0
    max_alerts: int = 20

    # Probe names aggregated in summaries
    probe_names: list[str] = []

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    class Config:
        env_prefix = "PERFWATCH_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
