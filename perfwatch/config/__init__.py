"""Engine configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Recording toggle and store capacity
  - Budget tables and regression thresholds
  - Logging level and renderer
  - Loaded from .env file via pydantic-settings
"""
from perfwatch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
