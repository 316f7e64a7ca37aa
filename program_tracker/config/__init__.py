"""Application configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Database URL, timezone used for day boundaries, store timeouts
  - Loaded from .env file via pydantic-settings
"""
from program_tracker.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
