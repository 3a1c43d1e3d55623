"""Configuration management for the Cascade engine.

Provides settings from environment variables (AppSettings) and logging setup.
"""

from .app_settings import AppSettings, get_settings
from .logging_config import configure_logging

__all__ = [
    "AppSettings",
    "configure_logging",
    "get_settings",
]
