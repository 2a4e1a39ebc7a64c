"""Settings for the judgeflow services."""

from .core import Settings, build_settings, load_settings, reset_settings_cache

__all__ = ["Settings", "build_settings", "load_settings", "reset_settings_cache"]
