"""
Core Module - Configuration and dependency injection.

Service providers live in ``dionysus.core.dependencies``; they are not
re-exported here because the services import this package for settings.
"""

from dionysus.core.config import Settings, get_settings, settings

__all__ = [
    "Settings",
    "get_settings",
    "settings",
]
