"""Configuration management for JustId.

Usage:
    >>> from just_id.config import get_settings
    >>> settings = get_settings()
    >>> settings.probe_timeout_ms
    5000
"""

from just_id.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
