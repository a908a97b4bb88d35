# FILE: config/__init__.py
"""Configuration package for the assistant hub.

Contains:
- settings.py: deployment settings read from HUB_* environment variables
"""

from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
