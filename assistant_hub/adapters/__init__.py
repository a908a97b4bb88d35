# FILE: assistant_hub/adapters/__init__.py
"""
Adapter contract and the live adapter registry.
"""

from assistant_hub.adapters.base import (
    AdapterCapabilities,
    AggregateableData,
    AggregateType,
    AppAdapter,
    AppContextData,
)
from assistant_hub.adapters.registry import AdapterRegistry, DashboardSnapshot

__all__ = [
    "AdapterCapabilities",
    "AggregateableData",
    "AggregateType",
    "AppAdapter",
    "AppContextData",
    "AdapterRegistry",
    "DashboardSnapshot",
]
