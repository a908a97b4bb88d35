# FILE: assistant_hub/routing/__init__.py
"""
Query routing. The FastAPI routes live in assistant_hub.routing.router.
"""

from assistant_hub.routing.core import QueryRouter, build_system_prompt
from assistant_hub.routing.schemas import RouteMode, RouteResult

__all__ = [
    "QueryRouter",
    "build_system_prompt",
    "RouteMode",
    "RouteResult",
]
