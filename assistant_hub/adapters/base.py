# FILE: assistant_hub/adapters/base.py
"""
Adapter contract between mini-apps and the routing core.

Every mini-app (notes, photos, pomodoro, ...) exposes one adapter. The
required surface is small:

    app_name, display_name, icon (optional)
    get_context_data() -> AppContextData
    can_answer(query) -> bool
    get_keywords() -> list[str]

Everything else is optional and detected once, at registration time, by
AdapterCapabilities.detect():

    subscribe(callback) -> unsubscribe
    async get_response(query) -> Optional[str]
    async search(query) -> list
    async get_confidence(query) -> float      # 0..1
    supports_aggregation() -> bool
    get_aggregate_data() -> list[AggregateableData]

Subclassing AppAdapter is convenient but not required.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from assistant_hub.errors import AdapterRegistrationError

Unsubscribe = Callable[[], None]


class AggregateType(str, Enum):
    """Kinds of quantifiable facts an adapter can contribute."""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    SCORE = "score"
    COUNT = "count"
    CUSTOM = "custom"


@dataclass
class AggregateableData:
    """One fact contributed to cross-app totals."""
    type: AggregateType
    count: int
    label: str
    app_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.type, AggregateType):
            self.type = AggregateType(self.type)


@dataclass
class AppContextData:
    """Snapshot of one adapter's state."""
    app_name: str
    display_name: str
    is_active: bool = False
    last_used: int = 0  # epoch ms
    summary: str = ""
    capabilities: List[str] = field(default_factory=list)
    data: Any = None
    icon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "display_name": self.display_name,
            "is_active": self.is_active,
            "last_used": self.last_used,
            "summary": self.summary,
            "capabilities": list(self.capabilities),
            "icon": self.icon,
        }


class AppAdapter(ABC):
    """Optional base class for adapters."""

    app_name: str = ""
    display_name: str = ""
    icon: Optional[str] = None

    @abstractmethod
    def get_context_data(self) -> AppContextData:
        ...

    @abstractmethod
    def can_answer(self, query: str) -> bool:
        ...

    @abstractmethod
    def get_keywords(self) -> List[str]:
        ...


_REQUIRED_METHODS = ("get_context_data", "can_answer", "get_keywords")


def _has_method(adapter: Any, name: str) -> bool:
    return callable(getattr(adapter, name, None))


@dataclass(frozen=True)
class AdapterCapabilities:
    """Which optional parts of the contract an adapter implements."""
    subscribe: bool = False
    response: bool = False
    search: bool = False
    confidence: bool = False
    aggregation: bool = False

    @classmethod
    def detect(cls, adapter: Any) -> "AdapterCapabilities":
        """
        Validate the required surface and record the optional one.

        Raises AdapterRegistrationError if a required member is missing.
        """
        name = getattr(adapter, "app_name", None)
        if not name or not isinstance(name, str):
            raise AdapterRegistrationError("adapter is missing a string app_name")
        if not getattr(adapter, "display_name", None):
            raise AdapterRegistrationError(f"{name}: adapter is missing display_name")
        missing = [m for m in _REQUIRED_METHODS if not _has_method(adapter, m)]
        if missing:
            raise AdapterRegistrationError(f"{name}: missing required methods {missing}")

        return cls(
            subscribe=_has_method(adapter, "subscribe"),
            response=_has_method(adapter, "get_response"),
            search=_has_method(adapter, "search"),
            confidence=_has_method(adapter, "get_confidence"),
            aggregation=(
                _has_method(adapter, "supports_aggregation")
                and _has_method(adapter, "get_aggregate_data")
            ),
        )

    def to_list(self) -> List[str]:
        return [k for k, v in self.__dict__.items() if v]


async def resolve(value: Union[Any, Awaitable[Any]]) -> Any:
    """Await `value` if the adapter handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = [
    "Unsubscribe",
    "AggregateType",
    "AggregateableData",
    "AppContextData",
    "AppAdapter",
    "AdapterCapabilities",
    "resolve",
]
