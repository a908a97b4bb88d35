# FILE: assistant_hub/adapters/registry.py
"""
Adapter Registry - live set of mini-app adapters plus a short-TTL cache of
each adapter's context snapshot.

- Snapshots are cached per adapter for CacheConfig.snapshot_ttl_s (5 s).
- An adapter-pushed update invalidates only that adapter's entry.
- An adapter whose get_context_data() raises is logged and left out of that
  round; it never aborts get_all_app_data().
- subscribe() fires immediately with the current snapshot and again on every
  registration change or adapter-pushed update.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from assistant_hub.adapters.base import (
    AdapterCapabilities,
    AppContextData,
    Unsubscribe,
    resolve,
)
from assistant_hub.scoring.cache import Clock, now_ms
from assistant_hub.scoring.confidence_config import get_config

logger = logging.getLogger(__name__)


@dataclass
class DashboardSnapshot:
    """Context data for every adapter that answered this round."""
    apps: Dict[str, AppContextData] = field(default_factory=dict)
    active_apps: List[str] = field(default_factory=list)
    last_updated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apps": {name: data.to_dict() for name, data in self.apps.items()},
            "active_apps": list(self.active_apps),
            "last_updated": self.last_updated,
        }


@dataclass
class RegisteredAdapter:
    adapter: Any
    capabilities: AdapterCapabilities
    unsubscribe: Optional[Unsubscribe] = None


@dataclass
class _SnapshotEntry:
    data: AppContextData
    timestamp: float


Listener = Callable[[DashboardSnapshot], None]


def _coerce_context(adapter: Any, raw: Any) -> AppContextData:
    if isinstance(raw, AppContextData):
        return raw
    if isinstance(raw, dict):
        values = dict(raw)
        values.setdefault("app_name", adapter.app_name)
        values.setdefault("display_name", adapter.display_name)
        return AppContextData(**values)
    raise TypeError(f"get_context_data() returned {type(raw).__name__}")


class AdapterRegistry:
    """Owns registered adapters and their snapshot cache."""

    def __init__(self, snapshot_ttl_s: float = None, clock: Clock = time.time):
        self._snapshot_ttl_s = (
            snapshot_ttl_s if snapshot_ttl_s is not None
            else get_config().cache.snapshot_ttl_s
        )
        self._clock = clock
        self._adapters: Dict[str, RegisteredAdapter] = {}
        self._cache: Dict[str, _SnapshotEntry] = {}
        self._listeners: List[Listener] = []

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_adapter(self, adapter: Any) -> AdapterCapabilities:
        """
        Register (or replace) an adapter.

        Raises AdapterRegistrationError if the adapter lacks the required
        contract.
        """
        capabilities = AdapterCapabilities.detect(adapter)
        name = adapter.app_name

        if name in self._adapters:
            self._release(name)

        entry = RegisteredAdapter(adapter=adapter, capabilities=capabilities)
        if capabilities.subscribe:
            try:
                entry.unsubscribe = adapter.subscribe(lambda _data, _name=name: self._on_adapter_update(_name))
            except Exception:
                logger.exception(f"[registry] subscribe failed for {name}")

        self._adapters[name] = entry
        self._cache.pop(name, None)
        logger.info(f"[registry] registered {name} capabilities={capabilities.to_list()}")
        self._notify_listeners()
        return capabilities

    def unregister_adapter(self, app_name: str) -> bool:
        if app_name not in self._adapters:
            return False
        self._release(app_name)
        logger.info(f"[registry] unregistered {app_name}")
        self._notify_listeners()
        return True

    def _release(self, app_name: str) -> None:
        entry = self._adapters.pop(app_name)
        self._cache.pop(app_name, None)
        if entry.unsubscribe:
            try:
                entry.unsubscribe()
            except Exception:
                logger.exception(f"[registry] unsubscribe failed for {app_name}")

    def _on_adapter_update(self, app_name: str) -> None:
        self.invalidate(app_name)
        self._notify_listeners()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_adapter(self, app_name: str) -> Optional[Any]:
        entry = self._adapters.get(app_name)
        return entry.adapter if entry else None

    def get_capabilities(self, app_name: str) -> Optional[AdapterCapabilities]:
        entry = self._adapters.get(app_name)
        return entry.capabilities if entry else None

    def adapters(self) -> List[Any]:
        return [entry.adapter for entry in self._adapters.values()]

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, app_name: str) -> bool:
        return app_name in self._adapters

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def get_app_data(self, app_name: str) -> Optional[AppContextData]:
        """Cached or fresh snapshot for one adapter; None if unknown or failing."""
        entry = self._adapters.get(app_name)
        if entry is None:
            return None

        cached = self._get_cached(app_name)
        if cached is not None:
            return cached

        try:
            data = _coerce_context(entry.adapter, entry.adapter.get_context_data())
        except Exception:
            logger.error(f"[registry] get_context_data failed for {app_name}", exc_info=True)
            return None

        self._cache[app_name] = _SnapshotEntry(data=data, timestamp=self._clock())
        return data

    def get_all_app_data(self) -> DashboardSnapshot:
        snapshot = DashboardSnapshot(last_updated=now_ms(self._clock))
        for name in list(self._adapters):
            data = self.get_app_data(name)
            if data is None:
                continue
            snapshot.apps[name] = data
            if data.is_active:
                snapshot.active_apps.append(name)
        return snapshot

    def invalidate(self, app_name: str = None) -> None:
        if app_name is None:
            self._cache.clear()
        else:
            self._cache.pop(app_name, None)

    def _get_cached(self, app_name: str) -> Optional[AppContextData]:
        entry = self._cache.get(app_name)
        if entry is None:
            return None
        if self._clock() - entry.timestamp > self._snapshot_ttl_s:
            del self._cache[app_name]
            return None
        return entry.data

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find_apps_for_query(self, query: str) -> List[Any]:
        """Adapters whose can_answer(query) is true. Failures count as False."""
        found = []
        for name, entry in self._adapters.items():
            try:
                if entry.adapter.can_answer(query):
                    found.append(entry.adapter)
            except Exception:
                logger.error(f"[registry] can_answer failed for {name}", exc_info=True)
        return found

    async def search_all_apps(self, query: str) -> List[Dict[str, Any]]:
        """Run search() on every searchable adapter concurrently."""
        searchable = [
            entry.adapter for entry in self._adapters.values()
            if entry.capabilities.search
        ]

        async def _search(adapter: Any) -> List[Any]:
            try:
                return list(await resolve(adapter.search(query)) or [])
            except Exception:
                logger.error(f"[registry] search failed for {adapter.app_name}", exc_info=True)
                return []

        results = await asyncio.gather(*[_search(a) for a in searchable])
        return [
            {"app_name": adapter.app_name, "results": found}
            for adapter, found in zip(searchable, results)
            if found
        ]

    def get_all_keywords(self) -> Dict[str, List[str]]:
        keywords = {}
        for name, entry in self._adapters.items():
            try:
                keywords[name] = list(entry.adapter.get_keywords())
            except Exception:
                logger.error(f"[registry] get_keywords failed for {name}", exc_info=True)
                keywords[name] = []
        return keywords

    def get_context_summary(self) -> str:
        """One line per active or summarised app, for prompt context."""
        lines = [
            f"{data.display_name}: {data.summary}"
            for data in self.get_all_app_data().apps.values()
            if data.is_active or data.summary
        ]
        if not lines:
            return "No active dashboard apps"
        return "Dashboard Apps:\n" + "\n".join(lines)

    def get_detailed_context(self, app_names: List[str] = None) -> str:
        snapshot = self.get_all_app_data()
        names = app_names if app_names is not None else list(snapshot.apps)

        blocks = []
        for name in names:
            data = snapshot.apps.get(name)
            if data is None:
                continue
            block = f"\n{data.display_name.upper()}:"
            block += f"\n- Status: {'Active' if data.is_active else 'Inactive'}"
            if data.summary:
                block += f"\n- {data.summary}"
            if data.capabilities:
                block += f"\n- Can help with: {', '.join(data.capabilities)}"
            blocks.append(block)
        return "\n".join(blocks)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Listener) -> Unsubscribe:
        self._listeners.append(callback)
        self._call_listener(callback, self.get_all_app_data())

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _notify_listeners(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_all_app_data()
        for listener in list(self._listeners):
            self._call_listener(listener, snapshot)

    @staticmethod
    def _call_listener(listener: Listener, snapshot: DashboardSnapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("[registry] listener raised")

    def destroy(self) -> None:
        for name in list(self._adapters):
            self._release(name)
        self._cache.clear()
        self._listeners.clear()


__all__ = [
    "DashboardSnapshot",
    "RegisteredAdapter",
    "AdapterRegistry",
]
