# FILE: assistant_hub/semantic/index.py
"""
Semantic Index - per-adapter intent similarity on top of the similarity
service.

get_batch_confidence(query, intents) answers N intents with AT MOST ONE
service search: it fetches the top-K hits for the query and attributes each
hit to an intent through the document's "[Intent: <name>]" tag. An intent
with no tagged hit scores 0.

Health:
- The service is probed once (at construction when an event loop is
  running, otherwise on first use), bounded by a timeout.
- A failed probe marks the index unhealthy for its lifetime. Every call then
  returns 0 without touching the service.

Failures:
- A search error yields 0 for every affected intent, and 0 is still cached so
  an outage does not cause a retry storm within the cache TTL.

Cache: key "query::intent", TTL 5 min, max 1000 entries (see BoundedTTLCache).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from assistant_hub.scoring.cache import BoundedTTLCache, Clock
from assistant_hub.scoring.confidence_config import CacheConfig, get_config
from assistant_hub.semantic.intents import IntentCatalog, extract_intent
from config.settings import get_settings

logger = logging.getLogger(__name__)


def _hit_fields(hit: Any) -> Tuple[str, float]:
    if isinstance(hit, dict):
        return str(hit.get("content") or ""), float(hit.get("similarity") or 0.0)
    return str(getattr(hit, "content", "") or ""), float(getattr(hit, "similarity", 0.0) or 0.0)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class SemanticIndex:
    """Batched intent confidence with health gating and a per-intent cache."""

    def __init__(
        self,
        service: Any,
        catalog: IntentCatalog = None,
        search_limit: int = None,
        probe_timeout_s: float = None,
        cache: BoundedTTLCache = None,
        cache_config: CacheConfig = None,
        clock: Clock = time.time,
    ):
        settings = get_settings()
        cache_cfg = cache_config or get_config().cache

        self._service = service
        self.catalog = catalog
        self.search_limit = search_limit or settings.search_limit
        self.probe_timeout_s = (
            probe_timeout_s if probe_timeout_s is not None else settings.health_probe_timeout_s
        )
        self.cache: BoundedTTLCache[float] = cache or BoundedTTLCache(
            max_entries=cache_cfg.semantic_max_entries,
            ttl_s=cache_cfg.semantic_ttl_s,
            eviction_fraction=cache_cfg.eviction_fraction,
            clock=clock,
            name="semantic_cache",
        )

        self._healthy = False
        self._probe: Optional[asyncio.Task] = None
        self.search_calls = 0

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._probe = loop.create_task(self._probe_health())

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def _probe_health(self) -> bool:
        try:
            healthy = bool(await asyncio.wait_for(self._service.is_healthy(), self.probe_timeout_s))
        except asyncio.TimeoutError:
            logger.warning(f"[semantic] health probe timed out after {self.probe_timeout_s}s")
            healthy = False
        except Exception as e:
            logger.warning(f"[semantic] health probe failed: {e}")
            healthy = False

        self._healthy = healthy
        if not healthy:
            logger.warning("[semantic] similarity service unavailable; semantic scores disabled")
        return healthy

    async def wait_for_health_check(self) -> bool:
        """Run (or join) the one-off probe and return its result."""
        if self._probe is None:
            self._probe = asyncio.ensure_future(self._probe_health())
        return await asyncio.shield(self._probe)

    def is_healthy(self) -> bool:
        return self._healthy

    async def initialize(self) -> bool:
        """Probe the service and store the critical intents if it is up."""
        healthy = await self.wait_for_health_check()
        if healthy and self.catalog is not None:
            await self.catalog.initialize_intents()
        return healthy

    # -------------------------------------------------------------------------
    # Confidence
    # -------------------------------------------------------------------------

    @staticmethod
    def cache_key(query: str, intent: str) -> str:
        return f"{query}::{intent}"

    async def get_batch_confidence(self, query: str, intents: Iterable[str]) -> Dict[str, float]:
        ordered = list(dict.fromkeys(intents))
        results: Dict[str, float] = {}
        missing: List[str] = []

        for intent in ordered:
            cached = self.cache.get(self.cache_key(query, intent))
            if cached is not None:
                results[intent] = cached
            else:
                missing.append(intent)

        if not missing:
            return results

        if not await self.wait_for_health_check():
            for intent in missing:
                results[intent] = 0.0
            return {intent: results[intent] for intent in ordered}

        if self.catalog is not None:
            await self.catalog.ensure_intents_loaded(missing)

        scores = {intent: 0.0 for intent in missing}
        try:
            self.search_calls += 1
            hits = await self._service.search(query, self.search_limit)
            for hit in hits or []:
                content, similarity = _hit_fields(hit)
                intent = extract_intent(content)
                if intent in scores:
                    scores[intent] = max(scores[intent], _clamp(similarity))
        except Exception as e:
            logger.warning(f"[semantic] search failed for {len(missing)} intents: {e}")
            scores = {intent: 0.0 for intent in missing}

        for intent, score in scores.items():
            self.cache.set(self.cache_key(query, intent), score)
            results[intent] = score

        return {intent: results[intent] for intent in ordered}

    async def get_semantic_confidence(self, query: str, intent: str) -> float:
        scores = await self.get_batch_confidence(query, [intent])
        return scores.get(intent, 0.0)

    async def get_stats(self) -> Dict[str, Any]:
        count = 0
        if self._healthy:
            try:
                count = await self._service.get_count()
            except Exception as e:
                logger.warning(f"[semantic] count failed: {e}")
        return {
            "healthy": self._healthy,
            "count": count,
            "cached_intents": len(self.cache),
            "search_calls": self.search_calls,
        }

    def clear_cache(self) -> None:
        self.cache.clear()


__all__ = [
    "SemanticIndex",
]
