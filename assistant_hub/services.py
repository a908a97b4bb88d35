# FILE: assistant_hub/services.py
"""
Wiring for one set of assistant hub services.

Everything is explicitly constructed and injected; there are no
module-level singletons. main.py builds one HubServices per FastAPI app and
stores it on app.state.hub. Tests build their own with fakes.

Usage:
    hub = build_services()
    await hub.start()
    hub.registry.register_adapter(NotesAdapter())
    result = await hub.router.route_query("how many notes do I have?")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.aggregation.aggregator import CrossAppAggregator
from assistant_hub.routing.core import QueryRouter
from assistant_hub.scoring.cache import Clock
from assistant_hub.scoring.confidence_config import ScoringConfig, get_config
from assistant_hub.scoring.preprocessor import QueryPreprocessor
from assistant_hub.scoring.scorer import ConfidenceScorer
from assistant_hub.semantic.client import SimilarityServiceClient
from assistant_hub.semantic.index import SemanticIndex
from assistant_hub.semantic.intents import IntentCatalog

logger = logging.getLogger(__name__)


@dataclass
class HubServices:
    registry: AdapterRegistry
    index: SemanticIndex
    scorer: ConfidenceScorer
    aggregator: CrossAppAggregator
    router: QueryRouter

    async def start(self) -> bool:
        """Probe the similarity service and store critical intents."""
        healthy = await self.index.initialize()
        logger.info(f"[hub] started (semantic healthy={healthy})")
        return healthy

    def shutdown(self) -> None:
        self.registry.destroy()
        self.scorer.clear_cache()
        self.index.clear_cache()


def build_services(
    similarity_service: Any = None,
    config: ScoringConfig = None,
    clock: Clock = time.time,
) -> HubServices:
    """Build a wired set of services around a similarity service."""
    config = config or get_config()
    service = similarity_service if similarity_service is not None else SimilarityServiceClient()

    registry = AdapterRegistry(snapshot_ttl_s=config.cache.snapshot_ttl_s, clock=clock)
    index = SemanticIndex(
        service,
        catalog=IntentCatalog(service, clock=clock),
        cache_config=config.cache,
        clock=clock,
    )
    scorer = ConfidenceScorer(
        index=index,
        registry=registry,
        preprocessor=QueryPreprocessor(),
        config=config,
        clock=clock,
    )
    aggregator = CrossAppAggregator(registry)
    router = QueryRouter(scorer, registry, aggregator, thresholds=config.router)

    return HubServices(
        registry=registry,
        index=index,
        scorer=scorer,
        aggregator=aggregator,
        router=router,
    )


__all__ = [
    "HubServices",
    "build_services",
]
