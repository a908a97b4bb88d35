# FILE: assistant_hub/routing/core.py
"""
Query Router - the entry point the chat pipeline calls for every utterance.

route_query(raw) runs preprocessing and scoring, then decides, in order:

1. AGGREGATE  - the aggregator recognises a cross-app question
2. MERGED     - >= 2 adapters at or above MEDIUM and the query is cross-app
                or joins several requests; every qualifying adapter answers
                (a single non-empty answer comes back unlabelled as DIRECT)
3. DIRECT     - top score >= HIGH and the top adapter has get_response
4. CONTEXT    - top score >= MEDIUM; its summary goes into the model prompt
5. NONE       - plain model call

Router thresholds (HIGH 0.8 / MEDIUM 0.5) are separate from the scorer's
label thresholds. Adapter exceptions and empty answers fall through to the
next rule. route_query never raises; NONE is the universal fallback.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from assistant_hub.adapters.base import resolve
from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.aggregation.aggregator import CrossAppAggregator
from assistant_hub.aggregation.concepts import is_multi_intent_query
from assistant_hub.routing.schemas import RouteMode, RouteResult
from assistant_hub.scoring.confidence_config import RouterThresholds, get_config
from assistant_hub.scoring.scorer import ConfidenceScore, ConfidenceScorer
from config.settings import get_settings

logger = logging.getLogger(__name__)


def build_system_prompt(base_prompt: str, result: RouteResult) -> str:
    """Splice a CONTEXT-mode addendum into the outbound system prompt."""
    if not result.context_addendum:
        return base_prompt
    return f"{base_prompt}\n\n{result.context_addendum}"


class QueryRouter:
    """Chooses how an utterance is answered."""

    def __init__(
        self,
        scorer: ConfidenceScorer,
        registry: AdapterRegistry,
        aggregator: CrossAppAggregator = None,
        thresholds: RouterThresholds = None,
        debug: bool = None,
    ):
        self.scorer = scorer
        self.registry = registry
        self.aggregator = aggregator or CrossAppAggregator(registry)
        self.thresholds = thresholds or get_config().router
        self.debug = get_settings().router_debug if debug is None else debug

    async def route_query(self, raw_utterance: str) -> RouteResult:
        try:
            result = await self._route((raw_utterance or "").strip())
        except Exception:
            logger.exception("[router] routing failed; falling back to plain model call")
            result = RouteResult(mode=RouteMode.NONE)

        log = logger.info if self.debug else logger.debug
        log(f"[router] mode={result.mode.value} sources={result.source_adapters} confidence={result.confidence}")
        return result

    async def _route(self, query: str) -> RouteResult:
        if not query:
            return RouteResult(mode=RouteMode.NONE)

        scores = await self._score(query)

        aggregated = self._aggregate(query)
        if aggregated is not None:
            return aggregated

        merged = await self._merge(query, scores)
        if merged is not None:
            return merged

        if not scores:
            return RouteResult(mode=RouteMode.NONE)

        top = scores[0]
        if top.total_score >= self.thresholds.high and self._has_response(top.adapter):
            text = await self._safe_response(top.adapter, query)
            if text:
                return RouteResult(
                    mode=RouteMode.DIRECT,
                    text=text,
                    source_adapters=[top.app_name],
                    confidence=top.clamped_score,
                )

        if top.total_score >= self.thresholds.medium:
            return RouteResult(
                mode=RouteMode.CONTEXT,
                context_addendum=self._context_addendum(top),
                source_adapters=[top.app_name],
                confidence=top.clamped_score,
            )

        return RouteResult(mode=RouteMode.NONE)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _score(self, query: str) -> List[ConfidenceScore]:
        # Shielded: if our caller goes away, scoring still finishes and
        # fills the caches.
        try:
            return await asyncio.shield(self.scorer.score_in_background(query))
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("[router] scoring failed; continuing without app routing", exc_info=True)
            return []

    def _aggregate(self, query: str) -> Optional[RouteResult]:
        try:
            result = self.aggregator.aggregate(query)
        except Exception:
            logger.error("[router] aggregation failed", exc_info=True)
            return None
        if result is None:
            return None
        return RouteResult(
            mode=RouteMode.AGGREGATE,
            text=result.text,
            source_adapters=result.source_adapters,
        )

    async def _merge(self, query: str, scores: List[ConfidenceScore]) -> Optional[RouteResult]:
        qualifying = [s for s in scores if s.total_score >= self.thresholds.medium]
        if len(qualifying) < 2:
            return None
        if not (self.aggregator.is_cross_app_query(query) or is_multi_intent_query(query)):
            return None

        answering = [s for s in qualifying if self._has_response(s.adapter)]
        logger.info(f"[router] multi-intent query across {[s.app_name for s in answering]}")
        texts = await asyncio.gather(*[self._safe_response(s.adapter, query) for s in answering])
        answered = [(s, t) for s, t in zip(answering, texts) if t]

        if not answered:
            return None
        if len(answered) == 1:
            score, text = answered[0]
            return RouteResult(
                mode=RouteMode.DIRECT,
                text=text,
                source_adapters=[score.app_name],
                confidence=score.clamped_score,
            )
        return RouteResult(
            mode=RouteMode.MERGED,
            text="\n\n".join(f"**{self._display_name(s.adapter)}**: {t}" for s, t in answered),
            source_adapters=[s.app_name for s, _ in answered],
            confidence=max(s.clamped_score for s, _ in answered),
        )

    # -------------------------------------------------------------------------
    # Adapter helpers
    # -------------------------------------------------------------------------

    def _has_response(self, adapter: Any) -> bool:
        capabilities = self.registry.get_capabilities(adapter.app_name)
        if capabilities is not None:
            return capabilities.response
        return callable(getattr(adapter, "get_response", None))

    async def _safe_response(self, adapter: Any, query: str) -> Optional[str]:
        try:
            text = await resolve(adapter.get_response(query))
        except Exception:
            logger.error(f"[router] Error getting response from {adapter.app_name}", exc_info=True)
            return None
        if text is None:
            return None
        text = str(text).strip()
        return text or None

    @staticmethod
    def _display_name(adapter: Any) -> str:
        return getattr(adapter, "display_name", None) or adapter.app_name

    def _context_addendum(self, score: ConfidenceScore) -> str:
        data = self.registry.get_app_data(score.app_name)
        display = data.display_name if data else self._display_name(score.adapter)
        line = f"{display} - {data.summary}" if data and data.summary else display
        return f"Relevant dashboard app context:\n{line}"


__all__ = [
    "QueryRouter",
    "build_system_prompt",
]
