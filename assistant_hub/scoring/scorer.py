# FILE: assistant_hub/scoring/scorer.py
"""
Confidence Scorer - blends semantic, keyword and context signals into one
score per adapter for a query.

Core formula (per adapter):
    if semantic > semantic_floor:
        total = semantic * w.semantic + (keyword * keyword_damping) * w.keyword
    else:
        total = keyword * w.keyword
    total += context * w.context

- semantic: SemanticIndex batch confidence (one search for all adapters)
- keyword: adapter.get_confidence(query) if present, else the fraction of
  the adapter's keywords found as substrings of the normalized query
- context: +0.5 if active, +0.5 if used in the last 5 minutes (max 1.0)

Results are sorted descending after every concurrent call resolves and are
cached as a whole batch under the normalized query. A cache hit returns the
same scores with metadata.cache_hit = True.

Usage:
    scorer = ConfidenceScorer(index=index, registry=registry)
    scores = await scorer.score("how many notes do I have")
    scores[0].app_name, scores[0].total_score
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from assistant_hub.adapters.base import AppContextData, resolve
from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.scoring.cache import BoundedTTLCache, Clock, now_ms
from assistant_hub.scoring.confidence_config import (
    ScoringConfig,
    ScoringWeights,
    get_config,
    get_threshold_label,
)
from assistant_hub.scoring.preprocessor import PreprocessedQuery, QueryPreprocessor

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class ScoreBreakdown:
    semantic: float = 0.0
    keyword: float = 0.0
    context: float = 0.0


@dataclass(frozen=True)
class ScoreMetadata:
    is_active: bool = False
    last_used: int = 0
    cache_hit: bool = False


@dataclass(frozen=True)
class ConfidenceScore:
    """
    One adapter's score for one query.

    total_score can exceed 1.0 only through unusual weight overrides; use
    clamped_score for display.
    """
    adapter: Any
    total_score: float
    breakdown: ScoreBreakdown
    weights: Dict[str, float]
    metadata: ScoreMetadata

    @property
    def app_name(self) -> str:
        return self.adapter.app_name

    @property
    def clamped_score(self) -> float:
        return max(0.0, min(1.0, self.total_score))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "display_name": getattr(self.adapter, "display_name", self.app_name),
            "total_score": self.clamped_score,
            "label": get_threshold_label(self.total_score),
            "breakdown": {
                "semantic": self.breakdown.semantic,
                "keyword": self.breakdown.keyword,
                "context": self.breakdown.context,
            },
            "weights": dict(self.weights),
            "metadata": {
                "is_active": self.metadata.is_active,
                "last_used": self.metadata.last_used,
                "cache_hit": self.metadata.cache_hit,
            },
        }


@dataclass
class ExplanationFactor:
    type: str
    score: float
    weight: float
    contribution: float
    details: str


@dataclass
class ConfidenceExplanation:
    query: str
    app_name: str
    total_score: float
    label: str
    explanation: str
    factors: List[ExplanationFactor] = field(default_factory=list)


@dataclass
class _BatchEntry:
    app_names: Tuple[str, ...]
    scores: List[ConfidenceScore]


# =============================================================================
# SCORING HELPERS
# =============================================================================

def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def keyword_fraction(query: str, keywords: Sequence[str]) -> float:
    """Fraction of `keywords` that appear as substrings of `query`."""
    if not keywords:
        return 0.0
    matches = sum(1 for kw in keywords if kw and kw.lower() in query)
    return matches / len(keywords)


def blend(semantic: float, keyword: float, context: float, weights: ScoringWeights) -> float:
    """Weighted total with the semantic floor rule applied."""
    if semantic > weights.semantic_floor:
        effective_semantic = semantic
        effective_keyword = keyword * weights.keyword_damping
    else:
        effective_semantic = 0.0
        effective_keyword = keyword
    return (
        effective_semantic * weights.semantic
        + effective_keyword * weights.keyword
        + context * weights.context
    )


# =============================================================================
# SCORER
# =============================================================================

class ConfidenceScorer:
    """Computes and caches ranked ConfidenceScores."""

    def __init__(
        self,
        index: Any,
        registry: AdapterRegistry,
        preprocessor: QueryPreprocessor = None,
        config: ScoringConfig = None,
        cache: BoundedTTLCache = None,
        clock: Clock = time.time,
    ):
        self.config = config or get_config()
        self.index = index
        self.registry = registry
        self.preprocessor = preprocessor or QueryPreprocessor()
        self._clock = clock
        self.cache: BoundedTTLCache[_BatchEntry] = cache or BoundedTTLCache(
            max_entries=self.config.cache.score_max_entries,
            ttl_s=self.config.cache.score_ttl_s,
            eviction_fraction=self.config.cache.eviction_fraction,
            clock=clock,
            name="score_cache",
        )
        self._background: Set[asyncio.Task] = set()

    @staticmethod
    def cache_key(normalized: str) -> str:
        return normalized.lower().strip()

    async def score(
        self,
        query: str,
        adapters: Sequence[Any] = None,
        weights: Dict[str, float] = None,
    ) -> List[ConfidenceScore]:
        preprocessed = self.preprocessor.preprocess(query)
        normalized = preprocessed.normalized
        adapters = list(self.registry.adapters() if adapters is None else adapters)
        app_names = tuple(a.app_name for a in adapters)

        key = self.cache_key(normalized)
        if weights:
            key += "|" + ",".join(f"{k}={v}" for k, v in sorted(weights.items()))

        cached = self.cache.get(key)
        if cached is not None and cached.app_names == app_names:
            return [
                replace(s, metadata=replace(s.metadata, cache_hit=True))
                for s in cached.scores
            ]

        final_weights = self.config.weights.merged(weights)

        semantic_scores, keyword_scores = await asyncio.gather(
            self._semantic_scores(normalized, app_names),
            asyncio.gather(*[self._keyword_score(normalized, a) for a in adapters]),
        )

        scores = []
        for adapter, keyword in zip(adapters, keyword_scores):
            semantic = _clamp(semantic_scores.get(adapter.app_name, 0.0))
            app_data = self.registry.get_app_data(adapter.app_name)
            context = self._context_score(app_data)
            scores.append(ConfidenceScore(
                adapter=adapter,
                total_score=blend(semantic, keyword, context, final_weights),
                breakdown=ScoreBreakdown(semantic=semantic, keyword=keyword, context=context),
                weights=final_weights.as_dict(),
                metadata=ScoreMetadata(
                    is_active=bool(app_data and app_data.is_active),
                    last_used=int(app_data.last_used) if app_data else 0,
                    cache_hit=False,
                ),
            ))

        scores.sort(key=lambda s: s.total_score, reverse=True)
        self.cache.set(key, _BatchEntry(app_names=app_names, scores=scores))
        self._log_results(normalized, scores, preprocessed)
        return scores

    def score_in_background(
        self,
        query: str,
        adapters: Sequence[Any] = None,
        weights: Dict[str, float] = None,
    ) -> "asyncio.Task[List[ConfidenceScore]]":
        """
        Start scoring as a task the scorer keeps alive on its own.

        Callers should await it through asyncio.shield(); if the caller is
        cancelled the task still completes and fills the caches.
        """
        task = asyncio.ensure_future(self.score(query, adapters, weights))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _semantic_scores(self, query: str, app_names: Sequence[str]) -> Dict[str, float]:
        if self.index is None or not app_names:
            return {}
        try:
            return await self.index.get_batch_confidence(query, app_names)
        except Exception:
            logger.error("[scorer] semantic batch failed; using keyword and context only", exc_info=True)
            return {}

    async def _keyword_score(self, query: str, adapter: Any) -> float:
        name = adapter.app_name
        capabilities = self.registry.get_capabilities(name)
        has_confidence = (
            capabilities.confidence if capabilities is not None
            else callable(getattr(adapter, "get_confidence", None))
        )
        try:
            if has_confidence:
                return _clamp(float(await resolve(adapter.get_confidence(query)) or 0.0))
            return keyword_fraction(query, list(adapter.get_keywords() or []))
        except Exception:
            logger.error(f"[scorer] keyword scoring failed for {name}", exc_info=True)
            return 0.0

    def _context_score(self, app_data: Optional[AppContextData]) -> float:
        if app_data is None:
            return 0.0
        cfg = self.config.context
        score = 0.0
        if app_data.is_active:
            score += cfg.active_bonus
        recent_cutoff = now_ms(self._clock) - int(cfg.recent_window_s * 1000)
        if app_data.last_used and app_data.last_used > recent_cutoff:
            score += cfg.recent_bonus
        return min(score, cfg.max_score)

    # -------------------------------------------------------------------------
    # Explanation
    # -------------------------------------------------------------------------

    def get_threshold_label(self, score: float) -> str:
        return get_threshold_label(score, self.config.thresholds)

    def explain(self, query: str, score: ConfidenceScore) -> ConfidenceExplanation:
        b, w = score.breakdown, score.weights

        if b.semantic > 0.7:
            semantic_details = "Strong semantic match with intent examples"
        elif b.semantic > 0.3:
            semantic_details = "Moderate semantic similarity"
        else:
            semantic_details = "Low semantic similarity"

        if b.keyword > 0.8:
            keyword_details = "Strong keyword match"
        elif b.keyword > 0.4:
            keyword_details = "Partial keyword match"
        else:
            keyword_details = "Minimal keyword overlap"

        context_parts = []
        if score.metadata.is_active:
            context_parts.append("app is currently active")
        recent_cutoff = now_ms(self._clock) - int(self.config.context.recent_window_s * 1000)
        if score.metadata.last_used and score.metadata.last_used > recent_cutoff:
            context_parts.append("recently used")
        context_details = (
            f"Context boost from: {', '.join(context_parts)}" if context_parts
            else "No context signals"
        )

        label = self.get_threshold_label(score.total_score)
        sentences = {
            "HIGH": "Very high confidence match based on strong semantic similarity and keyword matches.",
            "MEDIUM": "Good confidence match with moderate semantic and keyword alignment.",
            "LOW": "Possible match based on partial keyword or context signals.",
            "BELOW_THRESHOLD": "Low confidence match - consider alternative routing.",
        }

        return ConfidenceExplanation(
            query=query,
            app_name=score.app_name,
            total_score=score.total_score,
            label=label,
            explanation=sentences[label],
            factors=[
                ExplanationFactor("semantic", b.semantic, w["semantic"], b.semantic * w["semantic"], semantic_details),
                ExplanationFactor("keyword", b.keyword, w["keyword"], b.keyword * w["keyword"], keyword_details),
                ExplanationFactor("context", b.context, w["context"], b.context * w["context"], context_details),
            ],
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    def _log_results(
        self,
        query: str,
        scores: List[ConfidenceScore],
        preprocessed: PreprocessedQuery,
    ) -> None:
        low = self.config.thresholds.low
        top = [
            f"{s.app_name}={s.total_score:.3f}"
            f"(s={s.breakdown.semantic:.2f},k={s.breakdown.keyword:.2f},c={s.breakdown.context:.2f})"
            for s in scores[:3]
        ]
        logger.info(
            f"[scorer] query={query[:50]!r} matches={sum(1 for s in scores if s.total_score > low)} "
            f"top={top}"
        )
        if preprocessed.changed:
            logger.debug(
                f"[scorer] preprocessing corrections="
                f"{[f'{c.original} -> {c.corrected}' for c in preprocessed.corrections]} "
                f"expansions={preprocessed.expansions}"
            )


__all__ = [
    "ScoreBreakdown",
    "ScoreMetadata",
    "ConfidenceScore",
    "ExplanationFactor",
    "ConfidenceExplanation",
    "ConfidenceScorer",
    "keyword_fraction",
    "blend",
]
