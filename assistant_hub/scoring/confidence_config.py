# FILE: assistant_hub/scoring/confidence_config.py
"""
Assistant Hub Confidence System - Configuration

Centralized config for scoring weights, thresholds, cache sizing and the
context bonus. Two threshold scales exist on purpose:

- ConfidenceThresholds (0.85 / 0.65 / 0.45) label scores for explanation
  and logging.
- RouterThresholds (0.8 / 0.5 / 0.3) drive the chat routing decision.
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class ScoringWeights:
    """
    Blend weights for the three confidence signals.
    """
    semantic: float = 0.6
    keyword: float = 0.3
    context: float = 0.1

    # Semantic scores at or below this count as "no match": the semantic
    # contribution drops to 0 and the full keyword score is used.
    semantic_floor: float = 0.3

    # Multiplier on the keyword score when semantic is above the floor
    keyword_damping: float = 0.5

    def merged(self, overrides: Dict[str, float] = None) -> "ScoringWeights":
        """Return a copy with any of semantic/keyword/context overridden."""
        if not overrides:
            return self
        return ScoringWeights(
            semantic=overrides.get("semantic", self.semantic),
            keyword=overrides.get("keyword", self.keyword),
            context=overrides.get("context", self.context),
            semantic_floor=self.semantic_floor,
            keyword_damping=self.keyword_damping,
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            "semantic": self.semantic,
            "keyword": self.keyword,
            "context": self.context,
        }


@dataclass(frozen=True)
class ConfidenceThresholds:
    """
    Labels for explaining a blended score.
    """
    high: float = 0.85
    medium: float = 0.65
    low: float = 0.45


@dataclass(frozen=True)
class RouterThresholds:
    """
    Thresholds used by the chat routing decision.
    """
    # At or above: the top adapter answers directly
    high: float = 0.8

    # At or above: the adapter's summary is spliced into the model prompt
    medium: float = 0.5

    low: float = 0.3


@dataclass(frozen=True)
class CacheConfig:
    """
    Sizing for the two bounded caches.
    """
    # Whole-batch score cache (key = normalized query)
    score_ttl_s: float = 60 * 60
    score_max_entries: int = 100

    # Per-intent semantic cache (key = query::intent)
    semantic_ttl_s: float = 5 * 60
    semantic_max_entries: int = 1000

    # Fraction of entries dropped when nothing has expired yet
    eviction_fraction: float = 0.2

    # Adapter context snapshot cache
    snapshot_ttl_s: float = 5.0


@dataclass(frozen=True)
class ContextConfig:
    """
    Additive context bonus.
    """
    active_bonus: float = 0.5
    recent_bonus: float = 0.5
    recent_window_s: float = 5 * 60
    max_score: float = 1.0


@dataclass
class ScoringConfig:
    """
    Master configuration for the confidence system.
    """
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    thresholds: ConfidenceThresholds = field(default_factory=ConfidenceThresholds)
    router: RouterThresholds = field(default_factory=RouterThresholds)
    cache: CacheConfig = field(default_factory=CacheConfig)
    context: ContextConfig = field(default_factory=ContextConfig)


# Global default config instance
DEFAULT_CONFIG = ScoringConfig()


def get_config() -> ScoringConfig:
    """Get the default confidence system configuration."""
    return DEFAULT_CONFIG


def get_threshold_label(score: float, thresholds: ConfidenceThresholds = None) -> str:
    """Map a blended score onto HIGH / MEDIUM / LOW / BELOW_THRESHOLD."""
    t = thresholds or get_config().thresholds
    if score >= t.high:
        return "HIGH"
    if score >= t.medium:
        return "MEDIUM"
    if score >= t.low:
        return "LOW"
    return "BELOW_THRESHOLD"


__all__ = [
    "ScoringWeights",
    "ConfidenceThresholds",
    "RouterThresholds",
    "CacheConfig",
    "ContextConfig",
    "ScoringConfig",
    "DEFAULT_CONFIG",
    "get_config",
    "get_threshold_label",
]
