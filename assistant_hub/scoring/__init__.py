# FILE: assistant_hub/scoring/__init__.py
"""
Scoring building blocks: preprocessing, bounded caches and configuration.

The scorer itself lives in assistant_hub.scoring.scorer and is imported from
there directly (it depends on the adapter registry, which depends on this
package).
"""

from assistant_hub.scoring.cache import BoundedTTLCache, now_ms
from assistant_hub.scoring.confidence_config import (
    DEFAULT_CONFIG,
    ScoringConfig,
    get_config,
    get_threshold_label,
)
from assistant_hub.scoring.preprocessor import PreprocessedQuery, QueryPreprocessor

__all__ = [
    "BoundedTTLCache",
    "now_ms",
    "DEFAULT_CONFIG",
    "ScoringConfig",
    "get_config",
    "get_threshold_label",
    "PreprocessedQuery",
    "QueryPreprocessor",
]
