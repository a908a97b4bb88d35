# FILE: assistant_hub/aggregation/concepts.py
"""
Cross-app concepts and query phrasing detection.

A CrossAppConcept is a named cluster of trigger keywords ("favorites",
"images", ...) plus an aggregation strategy and the filters that decide
which AggregateableData items count toward it.

High-precision phrase lists only - matching is case-insensitive substring
matching, the same way adapters match their own keywords.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from assistant_hub.adapters.base import AggregateType


class AggregationStrategy(str, Enum):
    SUM = "sum"
    LIST = "list"
    CUSTOM = "custom"


@dataclass(frozen=True)
class CrossAppConcept:
    name: str
    keywords: Tuple[str, ...]
    strategy: AggregationStrategy = AggregationStrategy.SUM
    # Singular noun used when rendering totals
    noun: str = "item"
    # Only items of these types count (empty = any type)
    data_types: Tuple[AggregateType, ...] = ()
    # Items count only if their label contains one of these terms...
    label_terms: Tuple[str, ...] = ()
    # ...or, failing that, by the integer stored under this metadata key
    metadata_key: Optional[str] = None
    # Used by the CUSTOM strategy; receives the AggregationResult
    renderer: Optional[Callable] = field(default=None, compare=False)

    def matches(self, query: str) -> bool:
        lowered = query.lower()
        return any(kw in lowered for kw in self.keywords)


DEFAULT_CONCEPTS: List[CrossAppConcept] = [
    CrossAppConcept(
        name="favorites",
        keywords=("favorite", "favourite", "starred", "liked", "bookmarked", "saved"),
        noun="favorite",
        label_terms=("favorite", "favourite", "starred", "liked", "saved"),
        metadata_key="favorites",
    ),
    CrossAppConcept(
        name="images",
        keywords=("image", "photo", "picture", "pic", "gallery", "selfie"),
        noun="image",
        data_types=(AggregateType.IMAGE,),
    ),
    CrossAppConcept(
        name="videos",
        keywords=("video", "clip", "recording"),
        noun="video",
        data_types=(AggregateType.VIDEO,),
    ),
    CrossAppConcept(
        name="audio",
        keywords=("audio", "song", "music", "beat", "sound"),
        noun="audio item",
        data_types=(AggregateType.AUDIO,),
    ),
    CrossAppConcept(
        name="documents",
        keywords=("document", "note", "memo"),
        noun="document",
        data_types=(AggregateType.DOCUMENT,),
    ),
    CrossAppConcept(
        name="scores",
        keywords=("score", "high score", "points", "best"),
        strategy=AggregationStrategy.LIST,
        noun="score",
        data_types=(AggregateType.SCORE,),
    ),
]


CROSS_APP_PHRASES: Tuple[str, ...] = (
    "all apps",
    "all my apps",
    "all of my apps",
    "across apps",
    "across all",
    "across my apps",
    "across your apps",
    "every app",
    "everywhere",
    "combined",
    "entire dashboard",
    "whole dashboard",
    "everything",
    "all my",
    "in total",
    "altogether",
    "all together",
)

_MULTI_INTENT_RE = re.compile(r"\b(and also|as well as|and then|plus|also|and)\b")


def is_cross_app_query(query: str) -> bool:
    """True if the query explicitly asks about all apps at once."""
    lowered = (query or "").lower()
    return any(phrase in lowered for phrase in CROSS_APP_PHRASES)


def is_multi_intent_query(query: str) -> bool:
    """True if the query joins several requests ("notes and weather")."""
    return bool(_MULTI_INTENT_RE.search((query or "").lower()))


def detect_concepts(query: str, concepts: List[CrossAppConcept] = None) -> List[CrossAppConcept]:
    """Every concept whose keywords appear in the query (may be several)."""
    pool = DEFAULT_CONCEPTS if concepts is None else concepts
    return [c for c in pool if c.matches(query or "")]


def pluralize(noun: str, count: int) -> str:
    if count == 1:
        return noun
    head, _, last = noun.rpartition(" ")
    if last.endswith("y") and len(last) > 1 and last[-2] not in "aeiou":
        last = last[:-1] + "ies"
    elif last.endswith(("s", "x", "ch", "sh")):
        last += "es"
    else:
        last += "s"
    return f"{head} {last}" if head else last


def join_with_and(parts: List[str]) -> str:
    """'a', 'a and b', 'a, b and c' (no Oxford comma)."""
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{', '.join(parts[:-1])} and {parts[-1]}"


__all__ = [
    "AggregationStrategy",
    "CrossAppConcept",
    "DEFAULT_CONCEPTS",
    "CROSS_APP_PHRASES",
    "is_cross_app_query",
    "is_multi_intent_query",
    "detect_concepts",
    "pluralize",
    "join_with_and",
]
