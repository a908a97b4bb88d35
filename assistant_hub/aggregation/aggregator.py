# FILE: assistant_hub/aggregation/aggregator.py
"""
Cross-App Aggregator - combines quantifiable facts held separately by
several adapters into one templated sentence.

Trigger rules:
- Explicit cross-app phrasing ("all my", "across apps", ...) aggregates
  over the supporting adapters that either hold data surviving the concept
  filters or answer the query themselves (can_answer). With none, the query
  is left to the other routing rules.
- Otherwise at least two adapters must both answer the query (can_answer)
  AND report supports_aggregation() is True, for a detected concept.

Procedure:
1. Collect get_aggregate_data() from each qualifying adapter.
2. Apply the filters of every detected concept (type, then label terms or a
   metadata count).
3. Bucket by type and sum per adapter. With no concept, score and custom
   items count once each and mixed types render per type ("20 images and
   1 score").
4. Render: "You have 8 favorites across your apps: 5 in Camera and 3 in
   Dog Gallery." or "You don't have any favorites across your apps yet."

An answering adapter with no matching data is not an error; it renders the
"don't have any" sentence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from assistant_hub.adapters.base import AggregateableData, AggregateType
from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.aggregation.concepts import (
    AggregationStrategy,
    CrossAppConcept,
    DEFAULT_CONCEPTS,
    detect_concepts,
    is_cross_app_query,
    join_with_and,
    pluralize,
)

logger = logging.getLogger(__name__)


_TYPE_NOUNS = {
    AggregateType.IMAGE: "image",
    AggregateType.VIDEO: "video",
    AggregateType.AUDIO: "audio item",
    AggregateType.DOCUMENT: "document",
    AggregateType.SCORE: "score",
    AggregateType.COUNT: "item",
    AggregateType.CUSTOM: "item",
}

# Types whose count is a value rather than a number of things
_ENTRY_TYPES = (AggregateType.SCORE, AggregateType.CUSTOM)


@dataclass
class AppContribution:
    app_name: str
    display_name: str
    count: int


@dataclass
class AggregationResult:
    text: str
    total: int
    noun: str
    concepts: List[str] = field(default_factory=list)
    by_type: Dict[str, int] = field(default_factory=dict)
    by_app: List[AppContribution] = field(default_factory=list)

    @property
    def source_adapters(self) -> List[str]:
        return [c.app_name for c in self.by_app]


def _count_for_concept(item: AggregateableData, concept: CrossAppConcept) -> Optional[int]:
    """Count an item contributes under `concept`, or None if it is filtered out."""
    if concept.data_types and item.type not in concept.data_types:
        return None
    if not concept.label_terms and concept.metadata_key is None:
        return item.count

    label = (item.label or "").lower()
    if any(term in label for term in concept.label_terms):
        return item.count
    if concept.metadata_key is not None:
        value = (item.metadata or {}).get(concept.metadata_key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
    return None


def filter_items(
    items: List[AggregateableData],
    concepts: List[CrossAppConcept],
) -> List[Tuple[AggregateableData, int]]:
    """Apply every concept's filter in turn; the narrowest count wins."""
    kept = []
    for item in items:
        count: Optional[int] = item.count
        for concept in concepts:
            concept_count = _count_for_concept(item, concept)
            if concept_count is None:
                count = None
                break
            count = min(count, concept_count)
        if count:
            kept.append((item, count))
    return kept


class CrossAppAggregator:
    """Detects cross-app queries and renders aggregated answers."""

    def __init__(self, registry: AdapterRegistry, concepts: List[CrossAppConcept] = None):
        self.registry = registry
        self.concepts = list(DEFAULT_CONCEPTS if concepts is None else concepts)

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def is_cross_app_query(self, query: str) -> bool:
        return is_cross_app_query(query)

    def detect_concepts(self, query: str) -> List[CrossAppConcept]:
        return detect_concepts(query, self.concepts)

    def _supports_aggregation(self, adapter: Any) -> bool:
        capabilities = self.registry.get_capabilities(adapter.app_name)
        if capabilities is None or not capabilities.aggregation:
            return False
        try:
            return adapter.supports_aggregation() is True
        except Exception:
            logger.error(f"[aggregator] supports_aggregation failed for {adapter.app_name}", exc_info=True)
            return False

    def aggregating_adapters(self, query: str) -> List[Any]:
        """Adapters that would contribute to an aggregation for `query`."""
        adapters, _, _ = self._plan(query)
        return adapters

    def should_aggregate(self, query: str) -> bool:
        return bool(self.aggregating_adapters(query))

    def _plan(
        self,
        query: str,
    ) -> Tuple[List[Any], List[CrossAppConcept], List[Tuple[AggregateableData, int]]]:
        """Qualifying adapters, detected concepts and the items that survive the filters."""
        concepts = self.detect_concepts(query)
        supporting = [a for a in self.registry.adapters() if self._supports_aggregation(a)]
        answering = {a.app_name for a in self.registry.find_apps_for_query(query)}

        if self.is_cross_app_query(query):
            # Explicit phrasing only claims the query for adapters that hold
            # matching data or answer it themselves.
            adapters, kept = [], []
            for adapter in supporting:
                own = filter_items(self._collect([adapter]), concepts)
                if own or adapter.app_name in answering:
                    adapters.append(adapter)
                    kept.extend(own)
            return adapters, concepts, kept

        if not concepts:
            return [], concepts, []
        matched = [a for a in supporting if a.app_name in answering]
        if len(matched) < 2:
            return [], concepts, []
        return matched, concepts, filter_items(self._collect(matched), concepts)

    # -------------------------------------------------------------------------
    # Aggregation
    # -------------------------------------------------------------------------

    def aggregate(self, query: str) -> Optional[AggregationResult]:
        """Aggregate facts for `query`, or None if aggregation does not apply."""
        adapters, concepts, kept = self._plan(query)
        if not adapters:
            return None

        if not concepts:
            # Without a concept, score and custom items count once each.
            kept = [
                (item, 1 if item.type in _ENTRY_TYPES else count)
                for item, count in kept
            ]

        by_type: Dict[str, int] = {}
        per_app: Dict[str, int] = {}
        for item, count in kept:
            by_type[item.type.value] = by_type.get(item.type.value, 0) + count
            per_app[item.app_name] = per_app.get(item.app_name, 0) + count

        contributions = [
            AppContribution(app_name=name, display_name=self._display_name(name), count=count)
            for name, count in per_app.items()
        ]
        total = sum(per_app.values())
        noun = self._noun(concepts, kept)

        result = AggregationResult(
            text="",
            total=total,
            noun=noun,
            concepts=[c.name for c in concepts],
            by_type=by_type,
            by_app=contributions,
        )
        result.text = self._render(query, concepts, result)
        logger.info(
            f"[aggregator] concepts={result.concepts} total={total} "
            f"apps={[c.app_name for c in contributions]}"
        )
        return result

    def _collect(self, adapters: List[Any]) -> List[AggregateableData]:
        items: List[AggregateableData] = []
        for adapter in adapters:
            try:
                for raw in adapter.get_aggregate_data() or []:
                    item = raw if isinstance(raw, AggregateableData) else AggregateableData(**raw)
                    if not item.app_name:
                        item.app_name = adapter.app_name
                    items.append(item)
            except Exception:
                logger.error(f"[aggregator] get_aggregate_data failed for {adapter.app_name}", exc_info=True)
        return items

    def _display_name(self, app_name: str) -> str:
        adapter = self.registry.get_adapter(app_name)
        return getattr(adapter, "display_name", None) or app_name

    @staticmethod
    def _noun(concepts: List[CrossAppConcept], kept: List[Tuple[AggregateableData, int]]) -> str:
        for concept in concepts:
            if concept.name == "favorites":
                return concept.noun
        if concepts:
            return concepts[0].noun
        types = {item.type for item, _ in kept}
        if len(types) == 1:
            return _TYPE_NOUNS[types.pop()]
        return "item"

    @staticmethod
    def _type_breakdown(by_type: Dict[str, int]) -> str:
        """'20 images and 1 score'; types sharing a noun are merged."""
        by_noun: Dict[str, int] = {}
        for type_value, count in by_type.items():
            noun = _TYPE_NOUNS[AggregateType(type_value)]
            by_noun[noun] = by_noun.get(noun, 0) + count
        return join_with_and([f"{count} {pluralize(noun, count)}" for noun, count in by_noun.items()])

    @staticmethod
    def _scope(query: str) -> str:
        return "all apps" if "all apps" in (query or "").lower() else "your apps"

    def _render(self, query: str, concepts: List[CrossAppConcept], result: AggregationResult) -> str:
        scope = self._scope(query)
        plural = pluralize(result.noun, 2)

        if result.total == 0:
            return f"You don't have any {plural} across {scope} yet."

        strategies = {c.strategy for c in concepts}
        if strategies == {AggregationStrategy.CUSTOM}:
            for concept in concepts:
                if concept.renderer is not None:
                    return concept.renderer(result)

        breakdown = join_with_and([f"{c.count} in {c.display_name}" for c in result.by_app])
        if strategies == {AggregationStrategy.LIST}:
            return f"Here are your {plural} across {scope}: {breakdown}."

        if not concepts and len(result.by_type) > 1:
            return f"You have {self._type_breakdown(result.by_type)} across {scope}: {breakdown}."

        noun = pluralize(result.noun, result.total)
        return f"You have {result.total} {noun} across {scope}: {breakdown}."


__all__ = [
    "AppContribution",
    "AggregationResult",
    "CrossAppAggregator",
    "filter_items",
]
