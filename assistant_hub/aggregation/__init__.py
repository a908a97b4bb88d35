# FILE: assistant_hub/aggregation/__init__.py
from assistant_hub.aggregation.aggregator import AggregationResult, CrossAppAggregator
from assistant_hub.aggregation.concepts import CrossAppConcept, DEFAULT_CONCEPTS

__all__ = [
    "AggregationResult",
    "CrossAppAggregator",
    "CrossAppConcept",
    "DEFAULT_CONCEPTS",
]
