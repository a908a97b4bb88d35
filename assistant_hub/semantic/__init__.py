# FILE: assistant_hub/semantic/__init__.py
"""
Semantic similarity: HTTP client, intent catalog and batched index.
"""

from assistant_hub.semantic.client import SimilarityHit, SimilarityServiceClient
from assistant_hub.semantic.index import SemanticIndex
from assistant_hub.semantic.intents import IntentCatalog, IntentDefinition

__all__ = [
    "SimilarityHit",
    "SimilarityServiceClient",
    "SemanticIndex",
    "IntentCatalog",
    "IntentDefinition",
]
