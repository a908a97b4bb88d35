# FILE: assistant_hub/__init__.py
"""
Assistant hub - decides, for every chat utterance, whether a dashboard
mini-app answers it, several do, an aggregation does, or the model does.

Subpackages:
- adapters: adapter contract and registry
- scoring: preprocessing, caches, config and the confidence scorer
- semantic: similarity service client, intent catalog, batched index
- aggregation: cross-app concepts and the aggregator
- routing: query router, schemas and FastAPI routes
"""

__version__ = "0.1.0"
