# FILE: assistant_hub/errors.py
"""
Exception types for the assistant hub.

These are raised at the edges (similarity HTTP client, adapter registration)
and recovered inside the routing core. Nothing here is expected to reach the
chat pipeline.
"""


class AssistantHubError(Exception):
    """Base class for assistant hub errors."""


class AdapterRegistrationError(AssistantHubError):
    """Raised when an adapter does not satisfy the minimum contract."""
    pass


class SimilarityServiceError(AssistantHubError):
    """Raised when the semantic similarity service returns an error."""
    pass


class CircuitOpenError(SimilarityServiceError):
    """Raised while the similarity client's circuit breaker is open."""
    pass


__all__ = [
    "AssistantHubError",
    "AdapterRegistrationError",
    "SimilarityServiceError",
    "CircuitOpenError",
]
