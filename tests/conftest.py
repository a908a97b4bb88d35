# FILE: tests/conftest.py
"""
Pytest configuration for the assistant hub test suite.

Configures:
- pytest-asyncio for async test support
- Fake adapters and a fake similarity service shared by the suite
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from unittest.mock import AsyncMock, Mock

from assistant_hub.adapters.base import AggregateableData, AppContextData

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


# =============================================================================
# FAKES
# =============================================================================

class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def ms(self) -> int:
        return int(self.now * 1000)


class FakeAdapter:
    """Adapter with the required surface only; optional parts are attached by make_adapter."""

    def __init__(
        self,
        app_name,
        display_name=None,
        keywords=(),
        is_active=False,
        last_used=0,
        summary="",
        capabilities=(),
    ):
        self.app_name = app_name
        self.display_name = display_name or app_name.replace("_", " ").title()
        self.icon = None
        self.keywords = list(keywords)
        self.is_active = is_active
        self.last_used = last_used
        self.summary = summary
        self.capabilities = list(capabilities)
        self.context_calls = 0
        self.context_error = None

    def get_context_data(self):
        self.context_calls += 1
        if self.context_error is not None:
            raise self.context_error
        return AppContextData(
            app_name=self.app_name,
            display_name=self.display_name,
            is_active=self.is_active,
            last_used=self.last_used,
            summary=self.summary,
            capabilities=self.capabilities,
        )

    def can_answer(self, query):
        lowered = query.lower()
        return any(kw in lowered for kw in self.keywords)

    def get_keywords(self):
        return list(self.keywords)


class FakeSimilarityService:
    """In-memory stand-in for the similarity service contract."""

    def __init__(self, healthy=True, hits=None, search_error=None):
        self.healthy = healthy
        self.hits = list(hits or [])
        self.search_error = search_error
        self.stored = []
        self.search_calls = 0
        self.health_calls = 0

    async def is_healthy(self):
        self.health_calls += 1
        return self.healthy

    async def store(self, text):
        self.stored.append(text)
        return f"doc-{len(self.stored)}"

    async def search(self, query, limit=10):
        self.search_calls += 1
        if self.search_error is not None:
            raise self.search_error
        return list(self.hits)[:limit]

    async def get_count(self):
        return len(self.stored)


def intent_hit(app_name, similarity, text="example query"):
    """A search hit shaped like a stored intent document."""
    return {"content": f"{text}\n[Intent: {app_name}]", "similarity": similarity}


def make_adapter(
    app_name,
    keywords=(),
    response=None,
    response_error=None,
    confidence=None,
    aggregate=None,
    search_results=None,
    subscribable=False,
    **kwargs,
):
    """
    Build a FakeAdapter and attach the optional contract members requested.

    response / response_error -> async get_response
    confidence                -> async get_confidence
    aggregate                 -> supports_aggregation + get_aggregate_data
    search_results            -> async search
    subscribable              -> subscribe(callback) storing the callback
    """
    adapter = FakeAdapter(app_name, keywords=keywords, **kwargs)

    if response is not None or response_error is not None:
        adapter.get_response = AsyncMock(return_value=response, side_effect=response_error)
    if confidence is not None:
        adapter.get_confidence = AsyncMock(return_value=confidence)
    if aggregate is not None:
        items = [
            item if isinstance(item, AggregateableData)
            else AggregateableData(app_name=app_name, **item)
            for item in aggregate
        ]
        adapter.supports_aggregation = Mock(return_value=True)
        adapter.get_aggregate_data = Mock(return_value=items)
    if search_results is not None:
        adapter.search = AsyncMock(return_value=search_results)
    if subscribable:
        adapter.callbacks = []
        adapter.unsubscribe = Mock()

        def _subscribe(callback):
            adapter.callbacks.append(callback)
            return adapter.unsubscribe

        adapter.subscribe = _subscribe

    return adapter


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def similarity_service():
    return FakeSimilarityService()
