# FILE: tests/test_query_router.py
"""
Tests for assistant_hub/routing/core.py
Routing decision order: aggregate, merged, direct, context, none.
"""

import asyncio

import pytest

from conftest import FakeSimilarityService, intent_hit, make_adapter
from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.routing.core import QueryRouter, build_system_prompt
from assistant_hub.routing.schemas import RouteMode, RouteResult
from assistant_hub.scoring.confidence_config import CacheConfig, ScoringConfig, get_config
from assistant_hub.scoring.scorer import ConfidenceScore, ScoreBreakdown, ScoreMetadata
from assistant_hub.services import build_services


# =============================================================================
# FIXTURES
# =============================================================================

class StubScorer:
    """Hands the router a fixed ranking."""

    def __init__(self, ranked=None, error=None):
        self.ranked = ranked or []
        self.error = error
        self.calls = 0

    async def _score(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.ranked)

    def score_in_background(self, query, adapters=None, weights=None):
        return asyncio.ensure_future(self._score())


def scored(adapter, total):
    return ConfidenceScore(
        adapter=adapter,
        total_score=total,
        breakdown=ScoreBreakdown(),
        weights=get_config().weights.as_dict(),
        metadata=ScoreMetadata(),
    )


def build_router(*pairs, error=None):
    """pairs: (adapter, total_score), already in ranked order."""
    registry = AdapterRegistry()
    for adapter, _ in pairs:
        registry.register_adapter(adapter)
    scorer = StubScorer([scored(a, t) for a, t in pairs], error=error)
    return QueryRouter(scorer, registry, debug=True)


# =============================================================================
# DIRECT / CONTEXT / NONE
# =============================================================================

class TestDirect:

    async def test_high_score_answers_directly(self):
        notes = make_adapter("notes", response="You have 3 notes.")
        router = build_router((notes, 0.8))

        result = await router.route_query("how many notes do I have")

        assert result.mode == RouteMode.DIRECT
        assert result.text == "You have 3 notes."
        assert result.source_adapters == ["notes"]
        assert result.confidence == pytest.approx(0.8)
        notes.get_response.assert_awaited_once_with("how many notes do I have")

    async def test_just_below_high_is_not_direct(self):
        notes = make_adapter("notes", response="You have 3 notes.", summary="3 notes")
        router = build_router((notes, 0.79))

        result = await router.route_query("how many notes do I have")

        assert result.mode == RouteMode.CONTEXT
        notes.get_response.assert_not_awaited()

    async def test_high_score_without_get_response_uses_context(self):
        notes = make_adapter("notes", summary="3 notes")
        router = build_router((notes, 0.95))

        result = await router.route_query("how many notes do I have")

        assert result.mode == RouteMode.CONTEXT
        assert result.context_addendum == "Relevant dashboard app context:\nNotes - 3 notes"

    async def test_throwing_response_falls_back_to_context(self):
        notes = make_adapter("notes", response_error=RuntimeError("boom"), summary="3 notes")
        router = build_router((notes, 0.9))

        result = await router.route_query("how many notes do I have")

        assert result.mode == RouteMode.CONTEXT
        assert result.source_adapters == ["notes"]

    async def test_empty_response_falls_back(self):
        notes = make_adapter("notes", response="   ")
        router = build_router((notes, 0.9))

        result = await router.route_query("how many notes do I have")

        assert result.mode == RouteMode.CONTEXT
        assert result.context_addendum == "Relevant dashboard app context:\nNotes"


class TestContextAndNone:

    async def test_medium_score_uses_context(self):
        streaks = make_adapter("streaks", summary="Gym streak: 12 days")
        router = build_router((streaks, 0.5))

        result = await router.route_query("am I keeping up with the gym")

        assert result.mode == RouteMode.CONTEXT
        assert "Gym streak: 12 days" in result.context_addendum
        assert result.text is None

    async def test_low_score_is_none(self):
        router = build_router((make_adapter("notes", response="x"), 0.49))
        result = await router.route_query("tell me a joke")
        assert result == RouteResult(mode=RouteMode.NONE)

    async def test_empty_query_is_none(self):
        router = build_router((make_adapter("notes", response="x"), 0.99))
        result = await router.route_query("   ")
        assert result.mode == RouteMode.NONE
        assert router.scorer.calls == 0

    async def test_no_adapters_is_none(self):
        router = build_router()
        assert (await router.route_query("hello")).mode == RouteMode.NONE

    async def test_scoring_failure_is_none(self):
        router = build_router((make_adapter("notes", response="x"), 0.99), error=RuntimeError("down"))
        result = await router.route_query("how many notes")
        assert result.mode == RouteMode.NONE


# =============================================================================
# MERGED / AGGREGATE
# =============================================================================

class TestMerged:

    async def test_multi_intent_query_merges_answers(self):
        streaks = make_adapter("streaks", response="Gym streak is 12 days.")
        notes = make_adapter("notes", response="You have 3 notes.")
        router = build_router((streaks, 0.7), (notes, 0.6))

        result = await router.route_query("show my streaks and my notes")

        assert result.mode == RouteMode.MERGED
        assert result.text == "**Streaks**: Gym streak is 12 days.\n\n**Notes**: You have 3 notes."
        assert result.source_adapters == ["streaks", "notes"]
        assert result.confidence == pytest.approx(0.7)

    async def test_single_answer_is_direct_without_label(self):
        streaks = make_adapter("streaks", response="Gym streak is 12 days.")
        notes = make_adapter("notes", response_error=RuntimeError("boom"))
        router = build_router((streaks, 0.6), (notes, 0.55))

        result = await router.route_query("show my streaks and my notes")

        assert result.mode == RouteMode.DIRECT
        assert result.text == "Gym streak is 12 days."
        assert result.source_adapters == ["streaks"]

    async def test_no_answers_falls_through(self):
        streaks = make_adapter("streaks", summary="12 days")
        notes = make_adapter("notes")
        router = build_router((streaks, 0.6), (notes, 0.55))

        result = await router.route_query("show my streaks and my notes")

        assert result.mode == RouteMode.CONTEXT
        assert result.source_adapters == ["streaks"]

    async def test_single_intent_query_is_not_merged(self):
        streaks = make_adapter("streaks", response="Gym streak is 12 days.")
        notes = make_adapter("notes", response="You have 3 notes.")
        router = build_router((streaks, 0.85), (notes, 0.6))

        result = await router.route_query("show my gym streak")

        assert result.mode == RouteMode.DIRECT
        assert result.source_adapters == ["streaks"]
        notes.get_response.assert_not_awaited()


class TestAggregate:

    async def test_cross_app_query_aggregates_first(self):
        camera = make_adapter(
            "camera",
            response="Camera answer",
            aggregate=[{"type": "image", "count": 5, "label": "favorite photos"}],
        )
        dogs = make_adapter(
            "dog_gallery",
            display_name="Dog Gallery",
            response="Dog answer",
            aggregate=[{"type": "image", "count": 3, "label": "favorite dogs"}],
        )
        router = build_router((camera, 0.95), (dogs, 0.9))

        result = await router.route_query("how many favorites across all my apps")

        assert result.mode == RouteMode.AGGREGATE
        assert result.text == "You have 8 favorites across your apps: 5 in Camera and 3 in Dog Gallery."
        assert result.source_adapters == ["camera", "dog_gallery"]
        camera.get_response.assert_not_awaited()

    async def test_unrelated_supporter_does_not_claim_explicit_query(self):
        notes = make_adapter("notes", keywords=["notes"], response="You have 3 notes.")
        camera = make_adapter(
            "camera",
            keywords=["photo"],
            aggregate=[{"type": "image", "count": 20, "label": "photos"}],
        )
        router = build_router((notes, 0.95), (camera, 0.1))

        result = await router.route_query("show all my notes")

        assert result.mode == RouteMode.DIRECT
        assert result.text == "You have 3 notes."
        assert result.source_adapters == ["notes"]

    async def test_everything_reports_each_type(self):
        camera = make_adapter(
            "camera",
            aggregate=[{"type": "image", "count": 20, "label": "photos"}],
        )
        game = make_adapter(
            "circle_game",
            aggregate=[{"type": "score", "count": 1500, "label": "high score"}],
        )
        router = build_router((camera, 0.2), (game, 0.1))

        result = await router.route_query("tell me everything")

        assert result.mode == RouteMode.AGGREGATE
        assert result.text == "You have 20 images and 1 score across your apps: 20 in Camera and 1 in Circle Game."


class TestSystemPrompt:

    def test_context_addendum_appended(self):
        result = RouteResult(mode=RouteMode.CONTEXT, context_addendum="Relevant dashboard app context:\nNotes")
        assert build_system_prompt("You are helpful.", result) == (
            "You are helpful.\n\nRelevant dashboard app context:\nNotes"
        )

    def test_no_addendum(self):
        assert build_system_prompt("base", RouteResult(mode=RouteMode.NONE)) == "base"


# =============================================================================
# END TO END
# =============================================================================

class TestWiredServices:

    async def test_semantic_match_routes_direct(self, clock):
        service = FakeSimilarityService(hits=[intent_hit("notes", 0.95)])
        hub = build_services(similarity_service=service, clock=clock)
        hub.registry.register_adapter(make_adapter(
            "notes",
            keywords=["notes"],
            response="You have 3 notes.",
            is_active=True,
            last_used=clock.ms,
        ))
        hub.registry.register_adapter(make_adapter("streaks", keywords=["streak"], response="12 days"))
        await hub.start()

        result = await hub.router.route_query("Show my notes")

        assert result.mode == RouteMode.DIRECT
        assert result.text == "You have 3 notes."
        assert service.search_calls == 1

    async def test_semantic_outage_still_routes(self, clock):
        service = FakeSimilarityService(healthy=False)
        hub = build_services(similarity_service=service, clock=clock)
        hub.registry.register_adapter(make_adapter("notes", keywords=["notes"], summary="3 notes"))
        await hub.start()

        result = await hub.router.route_query("show my notes")

        # keyword-only score is 0.3, below the MEDIUM routing threshold
        assert result.mode == RouteMode.NONE
        assert service.search_calls == 0
        assert service.stored == []

    async def test_shutdown_clears_state(self, clock):
        hub = build_services(similarity_service=FakeSimilarityService(), clock=clock)
        hub.registry.register_adapter(make_adapter("notes", keywords=["notes"]))
        await hub.router.route_query("show my notes")

        hub.shutdown()

        assert len(hub.registry) == 0
        assert len(hub.scorer.cache) == 0
        assert len(hub.index.cache) == 0

    def test_cache_config_reaches_both_caches(self, clock):
        config = ScoringConfig(cache=CacheConfig(
            score_ttl_s=30,
            score_max_entries=10,
            semantic_ttl_s=15,
            semantic_max_entries=20,
        ))

        hub = build_services(similarity_service=FakeSimilarityService(), config=config, clock=clock)

        assert (hub.scorer.cache.max_entries, hub.scorer.cache.ttl_s) == (10, 30)
        assert (hub.index.cache.max_entries, hub.index.cache.ttl_s) == (20, 15)
