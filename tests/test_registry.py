# FILE: tests/test_registry.py
"""
Tests for assistant_hub/adapters/base.py and assistant_hub/adapters/registry.py
Adapter contract validation, snapshot caching and listeners.
"""

import pytest
from unittest.mock import Mock

from conftest import FakeAdapter, make_adapter
from assistant_hub.adapters.base import AdapterCapabilities, AggregateableData, AggregateType
from assistant_hub.adapters.registry import AdapterRegistry
from assistant_hub.errors import AdapterRegistrationError


# =============================================================================
# CONTRACT
# =============================================================================

class TestAdapterCapabilities:

    def test_required_only(self):
        caps = AdapterCapabilities.detect(FakeAdapter("notes"))
        assert caps == AdapterCapabilities()
        assert caps.to_list() == []

    def test_optional_members_detected(self):
        adapter = make_adapter(
            "notes",
            response="ok",
            confidence=0.5,
            aggregate=[],
            search_results=[],
            subscribable=True,
        )
        caps = AdapterCapabilities.detect(adapter)
        assert caps.to_list() == ["subscribe", "response", "search", "confidence", "aggregation"]

    def test_aggregation_needs_both_methods(self):
        adapter = FakeAdapter("notes")
        adapter.supports_aggregation = Mock(return_value=True)
        assert AdapterCapabilities.detect(adapter).aggregation is False

    def test_missing_app_name_rejected(self):
        adapter = FakeAdapter("notes")
        adapter.app_name = ""
        with pytest.raises(AdapterRegistrationError):
            AdapterCapabilities.detect(adapter)

    def test_missing_required_method_rejected(self):
        class NoKeywords:
            app_name = "broken"
            display_name = "Broken"

            def get_context_data(self):
                return None

            def can_answer(self, query):
                return False

        with pytest.raises(AdapterRegistrationError, match="get_keywords"):
            AdapterCapabilities.detect(NoKeywords())


class TestAggregateableData:

    def test_type_coerced_from_string(self):
        item = AggregateableData(type="image", count=2, label="photos", app_name="camera")
        assert item.type is AggregateType.IMAGE

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            AggregateableData(type="hologram", count=1, label="x", app_name="y")


# =============================================================================
# REGISTRY
# =============================================================================

class TestRegistration:

    def test_register_and_lookup(self):
        registry = AdapterRegistry()
        adapter = make_adapter("notes", response="hi")
        caps = registry.register_adapter(adapter)

        assert caps.response is True
        assert "notes" in registry
        assert len(registry) == 1
        assert registry.get_adapter("notes") is adapter
        assert registry.get_capabilities("notes") is caps
        assert registry.adapters() == [adapter]

    def test_invalid_adapter_not_registered(self):
        registry = AdapterRegistry()
        adapter = FakeAdapter("notes")
        adapter.display_name = ""
        with pytest.raises(AdapterRegistrationError):
            registry.register_adapter(adapter)
        assert len(registry) == 0

    def test_reregistering_replaces_and_unsubscribes(self):
        registry = AdapterRegistry()
        first = make_adapter("notes", subscribable=True)
        second = make_adapter("notes")
        registry.register_adapter(first)
        registry.register_adapter(second)

        assert registry.get_adapter("notes") is second
        assert len(registry) == 1
        first.unsubscribe.assert_called_once()

    def test_unregister(self):
        registry = AdapterRegistry()
        adapter = make_adapter("notes", subscribable=True)
        registry.register_adapter(adapter)

        assert registry.unregister_adapter("notes") is True
        assert registry.unregister_adapter("notes") is False
        assert registry.get_adapter("notes") is None
        adapter.unsubscribe.assert_called_once()


class TestSnapshots:

    def test_snapshot_cached_for_ttl(self, clock):
        registry = AdapterRegistry(snapshot_ttl_s=5.0, clock=clock)
        adapter = make_adapter("notes", summary="3 notes")
        registry.register_adapter(adapter)

        registry.get_app_data("notes")
        clock.advance(4)
        data = registry.get_app_data("notes")
        assert adapter.context_calls == 1
        assert data.summary == "3 notes"

        clock.advance(2)
        registry.get_app_data("notes")
        assert adapter.context_calls == 2

    def test_unknown_app_returns_none(self):
        assert AdapterRegistry().get_app_data("ghost") is None

    def test_failing_adapter_is_omitted(self):
        registry = AdapterRegistry()
        good = make_adapter("notes", is_active=True)
        bad = make_adapter("broken")
        bad.context_error = RuntimeError("boom")
        registry.register_adapter(good)
        registry.register_adapter(bad)

        snapshot = registry.get_all_app_data()

        assert list(snapshot.apps) == ["notes"]
        assert snapshot.active_apps == ["notes"]
        assert registry.get_app_data("broken") is None

    def test_dict_context_is_coerced(self):
        registry = AdapterRegistry()
        adapter = FakeAdapter("notes")
        adapter.get_context_data = lambda: {"summary": "from dict", "is_active": True}
        registry.register_adapter(adapter)

        data = registry.get_app_data("notes")
        assert data.app_name == "notes"
        assert data.display_name == "Notes"
        assert data.summary == "from dict"

    def test_adapter_update_invalidates_only_that_adapter(self, clock):
        registry = AdapterRegistry(clock=clock)
        notes = make_adapter("notes", subscribable=True)
        streaks = make_adapter("streaks")
        registry.register_adapter(notes)
        registry.register_adapter(streaks)
        registry.get_all_app_data()
        notes_calls, streaks_calls = notes.context_calls, streaks.context_calls

        notes.callbacks[0]({"summary": "changed"})
        registry.get_all_app_data()

        assert notes.context_calls == notes_calls + 1
        assert streaks.context_calls == streaks_calls

    def test_invalidate_all(self):
        registry = AdapterRegistry()
        adapter = make_adapter("notes")
        registry.register_adapter(adapter)
        registry.get_app_data("notes")
        registry.invalidate()
        registry.get_app_data("notes")
        assert adapter.context_calls == 2

    def test_snapshot_to_dict(self, clock):
        registry = AdapterRegistry(clock=clock)
        registry.register_adapter(make_adapter("notes", is_active=True))
        data = registry.get_all_app_data().to_dict()
        assert data["active_apps"] == ["notes"]
        assert data["apps"]["notes"]["display_name"] == "Notes"
        assert data["last_updated"] == clock.ms


class TestListeners:

    def test_subscribe_fires_immediately_and_on_changes(self):
        registry = AdapterRegistry()
        registry.register_adapter(make_adapter("notes"))
        seen = []

        unsubscribe = registry.subscribe(lambda snap: seen.append(sorted(snap.apps)))
        assert seen == [["notes"]]

        registry.register_adapter(make_adapter("streaks"))
        assert seen[-1] == ["notes", "streaks"]

        unsubscribe()
        registry.unregister_adapter("streaks")
        assert len(seen) == 2

    def test_listener_error_is_contained(self):
        registry = AdapterRegistry()
        calls = []

        def bad_listener(_snapshot):
            raise RuntimeError("listener boom")

        registry.subscribe(bad_listener)
        registry.subscribe(lambda snap: calls.append(snap))
        registry.register_adapter(make_adapter("notes"))

        assert len(calls) == 2

    def test_destroy(self):
        registry = AdapterRegistry()
        adapter = make_adapter("notes", subscribable=True)
        registry.register_adapter(adapter)
        seen = []
        registry.subscribe(seen.append)

        registry.destroy()

        assert len(registry) == 0
        adapter.unsubscribe.assert_called_once()
        registry.register_adapter(make_adapter("streaks"))
        assert len(seen) == 1


class TestQueries:

    def test_find_apps_for_query(self):
        registry = AdapterRegistry()
        notes = make_adapter("notes", keywords=["note"])
        broken = make_adapter("broken", keywords=["note"])
        broken.can_answer = Mock(side_effect=RuntimeError("boom"))
        registry.register_adapter(notes)
        registry.register_adapter(broken)
        registry.register_adapter(make_adapter("streaks", keywords=["streak"]))

        assert registry.find_apps_for_query("show my notes") == [notes]

    async def test_search_all_apps(self):
        registry = AdapterRegistry()
        registry.register_adapter(make_adapter("notes", search_results=[{"title": "Meeting"}]))
        registry.register_adapter(make_adapter("empty", search_results=[]))
        failing = make_adapter("failing", search_results=[])
        failing.search.side_effect = RuntimeError("boom")
        registry.register_adapter(failing)
        registry.register_adapter(make_adapter("nosearch"))

        results = await registry.search_all_apps("meeting")

        assert results == [{"app_name": "notes", "results": [{"title": "Meeting"}]}]

    def test_get_all_keywords(self):
        registry = AdapterRegistry()
        registry.register_adapter(make_adapter("notes", keywords=["note", "memo"]))
        assert registry.get_all_keywords() == {"notes": ["note", "memo"]}

    def test_context_summary(self):
        registry = AdapterRegistry()
        assert registry.get_context_summary() == "No active dashboard apps"

        registry.register_adapter(make_adapter("notes", summary="3 notes", display_name="Notes"))
        registry.register_adapter(make_adapter("idle"))
        assert registry.get_context_summary() == "Dashboard Apps:\nNotes: 3 notes"

    def test_detailed_context(self):
        registry = AdapterRegistry()
        registry.register_adapter(make_adapter(
            "notes",
            is_active=True,
            summary="3 notes",
            capabilities=["search notes", "count notes"],
        ))
        registry.register_adapter(make_adapter("streaks"))

        detailed = registry.get_detailed_context(["notes"])

        assert detailed == (
            "\nNOTES:"
            "\n- Status: Active"
            "\n- 3 notes"
            "\n- Can help with: search notes, count notes"
        )
        assert "STREAKS" in registry.get_detailed_context()
