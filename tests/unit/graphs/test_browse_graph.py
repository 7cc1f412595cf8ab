"""
Unit tests for the browse graph.

Graphs are compiled with an in-memory candidate pool; no Firestore access.
"""

import time

import pytest
from discover.graphs.browse import DEADLINE_EXCEEDED, BrowseGraph, create_browse_graph
from discover.models import BrowseFilters, SortSpec
from discover.utils.errors import FirestoreUnavailableError


def _invoke(pool, **overrides):
    state = {
        "user_id": "me",
        "filters": BrowseFilters(),
        "sort": SortSpec("distance", "asc"),
        "limit": 20,
        "offset": 0,
        "deadline_at": time.time() + 30,
    }
    state.update(overrides)
    return create_browse_graph(pool=pool).invoke(state)


class TestBrowseGraph:

    def test_happy_path(self, lausanne_scenario):
        state = _invoke(lausanne_scenario.pool())

        result = state["result"]
        assert [p["id"] for p in result["profiles"]] == ["c2", "c1"]
        assert result["total"] == 2
        assert (result["limit"], result["offset"]) == (20, 0)
        assert state["response_metadata"]["success"] is True
        assert state["response_metadata"]["eligible_count"] == 2

    def test_profiles_are_serialized(self, lausanne_scenario):
        state = _invoke(lausanne_scenario.pool())
        first = state["result"]["profiles"][0]
        assert first["distanceKm"] == 1
        assert first["fameRating"] == 40
        assert "birthDate" not in first and "birth_date" not in first

    def test_pagination_and_filters(self, lausanne_scenario):
        state = _invoke(
            lausanne_scenario.pool(),
            filters=BrowseFilters(max_distance_km=2),
            limit=1,
            offset=1,
        )
        assert state["result"]["profiles"] == []
        assert state["result"]["total"] == 1

    def test_missing_requester_returns_empty(self, fake_store):
        state = _invoke(fake_store.pool(), user_id="ghost")

        assert state["result"]["profiles"] == []
        assert state["result"]["total"] == 0
        assert state["response_metadata"]["requester_found"] is False
        assert state["response_metadata"]["success"] is True
        assert fake_store.queries == []

    def test_passed_deadline_aborts_before_ranking(self, lausanne_scenario):
        state = _invoke(lausanne_scenario.pool(), deadline_at=1.0)

        assert state["response_metadata"]["error"] == DEADLINE_EXCEEDED
        assert state["response_metadata"]["success"] is False
        assert state["result"]["profiles"] == []
        assert "page" not in state or not state["page"]

    def test_deadline_defaults_from_graph_timeout(self, lausanne_scenario):
        state = _invoke(lausanne_scenario.pool(), deadline_at=None)
        assert state["deadline_at"] > time.time()
        assert state["response_metadata"]["success"] is True

    def test_store_failure_propagates(self, lausanne_scenario):
        def unavailable(predicates):
            raise FirestoreUnavailableError("down")

        pool = lausanne_scenario.pool(query_profiles=unavailable)
        with pytest.raises(FirestoreUnavailableError):
            _invoke(pool)

    def test_routes(self, fake_store):
        graph = BrowseGraph(pool=fake_store.pool())
        assert graph.route_after_requester({"requester_missing": True}) == "finalize"
        assert graph.route_after_requester({"requester_missing": False}) == "query"
        assert graph.route_after_deadline_check({"error": DEADLINE_EXCEEDED}) == "abort"
        assert graph.route_after_deadline_check({}) == "rank"
