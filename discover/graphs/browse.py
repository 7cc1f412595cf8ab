"""Browse graph: requester lookup, candidate pool, ranking, response."""

from __future__ import annotations

from langgraph.graph import StateGraph

from discover.config import config
from discover.graphs.base_graph import BaseGraph
from discover.models import BrowseFilters, SortSpec
from discover.state import BrowseState
from discover.tools.candidate_pool import CandidatePool
from discover.tools.ranking import rank_candidates
from discover.utils.errors import FirestoreUnavailableError

DEADLINE_EXCEEDED = "deadline_exceeded"


def _with_state(state: BrowseState, **updates) -> BrowseState:
    """Return a new state dict with updates applied."""

    return {**state, **updates}


class BrowseGraph(BaseGraph):
    """Suggestion pipeline: coarse store filtering, then in-memory ranking."""

    def __init__(self, pool: CandidatePool | None = None, timeout: float = 10.0):
        super().__init__(timeout=timeout)
        self.pool = pool or CandidatePool()

    def build_graph(self) -> StateGraph:
        graph = StateGraph(BrowseState)

        graph.add_node("fetch_requester", self.node_fetch_requester)
        graph.add_node("query_candidates", self.node_query_candidates)
        graph.add_node("check_deadline", self.node_check_deadline)
        graph.add_node("rank_candidates", self.node_rank_candidates)
        graph.add_node("finalize_response", self.node_finalize_response)

        graph.set_entry_point("fetch_requester")
        graph.add_conditional_edges(
            "fetch_requester",
            self.route_after_requester,
            {"query": "query_candidates", "finalize": "finalize_response"},
        )
        graph.add_edge("query_candidates", "check_deadline")
        graph.add_conditional_edges(
            "check_deadline",
            self.route_after_deadline_check,
            {"rank": "rank_candidates", "abort": "finalize_response"},
        )
        graph.add_edge("rank_candidates", "finalize_response")
        graph.set_finish_point("finalize_response")

        return graph

    def node_fetch_requester(self, state: BrowseState) -> BrowseState:
        """Load the requester's matching context."""

        self._log_node_execution("fetch_requester", state)
        deadline = state.get("deadline_at") or self._deadline_from_now()
        try:
            requester = self.pool.get_requester_context(state["user_id"])
        except FirestoreUnavailableError as exc:
            self._log_node_error("fetch_requester", exc)
            raise

        if requester is None:
            self.logger.info("No profile for requester; returning no suggestions")
            return _with_state(
                state, deadline_at=deadline, requester_missing=True, candidates=[]
            )

        return _with_state(
            state, deadline_at=deadline, requester=requester, requester_missing=False
        )

    def route_after_requester(self, state: BrowseState) -> str:
        return "finalize" if state.get("requester_missing") else "query"

    def node_query_candidates(self, state: BrowseState) -> BrowseState:
        """Fetch the eligible, filtered candidate set."""

        self._log_node_execution("query_candidates", state)
        try:
            candidates = self.pool.fetch_candidates(
                state["user_id"],
                state["requester"],
                state.get("filters") or BrowseFilters(),
            )
        except FirestoreUnavailableError as exc:
            self._log_node_error("query_candidates", exc)
            raise

        return _with_state(state, candidates=candidates)

    def node_check_deadline(self, state: BrowseState) -> BrowseState:
        """Abandon the request between fetching and sorting if it ran late."""

        if self._deadline_passed(state):
            self.logger.warning(
                "Browse request passed its deadline after candidate fetch"
            )
            return _with_state(state, error=DEADLINE_EXCEEDED)
        return state

    def route_after_deadline_check(self, state: BrowseState) -> str:
        return "abort" if state.get("error") else "rank"

    def node_rank_candidates(self, state: BrowseState) -> BrowseState:
        """Compute distances, order and paginate."""

        self._log_node_execution("rank_candidates", state)
        filters = state.get("filters") or BrowseFilters()
        result = rank_candidates(
            state.get("candidates", []),
            state["requester"],
            state.get("sort") or SortSpec(),
            limit=state.get("limit", config.DEFAULT_PAGE_SIZE),
            offset=state.get("offset", 0),
            max_distance_km=filters.max_distance_km,
        )
        return _with_state(state, page=result.page, total=result.total)

    def node_finalize_response(self, state: BrowseState) -> BrowseState:
        """Construct the API payload and response metadata."""

        self._log_node_execution("finalize_response", state)
        limit = state.get("limit", config.DEFAULT_PAGE_SIZE)
        offset = state.get("offset", 0)
        page = [] if state.get("error") else state.get("page", [])
        total = 0 if state.get("error") else state.get("total", 0)

        result = {
            "profiles": [c.to_dict() for c in page],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
        metadata = {
            "success": not state.get("error"),
            "error": state.get("error"),
            "requester_found": not state.get("requester_missing", False),
            "eligible_count": len(state.get("candidates", [])),
        }
        return _with_state(state, result=result, response_metadata=metadata)


def create_browse_graph(pool: CandidatePool | None = None):
    """Build and compile the browse graph for server usage."""

    graph_builder = BrowseGraph(pool=pool, timeout=config.REQUEST_DEADLINE)
    return graph_builder.compile()
