"""Shared LangGraph state definitions.

Graph state is a TypedDict so the keys each node reads and writes are
explicit. Values are request-scoped model objects, not JSON.
"""

from __future__ import annotations

from typing import TypedDict

from discover.models import BrowseFilters, Candidate, RequesterContext, SortSpec

JsonDict = dict[str, object]


class BrowseState(TypedDict, total=False):
    """State for the browse/discover graph.

    Fields are optional at runtime because nodes populate them progressively.
    """

    # Identifies the requesting user.
    user_id: str
    # Filters, sort and paging validated at the API boundary.
    filters: BrowseFilters
    sort: SortSpec
    limit: int
    offset: int
    # Epoch seconds after which the request is abandoned.
    deadline_at: float
    # Requester attributes used for matching; unset when there is no profile.
    requester: RequesterContext
    requester_missing: bool
    # Eligible candidates before ordering.
    candidates: list[Candidate]
    # Ranked page and count of all ranked candidates.
    page: list[Candidate]
    total: int
    # Final API payload.
    result: JsonDict
    # Error code if the request was abandoned.
    error: str
    # Response metadata for observability.
    response_metadata: JsonDict
