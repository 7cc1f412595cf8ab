"""Boundary validation for browse query parameters.

The ranking core assumes well-typed, pre-validated input. ``BrowseQuery``
declares the accepted query string; a failed field maps to the error code
returned to the client by ``browse_error_code``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discover.config import config
from discover.models import BrowseFilters, SortDirection, SortKey, SortSpec
from discover.tools.compatibility import normalize_tags

MIN_AGE = 18
View = Literal["list", "map"]

# Query parameter -> error code returned when it fails validation.
FIELD_ERROR_CODES = {
    "limit": "INVALID_LIMIT",
    "offset": "INVALID_OFFSET",
    "sortBy": "INVALID_SORT_BY",
    "order": "INVALID_ORDER",
    "minAge": "INVALID_MIN_AGE",
    "maxAge": "INVALID_MAX_AGE",
    "maxDistance": "INVALID_MAX_DISTANCE",
    "minFame": "INVALID_MIN_FAME",
    "maxFame": "INVALID_MAX_FAME",
    "view": "INVALID_VIEW",
}


@dataclass(frozen=True)
class BrowseRequest:
    filters: BrowseFilters
    sort: SortSpec
    limit: int
    offset: int
    view: str = "list"


class BrowseQuery(BaseModel):
    """
    Query string of /api/browse/suggestions.

    Blank values count as absent. ``limit`` is clamped to the page-size
    ceiling of the requested view rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    limit: Optional[int] = Field(default=None, ge=1)
    offset: Optional[int] = Field(default=None, ge=0)
    sortBy: Optional[SortKey] = None
    order: Optional[SortDirection] = None
    minAge: Optional[int] = Field(default=None, ge=MIN_AGE)
    maxAge: Optional[int] = Field(default=None, ge=MIN_AGE)
    maxDistance: Optional[int] = Field(default=None, ge=0)
    minFame: Optional[int] = Field(default=None, ge=0, le=100)
    maxFame: Optional[int] = Field(default=None, ge=0, le=100)
    tags: Optional[str] = None
    location: Optional[str] = None
    view: Optional[View] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("view", mode="before")
    @classmethod
    def lowercase_view(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    def to_request(self) -> BrowseRequest:
        view = self.view or "list"
        ceiling = config.MAX_MAP_PAGE_SIZE if view == "map" else config.MAX_PAGE_SIZE
        limit = self.limit if self.limit is not None else config.DEFAULT_PAGE_SIZE

        tags = normalize_tags((self.tags or "").split(","))
        filters = BrowseFilters(
            min_age=self.minAge,
            max_age=self.maxAge,
            max_distance_km=self.maxDistance,
            min_fame=self.minFame,
            max_fame=self.maxFame,
            tags=tags or None,
            location=self.location,
        )
        return BrowseRequest(
            filters=filters,
            sort=SortSpec(key=self.sortBy or "distance", direction=self.order or "asc"),
            limit=min(limit, ceiling),
            offset=self.offset or 0,
            view=view,
        )


def browse_error_code(errors: Iterable[dict]) -> str | None:
    """Error code for the first failed browse parameter, if any."""

    for error in errors:
        loc = error.get("loc") or ()
        if loc and loc[-1] in FIELD_ERROR_CODES:
            return FIELD_ERROR_CODES[loc[-1]]
    return None
