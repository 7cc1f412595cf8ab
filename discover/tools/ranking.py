"""Ranking engine: distance computation, tie-break cascade and pagination."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from discover.models import Candidate, RankingResult, RequesterContext, SortSpec
from discover.utils.geo import distance_km, valid_coordinates
from discover.utils.logging_config import logger

# Secondary levels in fixed relative order; the primary key is skipped.
TIE_BREAK_ORDER = ("distance", "age", "tags", "fame")


def _directed(value: float | int | None, descending: bool) -> tuple:
    """Sort key part that always puts missing values last."""

    if value is None:
        return (1, 0)
    return (0, -value if descending else value)


def _primary_key(candidate: Candidate, sort: SortSpec) -> tuple:
    if sort.key == "distance":
        value = candidate.distance_km
    elif sort.key == "age":
        value = candidate.age
    elif sort.key == "fame":
        value = candidate.fame_rating
    elif sort.key == "tags":
        value = candidate.common_tag_count
    else:
        raise ValueError(f"Unknown sort key: {sort.key}")
    return _directed(value, sort.descending)


def _secondary_key(candidate: Candidate, key: str) -> tuple:
    if key == "distance":
        return _directed(candidate.distance_km, descending=False)
    if key == "age":
        # Birth date descending: youngest first, whatever the primary direction.
        born = candidate.birth_date
        return _directed(born.toordinal() if born else None, descending=True)
    if key == "tags":
        return _directed(candidate.common_tag_count, descending=True)
    return _directed(candidate.fame_rating, descending=True)


def sort_key(candidate: Candidate, sort: SortSpec) -> tuple:
    """Full ordering key: primary level, three fixed tie-breaks, then id."""

    parts = [_primary_key(candidate, sort)]
    parts.extend(
        _secondary_key(candidate, key)
        for key in TIE_BREAK_ORDER
        if key != sort.key
    )
    parts.append((str(candidate.id),))
    return tuple(parts)


def with_distances(
    candidates: Iterable[Candidate], requester: RequesterContext
) -> list[Candidate]:
    """Copy candidates with ``distance_km`` filled in where computable."""

    has_origin = valid_coordinates(requester.latitude, requester.longitude)
    out: list[Candidate] = []
    for candidate in candidates:
        distance = None
        if has_origin and valid_coordinates(candidate.latitude, candidate.longitude):
            distance = distance_km(
                float(requester.latitude),
                float(requester.longitude),
                float(candidate.latitude),
                float(candidate.longitude),
            )
        out.append(replace(candidate, distance_km=distance))
    return out


def rank_candidates(
    candidates: Iterable[Candidate],
    requester: RequesterContext,
    sort: SortSpec,
    limit: int,
    offset: int,
    max_distance_km: int | None = None,
) -> RankingResult:
    """Order the eligible candidates and return one page plus the total.

    Candidates with an unknown distance are never removed by the distance
    ceiling; only a known distance above it excludes. ``total`` counts
    everything left after that filter, before slicing.
    """

    located = with_distances(candidates, requester)

    if max_distance_km is not None:
        located = [
            c
            for c in located
            if c.distance_km is None or c.distance_km <= max_distance_km
        ]

    ordered = sorted(located, key=lambda c: sort_key(c, sort))
    page = ordered[offset : offset + limit]

    logger.debug(
        "rank_candidates sort=%s/%s total=%s page=%s",
        sort.key,
        sort.direction,
        len(ordered),
        len(page),
    )
    return RankingResult(page=page, total=len(ordered))
