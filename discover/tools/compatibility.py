"""Compatibility rules: orientation reciprocity and user-supplied filters.

Eligibility is expressed as a list of declarative ``Predicate`` objects.
Equality predicates are pushed down to the store; the rest are evaluated
in memory over the fetched rows so no composite index is needed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from discover.models import BrowseFilters, Candidate, RequesterContext

DEFAULT_PREFERENCE = "both"

_MISSING = object()


@dataclass(frozen=True)
class Predicate:
    """A single field comparison against a profile row.

    ``default`` stands in for a missing or null field value; without one,
    a missing value never matches. With ``fold_case`` a stored string is
    trimmed and lowercased before comparing, which the store cannot do, so
    such predicates are never pushed down.
    """

    field: str
    op: str
    value: Any
    default: Any = _MISSING
    fold_case: bool = False

    @property
    def pushdown(self) -> bool:
        return self.op == "==" and self.default is _MISSING and not self.fold_case

    def matches(self, row: dict) -> bool:
        actual = row.get(self.field)
        if self.fold_case and isinstance(actual, str):
            actual = actual.strip().lower() or None
        if actual is None:
            if self.default is _MISSING:
                return False
            actual = self.default

        if self.op == "==":
            return actual == self.value
        if self.op == "in":
            return actual in self.value
        if self.op == ">=":
            return actual >= self.value
        if self.op == "<=":
            return actual <= self.value
        raise ValueError(f"Unsupported predicate operator: {self.op}")


def normalize_tags(values: Iterable[object] | None) -> frozenset[str]:
    """Lowercase, trim and drop empty tag names."""

    if not values:
        return frozenset()
    return frozenset(
        str(v).strip().lower() for v in values if v is not None and str(v).strip()
    )


def eligibility_predicates() -> list[Predicate]:
    """Account state every candidate must be in."""

    return [
        Predicate("isVerified", "==", True),
        Predicate("hasCompletedOnboarding", "==", True),
    ]


def _fold(value: str | None) -> str | None:
    if value is None:
        return None
    return str(value).strip().lower() or None


def orientation_predicates(
    gender: str | None, preference: str | None
) -> list[Predicate]:
    """Reciprocal orientation constraints for a requester.

    The requester's preference constrains the candidate's gender, and the
    requester's gender must be accepted by the candidate's preference. Both
    apply at once. An unset preference means "both"; an unset gender puts
    no constraint on the candidate's preference. A candidate without a
    stated preference is treated as "both".
    """

    gender = _fold(gender)
    preference = _fold(preference) or DEFAULT_PREFERENCE
    predicates: list[Predicate] = []

    if preference in ("male", "female"):
        predicates.append(Predicate("gender", "==", preference, fold_case=True))

    if gender in ("male", "female"):
        predicates.append(
            Predicate(
                "sexualPreference",
                "in",
                (gender, "both"),
                default=DEFAULT_PREFERENCE,
                fold_case=True,
            )
        )

    return predicates


def is_orientation_compatible(
    requester: RequesterContext,
    candidate_gender: str | None,
    candidate_preference: str | None,
) -> bool:
    """Pairwise form of ``orientation_predicates``."""

    row = {"gender": candidate_gender, "sexualPreference": candidate_preference}
    return all(
        p.matches(row)
        for p in orientation_predicates(
            requester.gender, requester.sexual_preference
        )
    )


def passes_filters(candidate: Candidate, filters: BrowseFilters) -> bool:
    """Apply the optional user filters except distance.

    Age and fame bounds are inclusive. An unknown age fails any active age
    bound. Distance needs requester coordinates and is applied by the
    ranking step instead.
    """

    if filters.min_age is not None:
        if candidate.age is None or candidate.age < filters.min_age:
            return False
    if filters.max_age is not None:
        if candidate.age is None or candidate.age > filters.max_age:
            return False

    if filters.min_fame is not None and candidate.fame_rating < filters.min_fame:
        return False
    if filters.max_fame is not None and candidate.fame_rating > filters.max_fame:
        return False

    if filters.tags:
        if not (candidate.tags & normalize_tags(filters.tags)):
            return False

    if filters.location:
        needle = filters.location.strip().lower()
        haystacks = (candidate.city or "", candidate.country or "")
        if needle and not any(needle in h.lower() for h in haystacks):
            return False

    return True
