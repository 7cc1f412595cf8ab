"""Candidate pool: the eligible, filtered, unordered candidate set.

The pool depends on injected store callables so it can run against
Firestore in production and against in-memory fakes in tests. Online
status comes from an injected reader when one is given, otherwise from
the flag stored on the profile row.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

from discover.config import config
from discover.models import (
    GENDERS,
    SEXUAL_PREFERENCES,
    BrowseFilters,
    Candidate,
    RequesterContext,
)
from discover.tools import firestore_tools
from discover.tools.compatibility import (
    Predicate,
    eligibility_predicates,
    normalize_tags,
    orientation_predicates,
    passes_filters,
)
from discover.tools.fame_rating import resolve_fame_rating
from discover.utils.dates import calculate_age, to_date, to_datetime
from discover.utils.geo import valid_coordinates
from discover.utils.logging_config import logger

ProfileLookup = Callable[[str], dict | None]
ProfileQuery = Callable[[list[Predicate]], list[dict]]
BlockLookup = Callable[[str], set[str]]
OnlineStatusReader = Callable[[str], bool]


def _choice(value: object, allowed: tuple[str, ...]) -> str | None:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text if text in allowed else None


def _coordinates(row: dict) -> tuple[float | None, float | None]:
    lat, lng = row.get("latitude"), row.get("longitude")
    if not valid_coordinates(lat, lng):
        return None, None
    return float(lat), float(lng)


class CandidatePool:
    """Builds requester contexts and eligible candidate lists."""

    def __init__(
        self,
        get_profile: ProfileLookup | None = None,
        query_profiles: ProfileQuery | None = None,
        get_blocked_ids: BlockLookup | None = None,
        is_online: OnlineStatusReader | None = None,
        default_fame_rating: int | None = None,
        today: date | None = None,
    ):
        self._get_profile = get_profile or firestore_tools.get_requester_profile
        self._query_profiles = query_profiles or firestore_tools.query_profiles
        self._get_blocked_ids = get_blocked_ids or firestore_tools.get_blocked_user_ids
        self._is_online = is_online
        self._default_fame = (
            config.DEFAULT_FAME_RATING
            if default_fame_rating is None
            else default_fame_rating
        )
        self._today = today

    def get_requester_context(self, user_id: str) -> RequesterContext | None:
        """Load the requester's matching attributes; None without a profile."""

        row = self._get_profile(user_id)
        if row is None:
            return None

        lat, lng = _coordinates(row)
        return RequesterContext(
            user_id=user_id,
            gender=_choice(row.get("gender"), GENDERS),
            sexual_preference=_choice(row.get("sexualPreference"), SEXUAL_PREFERENCES),
            latitude=lat,
            longitude=lng,
            tags=normalize_tags(row.get("tags")),
        )

    def candidate_from_row(self, row: dict, requester: RequesterContext) -> Candidate:
        uid = str(row.get("uid"))
        tags = normalize_tags(row.get("tags"))
        lat, lng = _coordinates(row)

        if self._is_online is not None:
            online = bool(self._is_online(uid))
        else:
            online = bool(row.get("isOnline"))

        return Candidate(
            id=uid,
            username=row.get("username") or "",
            first_name=row.get("firstName") or "",
            last_name=row.get("lastName") or "",
            age=calculate_age(row.get("birthDate"), self._today),
            birth_date=to_date(row.get("birthDate")),
            gender=_choice(row.get("gender"), GENDERS),
            city=row.get("city"),
            country=row.get("country"),
            latitude=lat,
            longitude=lng,
            fame_rating=resolve_fame_rating(row, self._default_fame),
            profile_photo_ref=row.get("profilePhoto"),
            common_tag_count=len(tags & requester.tags),
            tags=tags,
            is_online=online,
            last_login_at=to_datetime(row.get("lastLogin")),
        )

    def fetch_candidates(
        self,
        requester_id: str,
        requester: RequesterContext,
        filters: BrowseFilters,
    ) -> list[Candidate]:
        """Every eligible candidate for this request, unordered and unpaged.

        Distance is not filtered here; it needs the computed distance and
        is applied by the ranking step.
        """

        predicates = eligibility_predicates() + orientation_predicates(
            requester.gender, requester.sexual_preference
        )
        rows = self._query_profiles(predicates)
        blocked = self._get_blocked_ids(requester_id)

        candidates: list[Candidate] = []
        for row in rows:
            uid = str(row.get("uid"))
            if uid == str(requester_id) or uid in blocked:
                continue

            candidate = self.candidate_from_row(row, requester)
            if passes_filters(candidate, filters):
                candidates.append(candidate)

        logger.debug(
            "fetch_candidates rows=%s blocked=%s eligible=%s",
            len(rows),
            len(blocked),
            len(candidates),
        )
        return candidates
