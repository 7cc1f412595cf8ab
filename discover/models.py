"""Request-scoped value types for the browse pipeline.

All of these are created fresh per request and never cached across
requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

Gender = Literal["male", "female"]
SexualPreference = Literal["male", "female", "both"]
SortKey = Literal["distance", "age", "fame", "tags"]
SortDirection = Literal["asc", "desc"]

GENDERS: tuple[str, ...] = ("male", "female")
SEXUAL_PREFERENCES: tuple[str, ...] = ("male", "female", "both")
SORT_KEYS: tuple[str, ...] = ("distance", "age", "fame", "tags")
SORT_DIRECTIONS: tuple[str, ...] = ("asc", "desc")


@dataclass(frozen=True)
class RequesterContext:
    """What the ranking needs to know about the requesting user."""

    user_id: str
    gender: Gender | None = None
    sexual_preference: SexualPreference | None = None
    latitude: float | None = None
    longitude: float | None = None
    tags: frozenset[str] = frozenset()


@dataclass(frozen=True)
class BrowseFilters:
    """Optional user-supplied filters. ``None`` means "not filtering"."""

    min_age: int | None = None
    max_age: int | None = None
    max_distance_km: int | None = None
    min_fame: int | None = None
    max_fame: int | None = None
    tags: frozenset[str] | None = None
    location: str | None = None


@dataclass(frozen=True)
class SortSpec:
    key: SortKey = "distance"
    direction: SortDirection = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass
class Candidate:
    """A profile that may be suggested to the requester."""

    id: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    age: int | None = None
    birth_date: date | None = None
    gender: str | None = None
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    fame_rating: int = 50
    profile_photo_ref: str | None = None
    distance_km: int | None = None
    common_tag_count: int = 0
    tags: frozenset[str] = frozenset()
    is_online: bool = False
    last_login_at: datetime | None = None

    def to_dict(self) -> dict:
        """Serialize for API responses (birth date stays internal)."""

        return {
            "id": self.id,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "age": self.age,
            "gender": self.gender,
            "city": self.city,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "fameRating": self.fame_rating,
            "profilePhotoRef": self.profile_photo_ref,
            "distanceKm": self.distance_km,
            "commonTagCount": self.common_tag_count,
            "tags": sorted(self.tags),
            "isOnline": self.is_online,
            "lastLoginAt": (
                self.last_login_at.isoformat() if self.last_login_at else None
            ),
        }


@dataclass
class RankingResult:
    page: list[Candidate] = field(default_factory=list)
    total: int = 0
