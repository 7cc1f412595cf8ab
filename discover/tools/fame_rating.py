"""Fame rating formula.

The rating is a reputation score in [0, 100] derived from how other users
interacted with a profile. Event bookkeeping lives elsewhere; this module
only turns counts into a score and decides who needs rescoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import floor

from discover.utils.errors import InvalidInputError

BASE_RATING = 50
POINTS_PER_LIKE = 2
POINTS_PER_MATCH = 3
POINTS_PER_VISIT = 0.5
POINTS_PER_REPORT = -10
POINTS_PER_BLOCK = -5

MIN_RATING = 0
MAX_RATING = 100

# Events that change the target's rating.
FAME_EVENTS = (
    "like", "unlike", "match", "unmatch", "visit", "block", "unblock", "report",
)
# Events that always change both users' match counts.
MATCH_EVENTS = ("match", "unmatch")


def calculate_fame_rating(
    likes_received: int = 0,
    matches_count: int = 0,
    visits_received: int = 0,
    reports_received: int = 0,
    blocks_received: int = 0,
) -> int:
    """Aggregate interaction counts into a clamped 0-100 rating.

    The raw total may go negative (many reports); only the final rounded
    value is clamped.
    """

    raw = (
        BASE_RATING
        + likes_received * POINTS_PER_LIKE
        + matches_count * POINTS_PER_MATCH
        + visits_received * POINTS_PER_VISIT
        + reports_received * POINTS_PER_REPORT
        + blocks_received * POINTS_PER_BLOCK
    )
    rounded = int(floor(raw + 0.5))
    return max(MIN_RATING, min(MAX_RATING, rounded))


@dataclass(frozen=True)
class FameCounts:
    likes_received: int = 0
    matches_count: int = 0
    visits_received: int = 0
    reports_received: int = 0
    blocks_received: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "FameCounts":
        return cls(
            likes_received=int(data.get("likesReceived", 0) or 0),
            matches_count=int(data.get("matches", 0) or 0),
            visits_received=int(data.get("visitsReceived", 0) or 0),
            reports_received=int(data.get("reportsReceived", 0) or 0),
            blocks_received=int(data.get("blocksReceived", 0) or 0),
        )

    def score(self) -> int:
        return calculate_fame_rating(
            self.likes_received,
            self.matches_count,
            self.visits_received,
            self.reports_received,
            self.blocks_received,
        )


def resolve_fame_rating(row: dict, default: int = BASE_RATING) -> int:
    """Read a profile's rating, rescoring from raw counts when it is stale.

    A stored ``fameRating`` wins. When it is missing but ``fameCounts`` are
    attached, the formula is applied; otherwise the default rating is used.
    """

    stored = row.get("fameRating")
    if stored is not None:
        try:
            return max(MIN_RATING, min(MAX_RATING, int(stored)))
        except (TypeError, ValueError):
            pass

    counts = row.get("fameCounts")
    if isinstance(counts, dict):
        return FameCounts.from_dict(counts).score()

    return default


def users_to_rescore(
    event: str, from_user_id: str, to_user_id: str, is_match: bool = False
) -> list[str]:
    """Return user ids whose rating must be recomputed after an event.

    The target is always rescored. A match is symmetric, so match and
    unmatch events, and any event that creates or breaks a match (a like,
    an unlike, a block), also rescore the actor.
    """

    if event not in FAME_EVENTS:
        raise InvalidInputError("INVALID_EVENT", f"Unknown fame event: {event}")

    affected = [to_user_id]
    if (is_match or event in MATCH_EVENTS) and from_user_id != to_user_id:
        affected.append(from_user_id)
    return affected
