"""Firestore wrappers for the profile, tag, block and interaction stores.

These helpers centralize error handling, timeouts, and logging so the
candidate pool and graph nodes stay focused on eligibility and ranking.
All reads are single batch queries; nothing here is called per candidate.
"""

from __future__ import annotations

import os
from typing import Iterable

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import DeadlineExceeded

from discover.config import config
from discover.tools.compatibility import Predicate, normalize_tags
from discover.tools.fame_rating import FameCounts
from discover.utils.errors import DeadlineExceededError, FirestoreUnavailableError
from discover.utils.logging_config import logger

PROFILES = "profiles"
BLOCKS = "blocks"
LIKES = "likes"
VISITS = "visits"
REPORTS = "reports"

_db: firestore.Client | None = None


def _store_failure(action: str, exc: Exception) -> Exception:
    """Log a failed store call and pick the exception to raise for it."""

    logger.error("Failed to %s: %s", action, str(exc))
    if isinstance(exc, DeadlineExceeded):
        return DeadlineExceededError(str(exc))
    return FirestoreUnavailableError(str(exc))


def get_db() -> firestore.Client:
    """Get a Firestore client, initializing Firebase lazily."""
    global _db

    if _db is not None:
        return _db

    try:
        if not firebase_admin._apps:
            cred_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
            if not cred_path:
                raise RuntimeError(
                    "GOOGLE_APPLICATION_CREDENTIALS is not set"
                )

            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)

        _db = firestore.client()
        return _db

    except Exception as exc:
        logger.error("Failed to initialize Firestore: %s", exc)
        raise FirestoreUnavailableError(str(exc)) from exc


def _doc_to_row(doc) -> dict:
    row = doc.to_dict() or {}
    row.setdefault("uid", doc.id)
    return row


def get_requester_profile(user_id: str) -> dict | None:
    """Fetch profiles/{user_id}; None when the user has no profile yet."""

    try:
        doc = (
            get_db()
            .collection(PROFILES)
            .document(user_id)
            .get(timeout=config.STORE_TIMEOUT)
        )
        if not doc.exists:
            return None
        return _doc_to_row(doc)
    except Exception as exc:
        raise _store_failure("fetch requester profile", exc) from exc


def query_profiles(
    predicates: Iterable[Predicate], limit: int | None = None
) -> list[dict]:
    """Return every profile row satisfying all predicates.

    Equality predicates are pushed into the Firestore query (single-field
    indexes suffice); the remaining predicates are evaluated in memory to
    avoid requiring composite indexes. Rows are read in document-id order
    with cursor pages of ``QUERY_BATCH_SIZE`` until the query is exhausted,
    so rows failing the in-memory predicates never hide later matches.
    ``limit`` (default ``MAX_CANDIDATES``) caps the rows scanned; hitting
    it is logged as a warning.
    """

    predicates = list(predicates)
    pushed = [p for p in predicates if p.pushdown]
    local = [p for p in predicates if not p.pushdown]
    cap = limit or config.MAX_CANDIDATES
    batch_size = min(config.QUERY_BATCH_SIZE, cap)

    matched: list[dict] = []
    scanned = 0
    truncated = False
    try:
        query = get_db().collection(PROFILES)
        for predicate in pushed:
            query = query.where(predicate.field, predicate.op, predicate.value)
        query = query.order_by("__name__")

        last_doc = None
        while True:
            page_size = min(batch_size, cap - scanned)
            page = query.limit(page_size)
            if last_doc is not None:
                page = page.start_after(last_doc)
            docs = list(page.stream(timeout=config.STORE_TIMEOUT))

            scanned += len(docs)
            for doc in docs:
                row = _doc_to_row(doc)
                if all(p.matches(row) for p in local):
                    matched.append(row)

            if len(docs) < page_size:
                break
            if scanned >= cap:
                truncated = True
                break
            last_doc = docs[-1]
    except Exception as exc:
        raise _store_failure("query profiles", exc) from exc

    if truncated:
        logger.warning(
            "query_profiles stopped at the %s row cap; later profiles were not scanned",
            cap,
        )
    logger.debug(
        "query_profiles pushed=%s local=%s scanned=%s matched=%s",
        len(pushed),
        len(local),
        scanned,
        len(matched),
    )
    return matched


def get_blocked_user_ids(user_id: str) -> set[str]:
    """Users in a block relationship with user_id, in either direction."""

    try:
        blocks = get_db().collection(BLOCKS)
        blocked_by_me = blocks.where("blockerId", "==", user_id).stream(
            timeout=config.STORE_TIMEOUT
        )
        blocking_me = blocks.where("blockedUserId", "==", user_id).stream(
            timeout=config.STORE_TIMEOUT
        )

        ids = {(doc.to_dict() or {}).get("blockedUserId") for doc in blocked_by_me}
        ids |= {(doc.to_dict() or {}).get("blockerId") for doc in blocking_me}
        ids.discard(None)
        return {str(i) for i in ids}
    except Exception as exc:
        raise _store_failure("fetch blocks", exc) from exc


def is_blocked_either_direction(user_id: str, other_id: str) -> bool:
    return other_id in get_blocked_user_ids(user_id)


def get_user_tags(user_id: str) -> set[str]:
    """Tag names on a profile (normalized); empty when there is no profile."""

    profile = get_requester_profile(user_id)
    if not profile:
        return set()
    return set(normalize_tags(profile.get("tags")))


def common_tag_count(user_id: str, other_user_id: str) -> int:
    return len(get_user_tags(user_id) & get_user_tags(other_user_id))


def _count(query) -> int:
    result = query.count().get(timeout=config.STORE_TIMEOUT)
    return int(result[0][0].value)


def count_fame_events(user_id: str) -> FameCounts:
    """Count the interactions the fame formula weighs for one user."""

    try:
        db = get_db()
        likers = {
            (doc.to_dict() or {}).get("fromUserId")
            for doc in db.collection(LIKES)
            .where("toUserId", "==", user_id)
            .stream(timeout=config.STORE_TIMEOUT)
        }
        liked = {
            (doc.to_dict() or {}).get("toUserId")
            for doc in db.collection(LIKES)
            .where("fromUserId", "==", user_id)
            .stream(timeout=config.STORE_TIMEOUT)
        }
        likers.discard(None)

        return FameCounts(
            likes_received=len(likers),
            matches_count=len(likers & liked),
            visits_received=_count(
                db.collection(VISITS).where("visitedUserId", "==", user_id)
            ),
            reports_received=_count(
                db.collection(REPORTS).where("reportedUserId", "==", user_id)
            ),
            blocks_received=_count(
                db.collection(BLOCKS).where("blockedUserId", "==", user_id)
            ),
        )
    except Exception as exc:
        raise _store_failure("count fame events", exc) from exc


def save_fame_rating(user_id: str, rating: int) -> None:
    try:
        get_db().collection(PROFILES).document(user_id).update(
            {
                "fameRating": rating,
                "fameRatingUpdatedAt": firestore.SERVER_TIMESTAMP,
            },
            timeout=config.STORE_TIMEOUT,
        )
    except Exception as exc:
        raise _store_failure("save fame rating", exc) from exc


def recalculate_fame_rating(user_id: str) -> int:
    """Recount a user's interactions, persist the new rating and return it."""

    rating = count_fame_events(user_id).score()
    save_fame_rating(user_id, rating)
    logger.info("Fame rating recalculated user=%s rating=%s", user_id, rating)
    return rating
