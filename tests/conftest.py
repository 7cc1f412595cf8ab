"""
Pytest configuration and shared fixtures for all tests.

This file is automatically loaded by pytest and provides:
  - Test configuration (env vars set before discover.config is imported)
  - Mock Firebase wiring for Firestore wrapper tests
  - An in-memory profile/block store and a profile row factory
"""

import os
from datetime import date

import pytest
from unittest.mock import MagicMock

# Config is read when discover.config is first imported, which happens
# during collection, so the environment must be ready at conftest import.
TEST_ENV = {
    "FIREBASE_PROJECT_ID": "test-project",
    "GOOGLE_APPLICATION_CREDENTIALS": "/config/test-serviceAccountKey.json",
    "DEBUG": "True",
}
for _key, _value in TEST_ENV.items():
    os.environ[_key] = _value
os.environ.pop("SERVICE_TOKEN", None)

TODAY = date(2025, 1, 1)

# One degree of latitude in kilometers on a 6371 km sphere.
KM_PER_DEGREE = 6371 * 3.141592653589793 / 180


@pytest.fixture
def mock_firebase_app(monkeypatch):
    """
    Provide a mock Firebase app and Firestore client.

    Example:
        def test_something(mock_firebase_app):
            mock_firebase_app["db"].collection.return_value = ...
    """
    from discover.tools import firestore_tools

    mock_app = MagicMock()
    mock_db = MagicMock()

    monkeypatch.setattr("firebase_admin._apps", [mock_app])
    monkeypatch.setattr("firebase_admin.initialize_app", MagicMock(return_value=mock_app))
    monkeypatch.setattr("firebase_admin.firestore.client", MagicMock(return_value=mock_db))
    monkeypatch.setattr(firestore_tools, "_db", None)

    return {"app": mock_app, "db": mock_db}


def _profile(uid, **overrides):
    row = {
        "uid": uid,
        "username": uid,
        "firstName": uid.title(),
        "lastName": "Test",
        "gender": "female",
        "sexualPreference": "both",
        "birthDate": "1995-05-05",
        "city": "Lausanne",
        "country": "Switzerland",
        "latitude": None,
        "longitude": None,
        "fameRating": 50,
        "profilePhoto": None,
        "tags": [],
        "isOnline": False,
        "lastLogin": None,
        "isVerified": True,
        "hasCompletedOnboarding": True,
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_profile():
    """Factory for profile rows shaped like Firestore profiles/{uid} docs."""
    return _profile


class FakeStore:
    """In-memory stand-in for the profile and block stores."""

    def __init__(self):
        self.profiles = {}
        self.blocks = set()
        self.queries = []

    def add(self, row):
        self.profiles[row["uid"]] = row
        return row

    def block(self, blocker_id, blocked_id):
        self.blocks.add((blocker_id, blocked_id))

    def get_profile(self, user_id):
        row = self.profiles.get(user_id)
        return dict(row) if row is not None else None

    def query_profiles(self, predicates):
        predicates = list(predicates)
        self.queries.append(predicates)
        return [
            dict(row)
            for row in self.profiles.values()
            if all(p.matches(row) for p in predicates)
        ]

    def get_blocked_ids(self, user_id):
        ids = {b for a, b in self.blocks if a == user_id}
        ids |= {a for a, b in self.blocks if b == user_id}
        return ids

    def pool(self, **kwargs):
        from discover.tools.candidate_pool import CandidatePool

        kwargs.setdefault("today", TODAY)
        kwargs.setdefault("get_profile", self.get_profile)
        kwargs.setdefault("query_profiles", self.query_profiles)
        kwargs.setdefault("get_blocked_ids", self.get_blocked_ids)
        return CandidatePool(**kwargs)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def lausanne_scenario(fake_store, make_profile):
    """
    Requester at (46.52, 6.63), male, open to both genders, plus:
      c1: female, wants both, 3 km north, fame 60, 2 shared tags
      c2: female, wants males, 1 km north, fame 40, no shared tags
      c3: male, wants females, 0.5 km north, fame 90, 5 shared tags
    """
    lat, lng = 46.52, 6.63
    shared = ["hiking", "jazz", "chess", "sushi", "vegan"]
    fake_store.add(
        make_profile(
            "me",
            gender="male",
            sexualPreference="both",
            latitude=lat,
            longitude=lng,
            tags=shared,
        )
    )
    fake_store.add(
        make_profile(
            "c1",
            gender="female",
            sexualPreference="both",
            latitude=lat + 3 / KM_PER_DEGREE,
            longitude=lng,
            fameRating=60,
            tags=["hiking", "jazz", "surf"],
        )
    )
    fake_store.add(
        make_profile(
            "c2",
            gender="female",
            sexualPreference="male",
            latitude=lat + 1 / KM_PER_DEGREE,
            longitude=lng,
            fameRating=40,
            tags=["karaoke"],
        )
    )
    fake_store.add(
        make_profile(
            "c3",
            gender="male",
            sexualPreference="female",
            latitude=lat + 0.5 / KM_PER_DEGREE,
            longitude=lng,
            fameRating=90,
            tags=shared,
        )
    )
    return fake_store
