"""
Pytest fixtures and configuration for all tests.
"""

import os

# Settings lee el entorno al importarse la app: valores de test antes de cualquier import de app.*
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "codetrack_test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-at-least-32-chars-long")

import asyncio
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from mongomock_motor import AsyncMongoMockClient

from app.core.config import Settings


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator:
    """
    Provide a clean in-memory database for each test.

    mongomock-motor exposes the motor API, so repositories run unchanged.
    """
    client = AsyncMongoMockClient()
    db = client[f"codetrack_test_{uuid.uuid4().hex[:8]}"]

    yield db

    client.close()


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts and no GitHub token."""
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        jwt_secret="test-secret-key-at-least-32-chars-long",
        github_token=None,
        official_api_timeout=1.0,
        mirror_timeout=1.0,
        html_timeout=1.0,
        adapter_timeout=5.0,
        sync_max_concurrency=3,
    )


@pytest.fixture
def sample_user_data():
    """Sample student document for testing."""
    return {
        "_id": "student_123",
        "email": "student@example.com",
        "name": "Test Student",
        "role": "student",
        "created_at": datetime.now(timezone.utc),
        "last_login_at": None,
        "is_active": True,
        "platforms": {},
    }


@pytest.fixture
async def student(test_db, sample_user_data):
    """Insert the sample student and return its id."""
    await test_db["users"].insert_one(dict(sample_user_data))
    return sample_user_data["_id"]


@pytest.fixture
def leetcode_stats():
    """Normalized stats as the LeetCode adapter returns them."""
    return {
        "username": "alice",
        "total_solved": 120,
        "easy_solved": 60,
        "medium_solved": 45,
        "hard_solved": 15,
        "ranking": 150000,
        "contribution_points": 10,
        "reputation": 3,
        "contests": 4,
        "contest_rating": 1550,
        "fetch_method": "official_api",
    }


@pytest.fixture
def codeforces_stats():
    """Normalized stats as the Codeforces adapter returns them."""
    return {
        "username": "alice_cf",
        "rating": 1400,
        "max_rating": 1720,
        "rank": "specialist",
        "max_rank": "expert",
        "contribution": 0,
        "friend_of_count": 12,
        "problems_solved": 230,
        "contests": 18,
        "recent_contests": [],
        "fetch_method": "official_api",
    }


@pytest.fixture
def github_stats():
    """Normalized stats as the GitHub adapter returns them."""
    return {
        "username": "alice",
        "public_repos": 12,
        "followers": 8,
        "following": 3,
        "total_contributions": 640,
        "languages": {"Python": 6, "TypeScript": 3, "Go": 1},
        "repositories": [],
        "fetch_method": "official_api",
    }


class StubAdapter:
    """Adapter double: returns a canned result or raises a canned exception."""

    def __init__(self, outcome=None, delay: float = 0):
        self.outcome = outcome
        self.delay = delay
        self.calls: list[str] = []

    async def fetch_stats(self, identifier, client=None):
        self.calls.append(identifier)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return dict(self.outcome) if self.outcome is not None else None


class StubRegistry:
    """Registry double keyed by platform id. Every listed platform counts as supported."""

    def __init__(self, adapters: dict):
        self.adapters = adapters

    def resolve(self, platform_id, base_url=None):
        return self.adapters[platform_id.strip().lower()]

    def is_supported(self, platform_id):
        return platform_id.strip().lower() in self.adapters

    def catalog(self):
        return []


@pytest.fixture
def stub_registry():
    """
    Build a StubRegistry from {platform_id: outcome}.

    An outcome is a stats dict, None (profile not found) or an exception
    instance. `delays` maps platform ids to seconds to sleep first.
    """
    def _build(outcomes: dict, delays: dict | None = None) -> StubRegistry:
        delays = delays or {}
        return StubRegistry({
            platform_id: StubAdapter(outcome, delay=delays.get(platform_id, 0))
            for platform_id, outcome in outcomes.items()
        })
    return _build
