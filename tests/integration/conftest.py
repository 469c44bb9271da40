"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.dependencies import get_adapter_registry
from app.core.security import create_access_token
from app.database import Database
from app.main import app


@pytest.fixture
async def client(test_db):
    """
    HTTP client for testing API endpoints.

    Points the Database singleton at the in-memory test database. The app
    lifespan is not run, so no real MongoDB connection is attempted.
    """
    original_db = Database.db
    Database.db = test_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    Database.db = original_db
    app.dependency_overrides.pop(get_adapter_registry, None)


@pytest.fixture
async def auth_headers(student, sample_user_data):
    """Bearer headers for the sample student."""
    token = create_access_token(student, sample_user_data["email"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def use_registry():
    """Replace the adapter registry used by the endpoints."""
    def _use(registry):
        app.dependency_overrides[get_adapter_registry] = lambda: registry
    return _use
