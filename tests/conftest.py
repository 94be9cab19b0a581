"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from tasktrack.config import settings
from tasktrack.main import app


def make_cursor(docs):
    """Mock Motor cursor supporting ``sort`` chaining and ``to_list``."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


def make_collection():
    """Mock Motor collection; ``find`` and ``aggregate`` return cursors synchronously."""
    collection = AsyncMock()
    collection.find = MagicMock(return_value=make_cursor([]))
    collection.aggregate = MagicMock(return_value=make_cursor([]))
    return collection


@pytest.fixture
def collections():
    """Mock collections by name, created on first access."""
    return {}


@pytest.fixture
def mock_db(collections):
    """Mock database handing out the collections of the ``collections`` fixture."""

    def get_collection(name):
        if name not in collections:
            collections[name] = make_collection()
        return collections[name]

    db = MagicMock()
    db.__getitem__.side_effect = get_collection
    return db


@pytest_asyncio.fixture
async def app_client():
    """
    Create a test client with a clean test database.

    This fixture:
    - Skips the test when no MongoDB server is reachable
    - Yields an async HTTP client for testing
    - Drops the test database after each test
    """
    test_client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=1000)
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not reachable")

    test_db_name = f"{settings.mongodb_db_name}_test"
    test_db = test_client[test_db_name]

    # Override the database dependency
    from tasktrack.database import database
    original_db = database.db
    database.db = test_db
    await database.ensure_indexes()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    await test_client.drop_database(test_db_name)

    database.db = original_db
    test_client.close()


async def register_and_login(client, email, name="Test User", password="password123"):
    """Register a user and return (user_id, auth headers)."""
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    user_id = response.json()["id"]

    login_response = await client.post("/auth/login", json={"email": email, "password": password})
    token = login_response.json()["access_token"]
    return user_id, {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def api_client(mock_db):
    """Test client whose requests run against the ``mock_db`` collections."""
    from tasktrack.database import get_database

    app.dependency_overrides[get_database] = lambda: mock_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


def auth_headers(user_id):
    """Bearer headers for a user, without going through /auth/login."""
    from tasktrack.utils.auth import create_access_token

    return {
        "Authorization": f"Bearer {create_access_token(user_id)}",
        "Content-Type": "application/json",
    }
