"""Pytest configuration and fixtures."""
import os

# Settings requires these; real values come from the environment or .env.
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from habitflow.main import app
from habitflow.config import settings


@pytest_asyncio.fixture
async def app_client():
    """
    Create a test client with a clean test database.

    This fixture:
    - Connects to a throwaway database (skips the test if MongoDB is down)
    - Yields an async HTTP client for testing
    - Drops the test database after each test
    """
    test_client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=2000)
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not reachable")

    test_db_name = f"{settings.mongodb_db_name}_test"
    test_db = test_client[test_db_name]

    # Override the database dependency
    from habitflow.database import database
    original_db = database.db
    database.db = test_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    await test_client.drop_database(test_db_name)

    database.db = original_db
    test_client.close()


@pytest_asyncio.fixture
async def auth_headers(app_client):
    """Register a user and return bearer headers for it."""
    await app_client.post(
        "/auth/register",
        json={"email": "alex@example.com", "password": "password123", "name": "Alex"},
    )
    response = await app_client.post(
        "/auth/login",
        json={"email": "alex@example.com", "password": "password123"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
