"""Pytest configuration for integration tests.

Integration tests talk to a real MongoDB and, optionally, a real media
panel. They are skipped unless the matching environment variables are set.
"""

import os
import warnings
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from relaycast.schemas.init import DOCUMENT_MODELS, init_beanie_odm

warnings.filterwarnings("ignore", category=DeprecationWarning, module="beanie.*")


@pytest.fixture(scope="session")
def mongo_url() -> str:
    url = os.environ.get("MONGO_URL_TEST")
    if not url:
        pytest.skip("MONGO_URL_TEST environment variable required")
    return url


@pytest_asyncio.fixture(scope="function")
async def mongo_client(mongo_url: str) -> AsyncGenerator[AsyncIOMotorClient]:
    """Create MongoDB client for testing (function-scoped to avoid event loop issues)."""
    client: AsyncIOMotorClient = AsyncIOMotorClient(mongo_url)
    yield client
    client.close()


@pytest_asyncio.fixture(scope="function")
async def beanie_db(mongo_client: AsyncIOMotorClient) -> AsyncGenerator[AsyncIOMotorDatabase]:
    """Initialize Beanie against `relaycast_test` with empty collections."""
    db = mongo_client["relaycast_test"]
    await init_beanie_odm(db)
    for model in DOCUMENT_MODELS:
        await model.get_pymongo_collection().delete_many({})
    yield db
