"""
Pytest configuration: an in-memory Mongo database per test and an HTTP client
wired to the app with the store dependency overridden.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from main import app, get_store
from store import AccessStore


@pytest.fixture
def mongo_db():
    return AsyncMongoMockClient()[f"access_test_{uuid.uuid4().hex}"]


@pytest.fixture
def store(mongo_db):
    return AccessStore(mongo_db)


@pytest_asyncio.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def fail_collection_method(monkeypatch, store):
    """Make a collection method raise PyMongoError, e.g. fail_collection_method("insert_one")."""
    from pymongo.errors import PyMongoError

    def _fail(name):
        async def boom(*args, **kwargs):
            raise PyMongoError("store unavailable")

        monkeypatch.setattr(type(store.users), name, boom)

    return _fail
