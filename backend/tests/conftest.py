"""
Records Service: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── store_config: StoreConfig with short timeout
    ├── fake_collection: in-memory stand-in for an AsyncCollection
    ├── fake_provider: ConnectionProvider double yielding fake_collection
    ├── record_store: RecordStore wired to fake_provider
    └── test_client: HTTPX AsyncClient against a fresh app, store overridden
"""

import copy
import os
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must be set BEFORE records_service.config is imported
os.environ["MONGODB_USERNAME"] = "test-user"
os.environ["MONGODB_PASSWORD"] = "test-password"
os.environ["MONGODB_ENDPOINT"] = "localhost:27017"
os.environ["SENTRY_DSN"] = ""
os.environ["METRICS_PORT"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from records_service.config import StoreConfig  # noqa: E402
from records_service.database import get_connection_provider  # noqa: E402
from records_service.services.record_store import RecordStore, get_record_store  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class _FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._documents if length is None else self._documents[:length]


class FakeCollection:
    """
    Just enough of pymongo's AsyncCollection for RecordStore.

    Documents live in insertion order in `documents`. Put an exception in
    `fail_on[<method name>]` to make that method raise it.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.fail_on: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    @staticmethod
    def _matches(document: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    def find(self, query: Mapping[str, Any]) -> _FakeCursor:
        self._check("find")
        return _FakeCursor([copy.deepcopy(d) for d in self.documents if self._matches(d, query)])

    async def find_one(self, query: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        self._check("find_one")
        for document in self.documents:
            if self._matches(document, query):
                return copy.deepcopy(document)
        return None

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        self._check("insert_one")
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_replace(self, query, replacement, upsert=False, return_document=None):
        self._check("find_one_and_replace")
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                new_document = copy.deepcopy(replacement)
                new_document["_id"] = document["_id"]
                self.documents[index] = new_document
                return copy.deepcopy(new_document)
        if not upsert:
            return None
        new_document = copy.deepcopy(replacement)
        new_document.setdefault("_id", query.get("_id"))
        self.documents.append(new_document)
        return copy.deepcopy(new_document)


class FakeProvider:
    """ConnectionProvider double: counts connections, can be made to fail."""

    def __init__(self, collection: FakeCollection):
        self.collection = collection
        self.connect_error: Optional[Exception] = None
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        self.opened += 1
        try:
            yield SimpleNamespace(client=None, collection=self.collection)
        finally:
            self.closed += 1

    async def check(self) -> bool:
        return self.connect_error is None


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def store_config():
    return StoreConfig(
        username="test-user",
        password="test-password",
        endpoint="localhost:27017",
        timeout=0.2,
    )


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def fake_provider(fake_collection):
    return FakeProvider(fake_collection)


@pytest.fixture
def record_store(fake_provider):
    return RecordStore(fake_provider)


@pytest.fixture
def app(fake_provider, record_store):
    """A fresh application with the store and provider overridden."""
    from records_service.main import create_app

    application = create_app()
    application.dependency_overrides[get_connection_provider] = lambda: fake_provider
    application.dependency_overrides[get_record_store] = lambda: record_store
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_ping(test_client):
            response = await test_client.get("/ping")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
