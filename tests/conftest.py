"""Shared pytest fixtures configured to use SQLite in-memory for unit tests."""

import copy
import logging
import os
import uuid
from collections import defaultdict

# Must be set before anything imports notevault.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", "")
os.environ["NOTEVAULT_SKIP_LIFESPAN_DB"] = "1"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.core.identity import IdentityProvider, UserIdentity
from notevault.core.store import (
    COLLECTIONS,
    SERVER_TIMESTAMP,
    ChangeNotifier,
    DocumentNotFound,
    DocumentStore,
    LogicalClock,
    NotifiedSubscription,
    SqlDocumentStore,
    timestamp_floor,
)
from notevault.database import create_tables, get_db_session, get_document_store
from notevault.main import app
from notevault.security.jwt import create_access_token

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


class MemoryDocumentStore(DocumentStore):
    """Dict-backed DocumentStore for tests that need no database.

    Records every data call in ``calls``. Setting ``fail_with`` makes all
    data calls raise that exception until it is cleared.
    """

    def __init__(self):
        self.documents = defaultdict(dict)
        self.notifier = ChangeNotifier()
        self.clock = LogicalClock()
        self.calls = []
        self.fail_with = None

    def _record(self, operation, collection):
        self.calls.append((operation, collection))
        if self.fail_with is not None:
            raise self.fail_with

    def _resolve(self, document, previous=None):
        return {
            key: self.clock.now(after=previous) if value is SERVER_TIMESTAMP else copy.deepcopy(value)
            for key, value in document.items()
        }

    def seed(self, collection, document):
        """Insert without recording or notifying."""
        document_id = uuid.uuid4()
        self.documents[collection][document_id] = self._resolve(document)
        return document_id

    async def create(self, collection, document):
        self._record("create", collection)
        document_id = self.seed(collection, document)
        await self.notifier.publish(collection)
        return document_id

    async def get(self, collection, document_id):
        self._record("get", collection)
        if document_id not in self.documents[collection]:
            raise DocumentNotFound(collection, document_id)
        return copy.deepcopy(self.documents[collection][document_id])

    async def replace(self, collection, document_id, document):
        self._record("replace", collection)
        existing = self.documents[collection].get(document_id)
        if existing is None:
            raise DocumentNotFound(collection, document_id)
        kept = {name: existing.get(name) for name in COLLECTIONS[collection].immutable_fields}
        floor = timestamp_floor(existing.get("timestamp"), document)
        self.documents[collection][document_id] = {**self._resolve(document, floor), **kept}
        await self.notifier.publish(collection)

    async def delete(self, collection, document_id):
        self._record("delete", collection)
        if self.documents[collection].pop(document_id, None) is None:
            raise DocumentNotFound(collection, document_id)
        await self.notifier.publish(collection)

    async def query(self, collection, filters=None):
        self._record("query", collection)
        filters = filters or {}
        return [
            (document_id, copy.deepcopy(document))
            for document_id, document in self.documents[collection].items()
            if all(document.get(field) == value for field, value in filters.items())
        ]

    def subscribe(self, collection, filters=None):
        self.calls.append(("subscribe", collection))
        return NotifiedSubscription(collection, filters, self.query, self.notifier)

    async def now(self):
        return self.clock.now()


@pytest.fixture
async def test_engine():
    """Fresh SQLite in-memory engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def store(session_factory, notifier):
    """SQL-backed document store over the in-memory database."""
    return SqlDocumentStore(session_factory, notifier=notifier, timeout=5.0)


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture
def alice():
    return UserIdentity(id="user-alice", email="alice@example.com")


@pytest.fixture
def bob():
    return UserIdentity(id="user-bob", email="bob@example.com")


@pytest.fixture
def identity(alice):
    """Identity provider with alice signed in."""
    return IdentityProvider(alice)


@pytest.fixture
def anonymous():
    return IdentityProvider()


@pytest.fixture
def auth_headers(alice):
    """Create authentication headers with a valid JWT token."""
    access_token = create_access_token(alice.id, alice.email)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def test_app(store, session_factory):
    """FastAPI app wired to the in-memory store and database."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_db_session] = _override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    """Create async test client."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac
