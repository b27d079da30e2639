"""
pytest configuration and shared fixtures for the Hazard Alert API tests.

Tests never need a live MongoDB or real routing / geocoding keys:
  1. connect_to_mongo / close_mongo_connection are patched to no-ops so the
     lifespan (run by TestClient) does not try to reach a database.
  2. db_client is reset to "disconnected"; routes that need a database get
     the in-memory FakeDB through a get_db dependency override.
  3. Provider gateways are patched per test (or driven by httpx.MockTransport).
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ORS_API_KEY", "")


# ── In-memory Mongo double ────────────────────────────────────────────────────

class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    """Implements the slice of the Motor collection API the store uses."""

    def __init__(self):
        self._docs = []
        self.indexes = []

    async def insert_one(self, doc):
        oid = ObjectId()
        self._docs.append({**doc, "_id": oid})
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return kwargs.get("name", str(keys))

    async def count_documents(self, query):
        return sum(1 for d in self._docs if self._matches(d, query))

    def find(self, query=None):
        query = query or {}
        return FakeCursor(d for d in self._docs if self._matches(d, query))

    def seed(self, **fields):
        """Insert a raw document synchronously (no validation, like a hand-edited record)."""
        doc = {"timestamp": datetime.now(tz=timezone.utc), **fields, "_id": ObjectId()}
        self._docs.append(doc)
        return doc

    @staticmethod
    def _matches(doc, query):
        for key, cond in query.items():
            value = doc.get(key)
            if isinstance(cond, dict):
                if "$gte" in cond and (value is None or value < cond["$gte"]):
                    return False
            elif value != cond:
                return False
        return True


class FakeDB:
    def __init__(self):
        self._cols = {}

    def __getitem__(self, name):
        if name not in self._cols:
            self._cols[name] = FakeCollection()
        return self._cols[name]


class BrokenCollection:
    """Every query fails, as if MongoDB dropped the connection mid-request."""

    def find(self, *_args, **_kwargs):
        raise ConnectionError("mongo went away")

    async def insert_one(self, _doc):
        raise ConnectionError("mongo went away")


class BrokenDB:
    def __getitem__(self, _name):
        return BrokenCollection()


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def mock_db():
    """
    Patch the MongoDB lifecycle for every test and mark the client disconnected.

    Tests that need a database use the fake_db fixture plus a get_db override.
    """
    with (
        patch("hazard_alert.main.connect_to_mongo", new_callable=AsyncMock),
        patch("hazard_alert.main.close_mongo_connection", new_callable=AsyncMock),
    ):
        import hazard_alert.core.database as db_module

        original_client = db_module.db_client.client
        original_db = db_module.db_client.db

        db_module.db_client.client = None
        db_module.db_client.db = None

        yield

        db_module.db_client.client = original_client
        db_module.db_client.db = original_db


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate-limit counters are in memory; clear them so tests stay independent."""
    from hazard_alert.core.rate_limit import limiter

    try:
        limiter._limiter.storage.reset()
    except Exception:
        pass  # Some storage backends don't support reset
    yield


@pytest.fixture()
def fake_db():
    return FakeDB()


@pytest.fixture()
async def client(mock_db):  # noqa: ARG001 — mock_db must run first
    """HTTPX async test client wired to the FastAPI app, database disconnected."""
    from hazard_alert.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def hazard_client(fake_db):
    """HTTPX async test client with get_db overridden to the in-memory FakeDB."""
    from hazard_alert.core.database import get_db
    from hazard_alert.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def broken_db():
    return BrokenDB()
