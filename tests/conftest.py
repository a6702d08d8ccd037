"""
pytest configuration and shared fixtures for the NutriCoach API tests.

Tests never need a live MongoDB or Gemini key:
  1. AI_MOCK_MODE=true is set before the app is imported, so GeminiClient
     returns its canned reply.
  2. db_client is forced to "disconnected" for every test; route tests
     that need storage override get_db with the in-memory FakeDB below.
  3. Each test gets a fresh chat limiter driven by a FakeClock, and the
     slowapi auth limiter is reset, so no quota leaks between tests.
"""

import os
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("AI_MOCK_MODE", "true")
os.environ.setdefault("ENVIRONMENT", "test")


# ── Time ──────────────────────────────────────────────────────────────────────

class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


# ── In-memory MongoDB emulator ─────────────────────────────────────────────────

def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            if "$in" in cond and value not in cond["$in"]:
                return False
            if "$all" in cond and not all(item in (value or []) for item in cond["$all"]):
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    """Async replica of the slice of the Motor collection API the routes use."""

    def __init__(self):
        self.docs: list[dict] = []

    async def find_one(self, query: dict):
        return next((d for d in self.docs if _matches(d, query)), None)

    def find(self, query: dict | None = None) -> FakeCursor:
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def insert_one(self, doc: dict):
        stored = {**doc, "_id": doc.get("_id", ObjectId())}
        self.docs.append(stored)
        result = MagicMock()
        result.inserted_id = stored["_id"]
        return result

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        result = MagicMock()
        doc = await self.find_one(query)
        if doc is None:
            result.matched_count = 0
            if not upsert:
                return result
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc["_id"] = ObjectId()
            doc.update(update.get("$setOnInsert", {}))
            self.docs.append(doc)
        else:
            result.matched_count = 1
        doc.update(update.get("$set", {}))
        return result

    async def delete_one(self, query: dict):
        result = MagicMock()
        doc = await self.find_one(query)
        result.deleted_count = 0
        if doc is not None:
            self.docs.remove(doc)
            result.deleted_count = 1
        return result


class FakeDB:
    """Fake MongoDB database — lazily creates collections."""

    def __init__(self):
        self._cols: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._cols:
            self._cols[name] = FakeCollection()
        return self._cols[name]


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def mock_db():
    """Force db_client into the disconnected state for every test."""
    import nutricoach.core.database as db_module

    original_client = db_module.db_client.client
    original_db = db_module.db_client.db
    db_module.db_client.client = None
    db_module.db_client.db = None

    yield

    db_module.db_client.client = original_client
    db_module.db_client.db = original_db


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def chat_limiter(clock):
    """Fresh chat limiter (20 per 60 s, fake clock) installed on the app."""
    from nutricoach.core.chat_limiter import FixedWindowRateLimiter
    from nutricoach.core.rate_limit import limiter as auth_limiter
    from nutricoach.main import app

    original = app.state.chat_limiter
    fresh = FixedWindowRateLimiter(window_ms=60_000, max_requests=20, clock=clock)
    app.state.chat_limiter = fresh
    auth_limiter.reset()

    yield fresh

    app.state.chat_limiter = original


@pytest.fixture()
def fake_db():
    """Fresh in-memory DB for each test."""
    return FakeDB()


@pytest.fixture()
async def client():
    """HTTPX async client against the app with the database disconnected."""
    from nutricoach.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def db_client(fake_db):
    """HTTPX client with get_db overridden to return the in-memory FakeDB."""
    from nutricoach.core.database import get_db
    from nutricoach.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def register_user(ac, email: str = "test@example.com", password: str = "securepass123") -> dict:
    """Register a user and return Authorization headers for it."""
    r = await ac.post("/auth/register", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture()
async def auth_headers(db_client):
    return await register_user(db_client)


@pytest.fixture()
def make_user(db_client):
    """Factory: `headers = await make_user("other@example.com")`."""

    async def _make(email: str = "test@example.com", password: str = "securepass123") -> dict:
        return await register_user(db_client, email, password)

    return _make
