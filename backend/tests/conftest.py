"""
Shared fixtures: an in-memory MongoDB, seeded users and an API client
"""
import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import database
import services.realtime
from database import to_iso
from services.identity import IdentityProvider, get_identity_provider
from services.realtime import Channel
from services.session_cache import session_cache


def run(coro):
    """Run a coroutine from synchronous test code"""
    return asyncio.run(coro)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db(monkeypatch):
    mock_db = AsyncMongoMockClient()[f"test_{uuid.uuid4().hex[:8]}"]
    monkeypatch.setattr(database, "db", mock_db)
    session_cache.clear()
    yield mock_db
    session_cache.clear()


@pytest.fixture
def channel(monkeypatch):
    fresh = Channel()
    monkeypatch.setattr(services.realtime, "channel", fresh)
    return fresh


class Clock:
    """Manually advanced clock for time-dependent services"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return Clock()


async def insert_user(db, role="client", name=None):
    user_id = f"user_{uuid.uuid4().hex[:12]}"
    token = f"sess_{uuid.uuid4().hex}"
    now = datetime.now(timezone.utc)
    user = {
        "user_id": user_id,
        "email": f"{user_id}@example.com",
        "name": name or role.title(),
        "picture": None,
        "role": role,
        "created_at": to_iso(now),
    }
    await db.users.insert_one(dict(user))
    await db.user_sessions.insert_one({
        "user_id": user_id,
        "session_token": token,
        "expires_at": to_iso(now + timedelta(days=7)),
        "created_at": to_iso(now),
    })
    return user, token


def auth(token):
    return {"Authorization": f"Bearer {token}"}


IDENTITIES = {
    "sid_ana": {"email": "ana@example.com", "name": "Ana", "picture": None},
    "sid_leo": {"email": "leo@example.com", "name": "Leo", "picture": None},
}


def identity_handler(request: httpx.Request) -> httpx.Response:
    data = IDENTITIES.get(request.headers.get("X-Session-ID"))
    if data is None:
        return httpx.Response(401, json={"detail": "unknown session"})
    return httpx.Response(200, json=data)


@pytest.fixture
def api(db, channel):
    from server import app

    fake_identity = IdentityProvider(base_url="https://auth.test", transport=httpx.MockTransport(identity_handler))
    app.dependency_overrides[get_identity_provider] = lambda: fake_identity
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    """One user per role: {role: (user_doc, token)}"""
    return {role: run(insert_user(db, role)) for role in ("client", "artist", "admin")}
