"""
tests/conftest.py -- Shared test fixtures for the Chirpy test suite.

This module provides:
  - FrozenClock: a settable clock so expiry can be tested without sleeping
  - auth_store / refresh_tokens / chirp_store: isolated in-memory stores
  - settings: a Settings instance with a fixed secret and fast bcrypt
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync dependencies in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each fixture call gets a fresh name, so tests never share rows.

The DEBUG env var must be set before any app import so get_settings()
auto-generates JWT_SECRET in dev mode instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# Set DEBUG before any core/ import so get_settings() does not raise.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.refresh import RefreshTokenStore
from auth.store import AuthStore
from chirps.store import ChirpStore
from core.config import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_POLKA_KEY = "f271c81ff7084ee5b99a5091b42d486e"


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def _memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def auth_store(clock: FrozenClock) -> Generator[AuthStore, None, None]:
    store = AuthStore(_memory_url("auth"), clock=clock)
    yield store
    store.close()


@pytest.fixture
def refresh_tokens(auth_store: AuthStore, clock: FrozenClock) -> RefreshTokenStore:
    return RefreshTokenStore(auth_store, lifetime=timedelta(days=60), clock=clock)


@pytest.fixture
def chirp_store(clock: FrozenClock) -> Generator[ChirpStore, None, None]:
    store = ChirpStore(_memory_url("chirps"), clock=clock)
    yield store
    store.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        debug=True,
        platform="dev",
        jwt_secret=TEST_SECRET,
        polka_key=TEST_POLKA_KEY,
        bcrypt_rounds=4,
        access_token_ttl_seconds=3600,
        refresh_token_days=60,
    )


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, auth_store: AuthStore, chirp_store: ChirpStore, refresh, clock):
    """Return an async context manager that replaces the real lifespan.

    Wires the test stores, settings and clock into app.state so routes see
    isolated in-memory DBs and a controllable "now".
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.clock = clock
        app.state.auth_store = auth_store
        app.state.chirp_store = chirp_store
        app.state.refresh_tokens = refresh
        yield

    return test_lifespan


@pytest.fixture
def api_client(
    settings: Settings,
    auth_store: AuthStore,
    chirp_store: ChirpStore,
    refresh_tokens: RefreshTokenStore,
    clock: FrozenClock,
) -> Generator[TestClient, None, None]:
    """TestClient over the real app, with fresh stores and a frozen clock."""
    app.router.lifespan_context = _patch_lifespan(settings, auth_store, chirp_store, refresh_tokens, clock)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


def register_and_login(client: TestClient, email: str, password: str = "hunter2-password") -> dict:
    """Create an account and log in; return the login response body."""
    resp = client.post("/api/users", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
