"""
tests/conftest.py -- Shared test fixtures for Chirpy.

This module provides:
  - store: fresh in-memory AuthStore per test (unit tests)
  - sessions: SessionManager over that store with a fixed test secret
  - _make_test_store(): isolated named shared-memory DB for API tests
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread.

Environment variables must be set before any api/auth import so get_settings()
sees them on its first (cached) call.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any api/auth/core import. DEBUG=true lets
# get_settings() auto-generate JWT_SECRET instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PLATFORM", "dev")
os.environ.setdefault("POLKA_KEY", "f271c81ff7084ee5b99a5091b42d486e")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.sessions import SessionManager
from auth.store import AuthStore
from core.config import get_settings
from core.metrics import HitCounter

TEST_SECRET = "test-signing-secret-0123456789abcdef"

# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AuthStore, None, None]:
    s = AuthStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def token_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def sessions(store: AuthStore, token_secret: str) -> SessionManager:
    return SessionManager(store, token_secret)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> AuthStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return AuthStore(f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: AuthStore):
    """Return an async context manager that replaces the real lifespan.

    Uses the same signing secret as the running app so tokens minted by the
    app and tokens minted by tests are interchangeable.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.sessions = SessionManager(store, get_settings().jwt_secret)
        app.state.hits = HitCounter()
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AuthStore], None, None]:
    """Yield (client, store) for API integration tests.

    One client per test module; each module gets its own database.
    """
    store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()
