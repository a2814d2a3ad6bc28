"""
tests/conftest.py -- Shared test fixtures for the Bucketlist auth tests.

This module provides:
  - make_store(): isolated named shared-memory SQLite UserStore
  - user_store / auth_service: per-test store and orchestrator
  - api_client: TestClient wired to a fresh store through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment defaults must be set before any auth/core import: get_settings()
is cached at first call, DEBUG lets it generate signing secrets, the cheap
Argon2 profile keeps the suite fast, and the relaxed rate limit keeps the
signin-heavy tests under the limiter.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("HASH_TIME_COST", "1")
os.environ.setdefault("HASH_MEMORY_COST", "8192")
os.environ.setdefault("HASH_PARALLELISM", "1")
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import UserStore

_db_counter = itertools.count()


def make_store(prefix: str = "auth") -> UserStore:
    """Return a UserStore on its own named shared-memory database."""
    name = f"test_{prefix}_{next(_db_counter)}"
    return UserStore(db_url=f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return a lifespan that wires the test store into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store)
        yield

    return test_lifespan


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = make_store()
    yield store
    store.close()


@pytest.fixture
def auth_service(user_store: UserStore) -> AuthService:
    return AuthService(user_store)


@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient hitting the real routes with an isolated store.

    base_url uses localhost so TrustedHostMiddleware accepts the requests.
    """
    store = make_store("api")
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client

    store.close()
