"""
tests/conftest.py -- Shared test fixtures for Shopfront unit and integration tests.

This module provides:
  - _db_url(): named shared-memory SQLite URI for one isolated database
  - user_store / catalog_store / cache_store / uploads: fresh per-test stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and RATE_LIMIT_ENABLED must be set before any project import:
get_settings() auto-generates SECRET_KEY only in dev mode, and the shared
limiter reads its enabled flag once at import.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_services
from auth.models import UserType
from auth.store import UserStore
from cache.store import CacheStore
from catalog.store import CatalogStore
from core.config import get_settings
from factories import bearer, make_user
from uploads.storage import UploadStorage

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _db_url(name: str) -> str:
    """Named shared-memory SQLite URI. The DB lives until its engine is disposed."""
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Per-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=_db_url("test_users"))
    yield store
    store.close()


@pytest.fixture
def catalog_store() -> Generator[CatalogStore, None, None]:
    store = CatalogStore(db_url=_db_url("test_catalog"))
    yield store
    store.close()


@pytest.fixture
def cache_store() -> Generator[CacheStore, None, None]:
    store = CacheStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def uploads(tmp_path) -> UploadStorage:
    return UploadStorage(tmp_path / "images")


@pytest.fixture
def mailer() -> MagicMock:
    return MagicMock()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(**stores):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the production databases.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app, app_settings=get_settings(), **stores)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, dict[str, str], int], None, None]:
    """Yield (client, admin_headers, admin_id) for API integration tests.

    One client per test module: the databases, cache and upload directory
    are shared by the tests of that module. The mail transport is a
    MagicMock reachable as client.app.state.mailer.
    """
    user_store = UserStore(db_url=_db_url("test_api_users"))
    catalog = CatalogStore(db_url=_db_url("test_api_catalog"))
    cache = CacheStore(":memory:")

    admin = make_user(user_store, "admin@example.com", "adminpass1", user_type=UserType.ADMIN)

    app.router.lifespan_context = _patch_lifespan(
        user_store=user_store,
        catalog=catalog,
        cache=cache,
        mailer=MagicMock(),
        uploads=UploadStorage(tmp_path_factory.mktemp("images")),
    )

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, bearer(admin), admin.id

    cache.close()
    catalog.close()
    user_store.close()
