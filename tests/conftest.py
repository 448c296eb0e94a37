"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os

import pytest

# Settings are read at import time by the application module; pin a test
# environment before anything from bookshare is imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.pop("REDIS_URL", None)

from fastapi.testclient import TestClient  # noqa: E402

from bookshare.core.config.settings import Settings  # noqa: E402
from bookshare.infrastructure.cache.cache_manager import CacheService  # noqa: E402
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore  # noqa: E402
from bookshare.infrastructure.database.session import Database  # noqa: E402
from tests.test_fixtures import (  # noqa: E402
    FakeClock,
    FakeExternalCache,
    FakeIdentityProvider,
)

IN_MEMORY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings for a self-contained test application (no Redis, in-memory store)."""
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=IN_MEMORY_DATABASE_URL,
        REDIS_URL=None,
        LOG_FORMAT="console",
    )


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_external():
    """A connected, healthy external cache tier."""
    return FakeExternalCache()


@pytest.fixture
def fallback_store(fake_clock):
    return BoundedCacheStore(100, clock=fake_clock)


@pytest.fixture
def cache_service(fake_external, fallback_store):
    return CacheService(fake_external, fallback_store, default_ttl=60)


# ============================================================================
# Persistence Fixtures
# ============================================================================


@pytest.fixture
async def database():
    """A fresh in-memory database per test."""
    db = Database(IN_MEMORY_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


# ============================================================================
# Identity Fixtures
# ============================================================================


@pytest.fixture
def fake_identity():
    return FakeIdentityProvider()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(settings, fake_external, fake_identity):
    """
    Application wired with the fake cache tier and identity provider.

    The lifespan builds its own in-memory database when the client starts.
    """
    from bookshare.application.app import create_app

    application = create_app(settings)
    application.state.external_cache = fake_external
    application.state.identity = fake_identity
    return application


@pytest.fixture
def client(app):
    """TestClient with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
