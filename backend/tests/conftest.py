"""
Verein Backend - Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine:           async SQLite engine on a per-test file, tables created
    ├── session_factory:  async_sessionmaker bound to that engine
    ├── db_session:       one AsyncSession for service tests
    ├── mock_db_session:  AsyncMock session for error-path tests (no DB)
    └── test_client:      HTTPX AsyncClient talking to the app, sessions from
                          session_factory via a dependency override
"""

import os
import tempfile
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any verein imports
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="verein_test_"), "app.db")
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_CREATE_SCHEMA"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from verein.database import Base  # noqa: E402
from verein.services.verein_data import AdresseData, UmsatzData, VereinData  # noqa: E402
import verein.models  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Test Data
# ══════════════════════════════════════════════════════════════════════════

def make_verein_data(**overrides) -> VereinData:
    """A valid payload; keyword arguments replace single fields."""
    values = dict(
        name="FC Test",
        emails=["a@x.com"],
        gruendungsdatum=date(1900, 2, 27),
        homepage="https://fc-test.example.com",
        adresse=AdresseData(plz="76133", ort="Karlsruhe", strasse="Moltkestrasse 30"),
        umsaetze=[UmsatzData(betrag=Decimal("1000.50"), waehrung="EUR")],
    )
    values.update(overrides)
    return VereinData(**values)


def make_verein_json(**overrides) -> dict:
    """A valid REST request body."""
    body = {
        "name": "FC Test",
        "emails": ["a@x.com"],
        "gruendungsdatum": "1900-02-27",
        "homepage": "https://fc-test.example.com",
        "adresse": {"plz": "76133", "ort": "Karlsruhe", "strasse": "Moltkestrasse 30"},
        "umsaetze": [{"betrag": 1000.5, "waehrung": "EUR"}],
    }
    body.update(overrides)
    return body


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A fresh SQLite database per test, created from the ORM metadata.

    File-based (not :memory:) so several sessions see the same data.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'verein.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        await verein_read_service.find(mock_db_session, {})
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    Provides an async HTTP test client for REST and GraphQL tests.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from verein.database import get_db_session
    from verein.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
