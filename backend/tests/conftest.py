"""
Notekeeper Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock AsyncSession for pure unit tests
    ├── sample_note_data: Field values for a stored note
    ├── make_settings: Settings factory for an in-memory SQLite app
    ├── app_factory: Builds an app from settings with tables created
    ├── app / db_session: App with a generous rate limit, and a real session
    └── test_client: HTTPX AsyncClient wired to `app`
"""

import os

# Settings are read at import time; point them at throwaway backends first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notekeeper.config import Settings
from notekeeper.database import create_tables, dispose_engine
from notekeeper.main import create_app


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_note_data():
    created = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    return {
        "id": uuid4(),
        "title": "Groceries",
        "content": "Milk, eggs, bread",
        "created_at": created,
        "updated_at": created,
    }


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        values = {
            "database_url": "sqlite+aiosqlite:///:memory:",
            "rate_limit_backend": "memory",
            "rate_limit_requests": 1000,
            "rate_limit_window": 10,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest_asyncio.fixture
async def app_factory(make_settings):
    """
    Build apps backed by a private in-memory database.

    httpx's ASGITransport does not run the lifespan, so tables are created
    here and engines are disposed on teardown.
    """
    created = []

    async def _build(**overrides):
        application = create_app(make_settings(**overrides))
        await create_tables(application.state.engine)
        created.append(application)
        return application

    yield _build

    for application in created:
        await dispose_engine(application.state.engine)


@pytest_asyncio.fixture
async def app(app_factory):
    return await app_factory()


@pytest_asyncio.fixture
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(app):
    """
    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/notes")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
