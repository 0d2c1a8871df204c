"""Pytest configuration and shared fixtures.

Usage Guide:
- For ORM model tests: import model factories from tests.factories
- For GitHub API tests: build payloads with the make_github_* factories
- For sync tests: use the mock_github fixture and fill in return values
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pr_attention.config import get_settings
from pr_attention.db.engine import enable_sqlite_savepoints
from pr_attention.db.models import Base

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# Define a consistent "test epoch" for deterministic date matching across tests.
# All hardcoded dates should reference these constants for consistency.
# -----------------------------------------------------------------------------

# Base dates (datetime objects for Pydantic/ORM)
JAN_10 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)   # Old PR opened
JAN_15 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)  # Open PR opened
JAN_16 = datetime(2024, 1, 16, 14, 0, 0, tzinfo=UTC)  # Open PR updated
JAN_17 = datetime(2024, 1, 17, 14, 0, 0, tzinfo=UTC)  # "Now" for scoring (24h after update)

# ISO 8601 strings (for GitHub API mocks)
JAN_10_ISO = "2024-01-10T09:00:00Z"
JAN_15_ISO = "2024-01-15T10:00:00Z"
JAN_15_EVENING_ISO = "2024-01-15T16:00:00Z"    # First review
JAN_16_MORNING_ISO = "2024-01-16T09:00:00Z"    # Comment
JAN_16_MID_ISO = "2024-01-16T10:00:00Z"        # Second review
JAN_16_ISO = "2024-01-16T14:00:00Z"


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep real tokens and .env values out of tests."""
    for var in ("GITHUB_TOKEN", "GITHUB_LOGIN", "GITHUB_TOKENS", "DATABASE_URL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite engine for tests.

    Each test gets a fresh database with all tables created.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Create an async session with auto-rollback.

    Changes are rolled back after each test to ensure isolation.
    """
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# -----------------------------------------------------------------------------
# GitHub Client Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_github() -> MagicMock:
    """A GitHubClient stand-in with every API method as an AsyncMock.

    Return values are left for each test to fill in.
    """
    client = MagicMock()
    for method in (
        "get_authenticated_user",
        "get_repository",
        "list_open_pull_requests",
        "get_pull_request",
        "get_combined_status",
        "list_check_runs",
        "list_reviews",
        "list_issue_comments",
    ):
        setattr(client, method, AsyncMock())
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


def async_iter(items: Iterable[Any]):
    """Async generator over items, for faking githubkit's paginate()."""

    async def _gen():
        for item in items:
            yield item

    return _gen()


# -----------------------------------------------------------------------------
# Utility Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def utc_now() -> datetime:
    """Current UTC datetime for tests."""
    return datetime.now(UTC)
