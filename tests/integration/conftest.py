"""Fixtures for integration tests.

These tests require a running PostgreSQL database with migrations applied
(``alembic upgrade head``). Nothing is committed: every test runs in a
session that is rolled back when it closes.

To run integration tests:
    uv run pytest tests/integration -v

To run only unit tests (faster, no database required):
    uv run pytest tests/unit -v
"""

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from apoxer.settings import get_settings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require database)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark all tests in this directory as integration tests."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a fresh database session for each test.

    Creates a new engine per test to avoid event loop issues with shared
    connection pools.
    """
    engine = create_async_engine(
        get_settings().database_url,
        echo=False,
        pool_pre_ping=True,
    )

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()

    await engine.dispose()


@pytest.fixture
def unique_slug() -> str:
    """A game slug no other test run will use."""
    return f"test-{uuid.uuid4().hex[:8]}"
