"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

# Disable rate limiting for all tests; keep lobby state in memory
os.environ["RATE_LIMITING_ENABLED"] = "false"
os.environ["LOBBY_STORAGE_DIR"] = ""

# Clear the settings cache to pick up the new environment variables
from apoxer.settings import get_settings

get_settings.cache_clear()

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from apoxer.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
