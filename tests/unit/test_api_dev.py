"""Tests for the development seeding endpoints."""

from collections.abc import Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from apoxer.db.session import get_db_session
from apoxer.main import app
from apoxer.seeding.catalog import SeedGamesResult
from apoxer.seeding.events import SeedEventsResult


async def fake_db_session():
    yield MagicMock()


@pytest.fixture
def client() -> Iterator[TestClient]:
    app.dependency_overrides[get_db_session] = fake_db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def dev_settings(enabled: bool) -> SimpleNamespace:
    return SimpleNamespace(dev_mode=enabled)


class TestDevRoutes:
    def test_hidden_outside_dev_mode(self, client: TestClient) -> None:
        with (
            patch("apoxer.api.dev.get_settings", return_value=dev_settings(False)),
            patch("apoxer.api.dev.seed_games", AsyncMock()) as seed,
        ):
            response = client.post("/api/dev/seed")

        assert response.status_code == 404
        seed.assert_not_awaited()

    def test_seed(self, client: TestClient) -> None:
        result = SeedGamesResult(games_inserted=20, communities_inserted=41)
        with (
            patch("apoxer.api.dev.get_settings", return_value=dev_settings(True)),
            patch("apoxer.api.dev.seed_games", AsyncMock(return_value=result)),
        ):
            response = client.post("/api/dev/seed")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "gamesInserted": 20,
            "gamesUpdated": 0,
            "communitiesInserted": 41,
            "errors": [],
        }

    def test_seed_events_with_errors(self, client: TestClient) -> None:
        result = SeedEventsResult(events_created=5, errors=["Failed to create event for X"])
        with (
            patch("apoxer.api.dev.get_settings", return_value=dev_settings(True)),
            patch("apoxer.api.dev.seed_events", AsyncMock(return_value=result)),
        ):
            response = client.post("/api/dev/seed-events")

        data = response.json()
        assert data["success"] is False
        assert data["eventsCreated"] == 5
        assert data["errors"] == ["Failed to create event for X"]
