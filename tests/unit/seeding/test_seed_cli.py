"""Tests for the apoxer-seed command line."""

import json
from collections.abc import Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from apoxer.seeding.catalog import SeedGamesResult
from apoxer.seeding.cli import cli
from apoxer.seeding.events import SeedEventsResult


@pytest.fixture
def session() -> Iterator[AsyncMock]:
    """Patch the session factory and engine disposal used by every command."""
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False

    with (
        patch("apoxer.db.session.async_session_factory", factory),
        patch("apoxer.db.session.dispose_engine", AsyncMock()) as dispose,
    ):
        yield session
        dispose.assert_awaited()


def test_games_prints_summary_and_commits(session: AsyncMock):
    result_obj = SeedGamesResult(games_inserted=2, communities_inserted=4)
    with patch("apoxer.seeding.catalog.seed_games", AsyncMock(return_value=result_obj)) as seed:
        result = CliRunner().invoke(cli, ["games"])

    assert result.exit_code == 0
    summary = json.loads(result.output)
    assert summary["gamesInserted"] == 2
    assert summary["communitiesInserted"] == 4
    seed.assert_awaited_once_with(session)
    session.commit.assert_awaited_once()


def test_events_passes_creator(session: AsyncMock):
    seed = AsyncMock(return_value=SeedEventsResult(events_created=3))
    with patch("apoxer.seeding.events.seed_events", seed):
        result = CliRunner().invoke(cli, ["events", "--created-by", "u1"])

    assert result.exit_code == 0
    seed.assert_awaited_once_with(session, created_by="u1")


def test_errors_set_exit_code(session: AsyncMock):
    result_obj = SeedGamesResult(errors=["Failed to insert game Valorant: boom"])
    with patch("apoxer.seeding.catalog.seed_games", AsyncMock(return_value=result_obj)):
        result = CliRunner().invoke(cli, ["games"])

    assert result.exit_code == 1
    assert "Failed to insert game Valorant" in result.output


def test_fatal_error(session: AsyncMock):
    with patch("apoxer.seeding.catalog.seed_games", AsyncMock(side_effect=OSError("db down"))):
        result = CliRunner().invoke(cli, ["games"])

    assert result.exit_code == 1
    assert "Fatal error: db down" in result.output
    session.commit.assert_not_awaited()


def test_covers_requires_api_key():
    settings = SimpleNamespace(steamgriddb_enabled=False)
    with patch("apoxer.seeding.cli.get_settings", return_value=settings):
        result = CliRunner().invoke(cli, ["covers"])

    assert result.exit_code == 1
    assert "STEAMGRIDDB_API_KEY" in result.output
