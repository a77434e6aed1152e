"""Tests for PlayerRepository logic that does not need a database."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from apoxer.db.repositories.players import (
    USERNAME_ATTEMPTS,
    PlayerRepository,
    username_from_email,
)


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.flush = AsyncMock()
    return session


class TestSetStatus:
    async def test_unchanged_presence_bumps_updated_at(self, session: MagicMock):
        stale = datetime(2026, 1, 1, 12, 0, 0)
        player = SimpleNamespace(game_id=None, platform="pc", status="online", updated_at=stale)
        repository = PlayerRepository(session)
        repository.get_for_user = AsyncMock(return_value=player)

        result = await repository.set_status("u1", None, "pc", "online")

        assert result is player
        assert player.updated_at > stale
        session.flush.assert_awaited_once()

    async def test_invalid_status(self, session: MagicMock):
        with pytest.raises(ValueError):
            await PlayerRepository(session).set_status("u1", None, "pc", "away")


class TestEnsureProfile:
    def test_username_from_email(self):
        assert username_from_email("Jane.Doe+lfg@example.com") == "janedoelfg"
        assert username_from_email("a@example.com").startswith("user")

    async def test_existing_profile_is_returned(self, session: MagicMock):
        existing = SimpleNamespace(username="jane")
        repository = PlayerRepository(session)
        repository.get_for_user = AsyncMock(return_value=existing)

        assert await repository.ensure_profile("u1", "jane@example.com") is existing
        session.add.assert_not_called()

    async def test_collisions_fall_back_to_random_handle(self, session: MagicMock):
        repository = PlayerRepository(session)
        repository.get_for_user = AsyncMock(return_value=None)
        repository.get_by_username = AsyncMock(return_value=SimpleNamespace())

        player = await repository.ensure_profile("u1", "jane@example.com")

        assert repository.get_by_username.await_count == USERNAME_ATTEMPTS
        assert player.username.startswith("user")
        assert not player.username.startswith("jane")
        assert player.status == "offline"
        session.add.assert_called_once_with(player)

    async def test_first_free_candidate_is_used(self, session: MagicMock):
        repository = PlayerRepository(session)
        repository.get_for_user = AsyncMock(return_value=None)
        repository.get_by_username = AsyncMock(return_value=None)

        player = await repository.ensure_profile("u1", "jane@example.com", "Jane")

        assert player.username == "jane"
        assert player.display_name == "Jane"
