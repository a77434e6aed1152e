"""Tests for the lobby state holder and its storage backends."""

import json
from pathlib import Path

import pytest

from apoxer.lobby.holder import LobbyStateHolder
from apoxer.lobby.models import LobbyGame, LobbyState, MatchmakingStatus
from apoxer.lobby.storage import STORAGE_KEY, FileStorage, MemoryStorage

VALORANT = LobbyGame(
    id="g1",
    slug="valorant",
    title="Valorant",
    cover_url="https://img.example/valorant.jpg",
    platforms=["PC"],
)


def stored(storage: MemoryStorage) -> dict:
    return json.loads(storage.get_item(STORAGE_KEY))


class FailingStorage(MemoryStorage):
    """Storage whose writes always fail."""

    def set_item(self, key: str, value: str) -> None:
        raise OSError("disk full")


class TestRestore:
    """Tests for restoring persisted lobbies."""

    def test_empty_storage_gives_initial_state(self):
        holder = LobbyStateHolder(MemoryStorage())
        assert holder.state == LobbyState()

    def test_restores_active_lobby_as_searching(self):
        raw = json.dumps({"game": VALORANT.to_dict(), "showLobby": True})
        holder = LobbyStateHolder(MemoryStorage({STORAGE_KEY: raw}))

        assert holder.state.game == VALORANT
        assert holder.state.show_lobby is True
        assert holder.state.status == MatchmakingStatus.SEARCHING
        assert holder.state.is_modal_open is False

    def test_restores_hidden_lobby_as_idle(self):
        raw = json.dumps({"game": VALORANT.to_dict(), "showLobby": False})
        holder = LobbyStateHolder(MemoryStorage({STORAGE_KEY: raw}))

        assert holder.state.game == VALORANT
        assert holder.state.status == MatchmakingStatus.IDLE

    def test_accepts_snake_case_game(self):
        game = {"id": "g1", "slug": "valorant", "title": "Valorant", "cover_url": "x.jpg"}
        raw = json.dumps({"game": game, "showLobby": True})
        holder = LobbyStateHolder(MemoryStorage({STORAGE_KEY: raw}))

        assert holder.state.game.cover_url == "x.jpg"

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            "null",
            json.dumps({"game": "valorant", "showLobby": True}),
            json.dumps({"game": {"slug": "no-id"}, "showLobby": True}),
        ],
    )
    def test_corrupt_storage_is_ignored(self, raw: str):
        holder = LobbyStateHolder(MemoryStorage({STORAGE_KEY: raw}))
        assert holder.state == LobbyState()


class TestDispatch:
    """Tests for dispatching actions."""

    def test_set_game_persists_pair(self):
        storage = MemoryStorage()
        holder = LobbyStateHolder(storage)

        holder.set_game(VALORANT)

        assert stored(storage) == {"game": VALORANT.to_dict(), "showLobby": False}

    def test_hide_persists_cleared_game(self):
        storage = MemoryStorage()
        holder = LobbyStateHolder(storage)
        holder.set_game(VALORANT)
        holder.set_show_lobby(True)

        holder.set_show_lobby(False)

        assert stored(storage) == {"game": None, "showLobby": False}

    def test_modal_and_status_are_not_persisted(self):
        storage = MemoryStorage()
        holder = LobbyStateHolder(storage)
        holder.set_game(VALORANT)
        holder.set_show_lobby(True)
        holder.open_lobby_modal()
        holder.set_matchmaking_state(MatchmakingStatus.FOUND)

        reloaded = LobbyStateHolder(storage)

        assert reloaded.state.is_modal_open is False
        assert reloaded.state.status == MatchmakingStatus.SEARCHING

    def test_listeners_notified_only_on_change(self):
        holder = LobbyStateHolder(MemoryStorage())
        seen: list[LobbyState] = []
        holder.subscribe(seen.append)

        holder.open_lobby_modal()
        holder.open_lobby_modal()

        assert len(seen) == 1
        assert seen[0].is_modal_open is True

    def test_unsubscribe(self):
        holder = LobbyStateHolder(MemoryStorage())
        seen: list[LobbyState] = []
        unsubscribe = holder.subscribe(seen.append)

        unsubscribe()
        holder.open_lobby_modal()

        assert seen == []

    def test_failing_listener_does_not_block_others(self):
        holder = LobbyStateHolder(MemoryStorage())
        seen: list[LobbyState] = []

        def broken(state: LobbyState) -> None:
            raise RuntimeError("listener bug")

        holder.subscribe(broken)
        holder.subscribe(seen.append)
        holder.set_game(VALORANT)

        assert len(seen) == 1

    def test_write_failure_keeps_memory_state(self):
        holder = LobbyStateHolder(FailingStorage())

        state = holder.set_game(VALORANT)

        assert state.game == VALORANT
        assert holder.state.game == VALORANT


class TestFileStorage:
    """Tests for the file-backed storage."""

    def test_round_trip_across_instances(self, tmp_path: Path):
        path = tmp_path / "sessions" / "abc.json"
        FileStorage(path).set_item(STORAGE_KEY, "value")

        assert FileStorage(path).get_item(STORAGE_KEY) == "value"

    def test_missing_file(self, tmp_path: Path):
        assert FileStorage(tmp_path / "missing.json").get_item(STORAGE_KEY) is None

    def test_corrupt_file_reads_empty(self, tmp_path: Path):
        path = tmp_path / "abc.json"
        path.write_text("{broken", encoding="utf-8")

        storage = FileStorage(path)
        assert storage.get_item(STORAGE_KEY) is None

        storage.set_item(STORAGE_KEY, "fresh")
        assert json.loads(path.read_text(encoding="utf-8")) == {STORAGE_KEY: "fresh"}

    def test_remove_item(self, tmp_path: Path):
        storage = FileStorage(tmp_path / "abc.json")
        storage.set_item(STORAGE_KEY, "value")
        storage.set_item("other", "kept")

        storage.remove_item(STORAGE_KEY)

        assert storage.get_item(STORAGE_KEY) is None
        assert storage.get_item("other") == "kept"

    def test_no_temp_files_left_behind(self, tmp_path: Path):
        storage = FileStorage(tmp_path / "abc.json")
        storage.set_item(STORAGE_KEY, "a")
        storage.set_item(STORAGE_KEY, "b")

        assert [p.name for p in tmp_path.iterdir()] == ["abc.json"]

    def test_holder_reload_through_file(self, tmp_path: Path):
        path = tmp_path / "abc.json"
        holder = LobbyStateHolder(FileStorage(path))
        holder.set_game(VALORANT)
        holder.set_show_lobby(True)

        reloaded = LobbyStateHolder(FileStorage(path))

        assert reloaded.state.game == VALORANT
        assert reloaded.state.is_active is True
        assert reloaded.state.status == MatchmakingStatus.SEARCHING
