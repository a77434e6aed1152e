"""Tests for lobby WebSocket functionality."""

import asyncio
import json
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from apoxer.lobby.models import AvailablePlayer, LobbyGame
from apoxer.lobby.session import (
    LobbySessionManager,
    init_lobby_session_manager,
    reset_lobby_session_manager,
)
from apoxer.main import app
from apoxer.ws.lobby_handler import LobbyConnectionManager

GAME_PAYLOAD = {
    "id": "g1",
    "slug": "valorant",
    "title": "Valorant",
    "coverUrl": "https://img.example/valorant.jpg",
    "platforms": ["PC"],
}


async def fake_fetch(game_id: str) -> list[AvailablePlayer]:
    return [
        AvailablePlayer(
            id="p1",
            user_id="u1",
            game_id=game_id,
            platform="PC",
            status="online",
            updated_at=datetime(2026, 1, 1, 12, 0, 0),
        )
    ]


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Create a test client sharing one event loop across requests."""
    with (
        patch("apoxer.ws.lobby_handler.lobby_connection_manager", LobbyConnectionManager()),
        TestClient(app) as client,
    ):
        init_lobby_session_manager(fetch=fake_fetch, poll_interval_seconds=60)
        yield client
    reset_lobby_session_manager()


def create_session(client: TestClient) -> str:
    response = client.post("/api/lobby/sessions")
    assert response.status_code == 201
    return response.json()["id"]


def receive_until(ws, predicate: Callable[[dict[str, Any]], bool], limit: int = 20) -> dict:
    """Read messages until one matches, skipping countdown ticks and the like."""
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message not received")


def of_type(msg_type: str) -> Callable[[dict[str, Any]], bool]:
    return lambda message: message["type"] == msg_type


class TestLobbyWebSocket:
    """Tests for the /ws/lobby/{session_id} endpoint."""

    def test_unknown_session_rejected(self, client: TestClient) -> None:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/lobby/missing") as ws:
                ws.receive_text()
        assert exc_info.value.code == 4004

    def test_initial_snapshot(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            messages = [ws.receive_json() for _ in range(3)]

        assert [m["type"] for m in messages] == ["lobby_state", "players", "countdown"]
        assert messages[0]["sessionId"] == session_id
        assert messages[0]["state"]["matchmakingState"]["status"] == "idle"
        assert messages[1]["count"] == 0
        assert messages[2]["display"] == "15:00"

    def test_ping_pong(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "ping"})
            assert receive_until(ws, of_type("pong")) == {"type": "pong"}

    def test_invalid_json(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_text("not json")
            error = receive_until(ws, of_type("error"))

        assert error["code"] == "invalid_json"

    def test_unknown_message_type(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "start_game"})
            error = receive_until(ws, of_type("error"))

        assert error["code"] == "unknown_type"

    def test_invalid_message_fields(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "set_matchmaking_state", "status": "won"})
            error = receive_until(ws, of_type("error"))

        assert error["code"] == "invalid_message"

    def test_activate_lobby_streams_players(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "set_game", "game": GAME_PAYLOAD})
            state = receive_until(
                ws, lambda m: m["type"] == "lobby_state" and m["state"]["game"] is not None
            )
            assert state["state"]["game"]["title"] == "Valorant"
            assert state["state"]["matchmakingState"]["status"] == "searching"
            assert state["state"]["isActive"] is False

            ws.send_json({"type": "show_lobby", "visible": True})
            receive_until(ws, lambda m: m["type"] == "lobby_state" and m["state"]["isActive"])
            players = receive_until(ws, lambda m: m["type"] == "players" and m["count"] > 0)

        assert players["gameId"] == "g1"
        assert players["players"][0]["userId"] == "u1"
        assert players["lastFetchedAt"] is not None

    def test_set_game_by_slug(self, client: TestClient) -> None:
        session_id = create_session(client)
        game = LobbyGame.from_dict(GAME_PAYLOAD)

        with patch("apoxer.ws.lobby_handler._load_game", AsyncMock(return_value=game)) as load:
            with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
                ws.send_json({"type": "set_game", "slug": "valorant"})
                state = receive_until(
                    ws, lambda m: m["type"] == "lobby_state" and m["state"]["game"] is not None
                )

        load.assert_awaited_once_with("valorant")
        assert state["state"]["game"]["slug"] == "valorant"

    def test_set_game_unknown_slug(self, client: TestClient) -> None:
        session_id = create_session(client)

        with patch("apoxer.ws.lobby_handler._load_game", AsyncMock(return_value=None)):
            with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
                ws.send_json({"type": "set_game", "slug": "nope"})
                error = receive_until(ws, of_type("error"))

        assert error["code"] == "game_not_found"

    def test_set_game_invalid_payload(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "set_game", "game": {"slug": "no-id"}})
            error = receive_until(ws, of_type("error"))

        assert error["code"] == "invalid_game"

    def test_modal_and_matchmaking_messages(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            ws.send_json({"type": "open_modal"})
            opened = receive_until(
                ws, lambda m: m["type"] == "lobby_state" and m["state"]["isModalOpen"]
            )
            assert opened["state"]["isModalOpen"] is True

            ws.send_json({"type": "set_matchmaking_state", "status": "error", "error": "Boom"})
            errored = receive_until(
                ws,
                lambda m: m["type"] == "lobby_state"
                and m["state"]["matchmakingState"]["status"] == "error",
            )

        assert errored["state"]["matchmakingState"]["error"] == "Boom"

    def test_changes_reach_every_tab(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as first:
            with client.websocket_connect(f"/ws/lobby/{session_id}") as second:
                for _ in range(3):
                    first.receive_json()
                    second.receive_json()

                first.send_json({"type": "open_modal"})
                seen = receive_until(second, of_type("lobby_state"))

        assert seen["state"]["isModalOpen"] is True

    def test_rest_changes_reach_websocket(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/ws/lobby/{session_id}") as ws:
            for _ in range(3):
                ws.receive_json()

            response = client.post(f"/api/lobby/sessions/{session_id}/modal/open")
            assert response.status_code == 200
            seen = receive_until(ws, of_type("lobby_state"))

        assert seen["state"]["isModalOpen"] is True


class TestLobbyConnectionManager:
    """Tests for LobbyConnectionManager."""

    @pytest.mark.asyncio
    async def test_events_are_broadcast_in_order(self) -> None:
        manager = LobbyConnectionManager()
        sessions = LobbySessionManager(fetch=fake_fetch, poll_interval_seconds=60)
        session = await sessions.create_session()
        ws1, ws2 = AsyncMock(), AsyncMock()

        await manager.connect(session, ws1)
        await manager.connect(session, ws2)
        await session.open_lobby_modal()
        await session.close_lobby_modal()
        await asyncio.sleep(0.01)

        for ws in (ws1, ws2):
            ws.accept.assert_awaited_once()
            sent = [json.loads(call.args[0]) for call in ws.send_text.await_args_list]
            assert [m["state"]["isModalOpen"] for m in sent] == [True, False]

        await manager.disconnect(session.id, ws1)
        await manager.disconnect(session.id, ws2)
        await sessions.close_all()

    @pytest.mark.asyncio
    async def test_last_disconnect_unsubscribes(self) -> None:
        manager = LobbyConnectionManager()
        sessions = LobbySessionManager(fetch=fake_fetch, poll_interval_seconds=60)
        session = await sessions.create_session()
        ws = AsyncMock()

        await manager.connect(session, ws)
        assert manager.has_connections(session.id)
        await manager.disconnect(session.id, ws)

        await session.open_lobby_modal()
        await asyncio.sleep(0.01)

        assert not manager.has_connections(session.id)
        ws.send_text.assert_not_awaited()
        await sessions.close_all()

    @pytest.mark.asyncio
    async def test_reopened_session_id_is_subscribed(self) -> None:
        manager = LobbyConnectionManager()
        sessions = LobbySessionManager(fetch=fake_fetch, poll_interval_seconds=60)
        old = await sessions.create_session("living-room")
        ws1, ws2 = AsyncMock(), AsyncMock()

        await manager.connect(old, ws1)
        await sessions.close_session("living-room")
        reopened = await sessions.create_session("living-room")
        assert reopened is not old

        await manager.connect(reopened, ws2)
        await reopened.open_lobby_modal()
        await asyncio.sleep(0.01)

        sent = [json.loads(call.args[0]) for call in ws2.send_text.await_args_list]
        assert [m["type"] for m in sent] == ["lobby_state"]
        assert sent[0]["state"]["isModalOpen"] is True
        ws1.send_text.assert_not_awaited()

        # The old tab leaving must not tear down the new subscription
        await manager.disconnect("living-room", ws1)
        assert manager.has_connections("living-room")

        await manager.disconnect("living-room", ws2)
        await sessions.close_all()

    @pytest.mark.asyncio
    async def test_broadcast_drops_failed_connections(self) -> None:
        manager = LobbyConnectionManager()
        sessions = LobbySessionManager(fetch=fake_fetch, poll_interval_seconds=60)
        session = await sessions.create_session()
        good, bad = AsyncMock(), AsyncMock()
        bad.send_text.side_effect = RuntimeError("closed")

        await manager.connect(session, good)
        await manager.connect(session, bad)
        await manager.broadcast(session.id, {"type": "pong"})

        assert manager.connections[session.id] == {good}
        good.send_text.assert_awaited_once_with(json.dumps({"type": "pong"}))

        await manager.disconnect(session.id, good)
        await sessions.close_all()
