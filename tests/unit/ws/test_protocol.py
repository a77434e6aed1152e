"""Unit tests for lobby WebSocket protocol messages."""

from apoxer.lobby.models import MatchmakingStatus
from apoxer.ws.protocol import (
    ClientMessageType,
    CloseModalMessage,
    OpenModalMessage,
    PingMessage,
    ServerMessageType,
    SetGameMessage,
    SetMatchmakingStateMessage,
    ShowLobbyMessage,
    parse_client_message,
)


class TestMessageTypes:
    """Tests for message type enumerations."""

    def test_all_server_message_types(self):
        types = [t.value for t in ServerMessageType]
        assert types == ["lobby_state", "players", "countdown", "pong", "error"]

    def test_all_client_message_types(self):
        types = {t.value for t in ClientMessageType}
        assert types == {
            "set_game",
            "show_lobby",
            "open_modal",
            "close_modal",
            "set_matchmaking_state",
            "ping",
        }


class TestParseClientMessage:
    """Tests for parse_client_message."""

    def test_ping(self):
        assert isinstance(parse_client_message({"type": "ping"}), PingMessage)

    def test_modal_messages(self):
        assert isinstance(parse_client_message({"type": "open_modal"}), OpenModalMessage)
        assert isinstance(parse_client_message({"type": "close_modal"}), CloseModalMessage)

    def test_set_game_by_slug(self):
        message = parse_client_message({"type": "set_game", "slug": "valorant"})
        assert isinstance(message, SetGameMessage)
        assert message.slug == "valorant"
        assert message.game is None

    def test_set_game_clear(self):
        message = parse_client_message({"type": "set_game"})
        assert isinstance(message, SetGameMessage)
        assert message.slug is None
        assert message.game is None

    def test_show_lobby_requires_visible(self):
        assert parse_client_message({"type": "show_lobby"}) is None

        message = parse_client_message({"type": "show_lobby", "visible": True})
        assert isinstance(message, ShowLobbyMessage)
        assert message.visible is True

    def test_set_matchmaking_state(self):
        message = parse_client_message(
            {"type": "set_matchmaking_state", "status": "error", "error": "No server"}
        )
        assert isinstance(message, SetMatchmakingStateMessage)
        assert message.status == MatchmakingStatus.ERROR
        assert message.error == "No server"

    def test_invalid_status(self):
        assert parse_client_message({"type": "set_matchmaking_state", "status": "won"}) is None

    def test_unknown_type(self):
        assert parse_client_message({"type": "move"}) is None

    def test_not_an_object(self):
        assert parse_client_message(["ping"]) is None
