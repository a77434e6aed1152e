"""Lobby WebSocket protocol message types."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from apoxer.lobby.models import MatchmakingStatus


class ServerMessageType(Enum):
    """Types of messages sent from server to client."""

    LOBBY_STATE = "lobby_state"
    PLAYERS = "players"
    COUNTDOWN = "countdown"
    PONG = "pong"
    ERROR = "error"


class ClientMessageType(Enum):
    """Types of messages sent from client to server."""

    SET_GAME = "set_game"
    SHOW_LOBBY = "show_lobby"
    OPEN_MODAL = "open_modal"
    CLOSE_MODAL = "close_modal"
    SET_MATCHMAKING_STATE = "set_matchmaking_state"
    PING = "ping"


# Server -> Client Messages


class PongMessage(BaseModel):
    """Response to ping."""

    type: str = "pong"


class ErrorMessage(BaseModel):
    """Error message."""

    type: str = "error"
    code: str
    message: str


# Client -> Server Messages


class SetGameMessage(BaseModel):
    """Select a game by slug or by snapshot; neither clears the game."""

    type: str = "set_game"
    slug: str | None = None
    game: dict[str, Any] | None = None


class ShowLobbyMessage(BaseModel):
    """Show or hide the lobby."""

    type: str = "show_lobby"
    visible: bool


class OpenModalMessage(BaseModel):
    type: str = "open_modal"


class CloseModalMessage(BaseModel):
    type: str = "close_modal"


class SetMatchmakingStateMessage(BaseModel):
    """Override the matchmaking status."""

    type: str = "set_matchmaking_state"
    status: MatchmakingStatus
    error: str | None = None


class PingMessage(BaseModel):
    """Keepalive ping."""

    type: str = "ping"


ClientMessage = (
    SetGameMessage
    | ShowLobbyMessage
    | OpenModalMessage
    | CloseModalMessage
    | SetMatchmakingStateMessage
    | PingMessage
)

_MESSAGE_TYPES: dict[str, type[BaseModel]] = {
    "set_game": SetGameMessage,
    "show_lobby": ShowLobbyMessage,
    "open_modal": OpenModalMessage,
    "close_modal": CloseModalMessage,
    "set_matchmaking_state": SetMatchmakingStateMessage,
    "ping": PingMessage,
}


def parse_client_message(data: dict[str, Any]) -> ClientMessage | None:
    """Parse a client message from JSON data.

    Args:
        data: Parsed JSON data

    Returns:
        Parsed message or None if the type is unknown or the fields are invalid
    """
    if not isinstance(data, dict):
        return None

    message_class = _MESSAGE_TYPES.get(data.get("type"))
    if message_class is None:
        return None

    try:
        return message_class.model_validate(data)
    except ValidationError:
        return None
