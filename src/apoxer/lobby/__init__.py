"""Matchmaking lobby for Apoxer.

A lobby tracks which game a client is matchmaking for, whether the lobby is
visible, and a coarse matchmaking status. While a lobby is active it polls
player availability and runs a 15-minute freshness countdown.
"""

from apoxer.lobby.holder import LobbyStateHolder
from apoxer.lobby.models import AvailablePlayer, LobbyGame, LobbyState, MatchmakingStatus
from apoxer.lobby.reducer import can_transition, reduce
from apoxer.lobby.session import (
    LobbySession,
    LobbySessionManager,
    get_lobby_session_manager,
    init_lobby_session_manager,
    reset_lobby_session_manager,
)
from apoxer.lobby.teams import TeamError, TeamRoster

__all__ = [
    "AvailablePlayer",
    "LobbyGame",
    "LobbySession",
    "LobbySessionManager",
    "LobbyState",
    "LobbyStateHolder",
    "MatchmakingStatus",
    "TeamError",
    "TeamRoster",
    "can_transition",
    "get_lobby_session_manager",
    "init_lobby_session_manager",
    "reduce",
    "reset_lobby_session_manager",
]
