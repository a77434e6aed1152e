"""Pure lobby state transitions.

Every change to a lobby goes through ``reduce(state, action)``, which never
mutates its input and has no side effects. Persistence and notification are
the state holder's job.
"""

from dataclasses import dataclass, replace

from apoxer.lobby.models import LobbyGame, LobbyState, MatchmakingStatus


@dataclass(frozen=True)
class SetGame:
    """Replace the active game (None clears it)."""

    game: LobbyGame | None


@dataclass(frozen=True)
class SetShowLobby:
    """Show or hide the lobby."""

    visible: bool


@dataclass(frozen=True)
class OpenLobbyModal:
    """Open the lobby modal surface."""


@dataclass(frozen=True)
class CloseLobbyModal:
    """Close the lobby modal surface."""


@dataclass(frozen=True)
class SetMatchmakingState:
    """Override the matchmaking status."""

    status: MatchmakingStatus
    error: str | None = None


@dataclass(frozen=True)
class Restore:
    """Rebuild state from the persisted ``{game, showLobby}`` pair."""

    game: LobbyGame | None
    show_lobby: bool


LobbyAction = (
    SetGame | SetShowLobby | OpenLobbyModal | CloseLobbyModal | SetMatchmakingState | Restore
)

ACTIVE_STATUSES = frozenset(
    {
        MatchmakingStatus.SEARCHING,
        MatchmakingStatus.FOUND,
        MatchmakingStatus.CONNECTING,
        MatchmakingStatus.READY,
    }
)

_FORWARD: dict[MatchmakingStatus, MatchmakingStatus] = {
    MatchmakingStatus.IDLE: MatchmakingStatus.SEARCHING,
    MatchmakingStatus.SEARCHING: MatchmakingStatus.FOUND,
    MatchmakingStatus.FOUND: MatchmakingStatus.CONNECTING,
    MatchmakingStatus.CONNECTING: MatchmakingStatus.READY,
}


def can_transition(current: MatchmakingStatus, target: MatchmakingStatus) -> bool:
    """Check whether a status change follows the matchmaking lifecycle.

    The lifecycle is idle -> searching -> found -> connecting -> ready, with
    error reachable from any active status and idle/searching reachable from
    anywhere. ``reduce`` does not enforce this; SetMatchmakingState is a
    direct override.
    """
    if target in (MatchmakingStatus.IDLE, MatchmakingStatus.SEARCHING):
        return True
    if target == MatchmakingStatus.ERROR:
        return current in ACTIVE_STATUSES
    return _FORWARD.get(current) == target


def reduce(state: LobbyState, action: LobbyAction) -> LobbyState:
    """Apply an action to a lobby state and return the new state.

    Raises:
        TypeError: If the action is not a lobby action
    """
    if isinstance(action, SetGame):
        if action.game is None:
            return replace(state, game=None)
        return replace(state, game=action.game, status=MatchmakingStatus.SEARCHING, error=None)

    if isinstance(action, SetShowLobby):
        if not action.visible:
            return replace(
                state,
                game=None,
                show_lobby=False,
                status=MatchmakingStatus.IDLE,
                error=None,
            )
        if state.game is not None:
            return replace(state, show_lobby=True, status=MatchmakingStatus.SEARCHING, error=None)
        return replace(state, show_lobby=True)

    if isinstance(action, OpenLobbyModal):
        return replace(state, is_modal_open=True)

    if isinstance(action, CloseLobbyModal):
        return replace(state, is_modal_open=False)

    if isinstance(action, SetMatchmakingState):
        error = action.error if action.status == MatchmakingStatus.ERROR else None
        return replace(state, status=action.status, error=error)

    if isinstance(action, Restore):
        restored = action.game is not None and action.show_lobby
        return LobbyState(
            game=action.game,
            show_lobby=action.show_lobby,
            is_modal_open=False,
            status=MatchmakingStatus.SEARCHING if restored else MatchmakingStatus.IDLE,
        )

    raise TypeError(f"Unknown lobby action: {action!r}")
