"""Lobby state holder for a single client.

The holder owns the current ``LobbyState``, routes every change through the
pure reducer, persists the ``{game, showLobby}`` pair and notifies
subscribers. It is created explicitly and handed to whatever needs it;
there is no module-level lobby state.
"""

import json
import logging
from collections.abc import Callable

from apoxer.lobby.models import LobbyGame, LobbyState, MatchmakingStatus
from apoxer.lobby.reducer import (
    CloseLobbyModal,
    LobbyAction,
    OpenLobbyModal,
    Restore,
    SetGame,
    SetMatchmakingState,
    SetShowLobby,
    reduce,
)
from apoxer.lobby.storage import STORAGE_KEY, LobbyStorage

logger = logging.getLogger(__name__)

StateListener = Callable[[LobbyState], None]


class LobbyStateHolder:
    """Single source of truth for one client's lobby."""

    def __init__(self, storage: LobbyStorage) -> None:
        """Initialize the holder and restore any persisted lobby.

        Args:
            storage: The client's key/value storage
        """
        self._storage = storage
        self._listeners: list[StateListener] = []
        self._state = LobbyState()
        self._restore()

    @property
    def state(self) -> LobbyState:
        """The current lobby state."""
        return self._state

    def _restore(self) -> None:
        raw = self._storage.get_item(STORAGE_KEY)
        if not raw:
            return

        try:
            parsed = json.loads(raw)
            game_data = parsed.get("game")
            game = LobbyGame.from_dict(game_data) if game_data else None
            show_lobby = bool(parsed.get("showLobby", False))
        except (json.JSONDecodeError, AttributeError, ValueError) as e:
            logger.warning(f"Error loading lobby from storage: {e}")
            return

        self._state = reduce(self._state, Restore(game=game, show_lobby=show_lobby))
        logger.debug(
            f"Restored lobby: game={game.slug if game else None} show_lobby={show_lobby}"
        )

    def _persist(self) -> None:
        payload = {
            "game": self._state.game.to_dict() if self._state.game else None,
            "showLobby": self._state.show_lobby,
        }
        try:
            self._storage.set_item(STORAGE_KEY, json.dumps(payload))
        except OSError as e:
            # In-memory state stays authoritative
            logger.error(f"Failed to persist lobby state: {e}")

    def dispatch(self, action: LobbyAction) -> LobbyState:
        """Apply an action, persist the result and notify subscribers.

        Returns:
            The new state
        """
        previous = self._state
        self._state = reduce(previous, action)
        self._persist()

        if self._state != previous:
            for listener in list(self._listeners):
                try:
                    listener(self._state)
                except Exception:
                    logger.exception("Lobby state listener failed")

        return self._state

    def set_game(self, game: LobbyGame | None) -> LobbyState:
        return self.dispatch(SetGame(game))

    def set_show_lobby(self, visible: bool) -> LobbyState:
        return self.dispatch(SetShowLobby(visible))

    def open_lobby_modal(self) -> LobbyState:
        return self.dispatch(OpenLobbyModal())

    def close_lobby_modal(self) -> LobbyState:
        return self.dispatch(CloseLobbyModal())

    def set_matchmaking_state(
        self,
        status: MatchmakingStatus,
        error: str | None = None,
    ) -> LobbyState:
        return self.dispatch(SetMatchmakingState(status=status, error=error))

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with the new state after each change.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
