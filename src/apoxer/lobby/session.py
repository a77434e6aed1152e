"""Lobby sessions.

A LobbySession is one client's lobby: a state holder, an availability poller
and a countdown wired together. Presentation surfaces (the REST API and the
lobby WebSocket) subscribe to a session and receive ``lobby_state``,
``players`` and ``countdown`` events.

The LobbySessionManager owns all sessions of the process.
"""

import asyncio
import logging
import re
import secrets
from collections.abc import Callable
from pathlib import Path
from typing import Any

from apoxer.lobby.countdown import DEFAULT_COUNTDOWN_SECONDS, Countdown, CountdownRunner
from apoxer.lobby.holder import LobbyStateHolder
from apoxer.lobby.models import AvailablePlayer, LobbyGame, LobbyState, MatchmakingStatus
from apoxer.lobby.poller import AvailabilityFetcher, AvailabilityPoller, fetch_available_players
from apoxer.lobby.storage import FileStorage, LobbyStorage, MemoryStorage
from apoxer.lobby.teams import TeamRoster

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

SessionListener = Callable[[str, dict[str, Any]], None]


def _generate_session_id() -> str:
    return secrets.token_urlsafe(12)


class LobbySession:
    """One client's lobby.

    While the lobby is active (game selected and visible) the poller and the
    countdown run; hiding the lobby or clearing the game stops both, and
    switching games restarts them. A countdown wrap triggers a poller
    refresh.
    """

    def __init__(
        self,
        session_id: str,
        holder: LobbyStateHolder,
        poller: AvailabilityPoller,
        countdown: Countdown,
        tick_seconds: float = 1.0,
    ) -> None:
        """Initialize the session.

        Args:
            session_id: Session identifier
            holder: The client's lobby state holder
            poller: Availability poller shared by all surfaces of this session
            countdown: Countdown shown by all surfaces of this session
            tick_seconds: Real time between countdown ticks
        """
        self.id = session_id
        self.holder = holder
        self.poller = poller
        self.countdown = countdown
        self.countdown_runner = CountdownRunner(
            countdown,
            on_tick=self._on_countdown_tick,
            on_wrap=self._on_countdown_wrap,
            tick_seconds=tick_seconds,
        )
        self.teams = TeamRoster()
        self._listeners: list[SessionListener] = []
        self._active_game_id: str | None = None
        self._closed = False
        self._lock = asyncio.Lock()

        self._unsubscribers = [
            holder.subscribe(self._on_state_change),
            poller.subscribe(self._on_players),
        ]

    @property
    def state(self) -> LobbyState:
        return self.holder.state

    @property
    def players(self) -> list[AvailablePlayer]:
        return self.poller.players

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a surface listener called as ``listener(event, payload)``.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Current payload of every event type, for newly attached surfaces."""
        return {
            "lobby_state": self._state_payload(self.state),
            "players": self._players_payload(self.players),
            "countdown": self._countdown_payload(),
        }

    async def start(self) -> None:
        """Start background work if the (possibly restored) lobby is active."""
        async with self._lock:
            await self._sync_activity()

    async def set_game(self, game: LobbyGame | None) -> LobbyState:
        return await self._apply(lambda: self.holder.set_game(game))

    async def set_show_lobby(self, visible: bool) -> LobbyState:
        return await self._apply(lambda: self.holder.set_show_lobby(visible))

    async def open_lobby_modal(self) -> LobbyState:
        return await self._apply(self.holder.open_lobby_modal)

    async def close_lobby_modal(self) -> LobbyState:
        return await self._apply(self.holder.close_lobby_modal)

    async def set_matchmaking_state(
        self,
        status: MatchmakingStatus,
        error: str | None = None,
    ) -> LobbyState:
        return await self._apply(lambda: self.holder.set_matchmaking_state(status, error))

    async def close(self) -> None:
        """Stop background work and detach from the holder and poller."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            await self._stop_activity()
            for unsubscribe in self._unsubscribers:
                unsubscribe()
            self._listeners.clear()
        logger.info(f"Lobby session {self.id} closed")

    async def _apply(self, mutation: Callable[[], LobbyState]) -> LobbyState:
        async with self._lock:
            state = mutation()
            if not self._closed:
                await self._sync_activity()
            return state

    async def _sync_activity(self) -> None:
        state = self.holder.state
        if not state.is_active:
            await self._stop_activity()
            return

        game_id = state.game.id
        if game_id == self._active_game_id and self.poller.is_running:
            return

        await self.poller.start(game_id)
        await self.countdown_runner.start()
        self._active_game_id = game_id
        self._emit("countdown", self._countdown_payload())
        logger.info(f"Lobby session {self.id} active for game {state.game.slug}")

    async def _stop_activity(self) -> None:
        await self.countdown_runner.stop()
        await self.poller.stop()
        if self._active_game_id is not None:
            logger.info(f"Lobby session {self.id} inactive")
        self._active_game_id = None
        self.countdown.reset()

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception(f"Lobby session {self.id} listener failed on {event}")

    def _state_payload(self, state: LobbyState) -> dict[str, Any]:
        return {"sessionId": self.id, "state": state.to_dict()}

    def _players_payload(self, players: list[AvailablePlayer]) -> dict[str, Any]:
        return {
            "gameId": self.poller.game_id,
            "count": len(players),
            "players": [p.to_dict() for p in players],
            "lastFetchedAt": (
                self.poller.last_fetched_at.isoformat() if self.poller.last_fetched_at else None
            ),
        }

    def _countdown_payload(self) -> dict[str, Any]:
        return {
            "remaining": self.countdown.remaining,
            "display": self.countdown.format(),
            "progress": round(self.countdown.progress, 2),
        }

    def _on_state_change(self, state: LobbyState) -> None:
        self._emit("lobby_state", self._state_payload(state))

    def _on_players(self, players: list[AvailablePlayer]) -> None:
        self._emit("players", self._players_payload(players))

    def _on_countdown_tick(self, countdown: Countdown) -> None:
        self._emit("countdown", self._countdown_payload())

    def _on_countdown_wrap(self, countdown: Countdown) -> None:
        self.poller.refresh()


class LobbySessionManager:
    """Owns every lobby session in the process.

    Sessions persist their lobby state to ``<storage_dir>/<session_id>.json``
    when a storage directory is configured, so re-creating a session with
    the same id restores it (the reload path). Without one, state lives in
    memory only.
    """

    def __init__(
        self,
        storage_dir: Path | None = None,
        fetch: AvailabilityFetcher = fetch_available_players,
        poll_interval_seconds: float = 30.0,
        fetch_timeout_seconds: float = 10.0,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_seconds: float = 1.0,
    ) -> None:
        """Initialize the session manager.

        Args:
            storage_dir: Directory for persisted lobby state (None for memory only)
            fetch: Availability fetcher handed to every session's poller
            poll_interval_seconds: Poll cadence shared by every surface
            fetch_timeout_seconds: Upper bound for a single availability fetch
            countdown_seconds: Countdown duration
            tick_seconds: Real time between countdown ticks
        """
        self.storage_dir = storage_dir
        self._fetch = fetch
        self.poll_interval_seconds = poll_interval_seconds
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.countdown_seconds = countdown_seconds
        self.tick_seconds = tick_seconds
        self._sessions: dict[str, LobbySession] = {}
        self._lock = asyncio.Lock()

    def _storage_for(self, session_id: str) -> LobbyStorage:
        if self.storage_dir is None:
            return MemoryStorage()
        return FileStorage(self.storage_dir / f"{session_id}.json")

    async def create_session(self, session_id: str | None = None) -> LobbySession:
        """Create a session, or return the live one with the same id.

        Args:
            session_id: Id to (re)open; a new random id when omitted

        Raises:
            ValueError: If session_id contains characters outside [A-Za-z0-9_-]
        """
        if session_id is not None and not SESSION_ID_PATTERN.match(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")

        async with self._lock:
            if session_id is not None and session_id in self._sessions:
                return self._sessions[session_id]

            session_id = session_id or _generate_session_id()
            session = LobbySession(
                session_id=session_id,
                holder=LobbyStateHolder(self._storage_for(session_id)),
                poller=AvailabilityPoller(
                    fetch=self._fetch,
                    interval_seconds=self.poll_interval_seconds,
                    timeout_seconds=self.fetch_timeout_seconds,
                ),
                countdown=Countdown(self.countdown_seconds),
                tick_seconds=self.tick_seconds,
            )
            self._sessions[session_id] = session

        await session.start()
        logger.info(f"Lobby session {session_id} created")
        return session

    def get_session(self, session_id: str) -> LobbySession | None:
        return self._sessions.get(session_id)

    async def close_session(self, session_id: str) -> bool:
        """Close and forget a session. Persisted state is kept.

        Returns:
            True if the session existed
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} lobby sessions")

    def session_count(self) -> int:
        return len(self._sessions)


# Global singleton instance
_session_manager: LobbySessionManager | None = None


def get_lobby_session_manager() -> LobbySessionManager:
    """Get the global lobby session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = LobbySessionManager()
    return _session_manager


def init_lobby_session_manager(
    storage_dir: Path | None = None,
    fetch: AvailabilityFetcher = fetch_available_players,
    poll_interval_seconds: float = 30.0,
    fetch_timeout_seconds: float = 10.0,
    countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
) -> LobbySessionManager:
    """Initialize the global lobby session manager.

    Returns:
        The initialized LobbySessionManager instance.
    """
    global _session_manager
    _session_manager = LobbySessionManager(
        storage_dir=storage_dir,
        fetch=fetch,
        poll_interval_seconds=poll_interval_seconds,
        fetch_timeout_seconds=fetch_timeout_seconds,
        countdown_seconds=countdown_seconds,
    )
    return _session_manager


def reset_lobby_session_manager() -> None:
    """Reset the global lobby session manager. Used for testing."""
    global _session_manager
    _session_manager = None
