"""WebSocket handler for lobby session real-time communication."""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from apoxer.lobby.models import LobbyGame
from apoxer.lobby.session import LobbySession, get_lobby_session_manager
from apoxer.ws.protocol import (
    ClientMessageType,
    CloseModalMessage,
    ErrorMessage,
    OpenModalMessage,
    PingMessage,
    PongMessage,
    SetGameMessage,
    SetMatchmakingStateMessage,
    ShowLobbyMessage,
    parse_client_message,
)

logger = logging.getLogger(__name__)

_CLIENT_MESSAGE_TYPES = {t.value for t in ClientMessageType}


class LobbyConnectionManager:
    """Manages WebSocket connections for lobby sessions.

    A session can be open in several tabs. The first connection subscribes
    to the session's events; each event is queued and broadcast to every
    connection of the session in emission order. The subscription ends when
    the last connection leaves.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        # session_id -> set of websockets
        self.connections: dict[str, set[WebSocket]] = {}
        # session_id -> (session, broadcast task, unsubscribe)
        self._pumps: dict[
            str, tuple[LobbySession, asyncio.Task[None], Callable[[], None]]
        ] = {}
        self._lock = asyncio.Lock()

    async def connect(self, session: LobbySession, websocket: WebSocket) -> None:
        """Accept a WebSocket connection and attach it to a session.

        Args:
            session: The lobby session
            websocket: The WebSocket connection
        """
        await websocket.accept()
        stale = None
        async with self._lock:
            current = self._pumps.get(session.id)
            if current is not None and current[0] is not session:
                # The id was closed and reopened; drop the old session's pump
                stale = self._pumps.pop(session.id)
                self.connections.pop(session.id, None)

            self.connections.setdefault(session.id, set()).add(websocket)
            if session.id not in self._pumps:
                queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

                def enqueue(event: str, payload: dict[str, Any]) -> None:
                    queue.put_nowait({"type": event, **payload})

                unsubscribe = session.subscribe(enqueue)
                task = asyncio.create_task(self._pump(session.id, queue))
                self._pumps[session.id] = (session, task, unsubscribe)

        if stale is not None:
            await self._stop_pump(stale)
        logger.info(f"WebSocket connected to lobby session {session.id}")

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        """Remove a WebSocket connection from a session.

        Args:
            session_id: The session id
            websocket: The WebSocket connection
        """
        async with self._lock:
            if session_id not in self.connections:
                return

            self.connections[session_id].discard(websocket)
            logger.info(f"WebSocket disconnected from lobby session {session_id}")

            # Clean up empty session connections
            if self.connections[session_id]:
                return
            del self.connections[session_id]
            pump = self._pumps.pop(session_id, None)

        if pump is not None:
            await self._stop_pump(pump)

    async def broadcast(self, session_id: str, message: dict[str, Any]) -> None:
        """Broadcast a message to all connections of a session.

        Args:
            session_id: The session id
            message: The message to send (will be JSON encoded)
        """
        async with self._lock:
            connections = self.connections.get(session_id, set()).copy()

        if not connections:
            return

        data = json.dumps(message)
        disconnected: list[WebSocket] = []

        for websocket in connections:
            try:
                await websocket.send_text(data)
            except Exception:
                disconnected.append(websocket)

        # Clean up disconnected clients
        if disconnected:
            async with self._lock:
                if session_id in self.connections:
                    for websocket in disconnected:
                        self.connections[session_id].discard(websocket)

    def has_connections(self, session_id: str) -> bool:
        """Check if a session has any connections."""
        return session_id in self.connections and len(self.connections[session_id]) > 0

    async def _stop_pump(
        self, pump: tuple[LobbySession, asyncio.Task[None], Callable[[], None]]
    ) -> None:
        _, task, unsubscribe = pump
        unsubscribe()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _pump(self, session_id: str, queue: asyncio.Queue[dict[str, Any]]) -> None:
        while True:
            message = await queue.get()
            await self.broadcast(session_id, message)


# Global connection manager instance
lobby_connection_manager = LobbyConnectionManager()


async def _send(websocket: WebSocket, message: dict[str, Any]) -> None:
    await websocket.send_text(json.dumps(message))


async def _send_error(websocket: WebSocket, code: str, message: str) -> None:
    await _send(websocket, ErrorMessage(code=code, message=message).model_dump())


async def _load_game(slug: str) -> LobbyGame | None:
    """Load a game snapshot from the catalogue."""
    from apoxer.db.repositories.games import GameRepository
    from apoxer.db.session import async_session_factory

    async with async_session_factory() as db:
        game = await GameRepository(db).get_by_slug(slug)
        return LobbyGame.from_row(game) if game else None


async def handle_lobby_websocket(websocket: WebSocket, session_id: str) -> None:
    """Handle a WebSocket connection for a lobby session.

    The client receives a ``lobby_state``, ``players`` and ``countdown``
    snapshot on connect, then every change as it happens.

    Args:
        websocket: The WebSocket connection
        session_id: The lobby session id
    """
    logger.info(f"Lobby WebSocket connection attempt: session={session_id}")

    session = get_lobby_session_manager().get_session(session_id)
    if session is None:
        logger.warning(f"Lobby WebSocket rejected: session {session_id} not found")
        await websocket.close(code=4004, reason="Lobby session not found")
        return

    await lobby_connection_manager.connect(session, websocket)

    # Send initial state to the connecting client
    for event, payload in session.snapshot().items():
        await _send(websocket, {"type": event, **payload})

    try:
        while True:
            # Receive message
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            # Parse message
            try:
                msg_data = json.loads(data)
            except json.JSONDecodeError:
                await _send_error(websocket, "invalid_json", "Invalid JSON")
                continue

            if session.is_closed:
                await _send_error(websocket, "session_closed", "Lobby session was closed")
                await websocket.close(code=4004, reason="Lobby session closed")
                break

            # Handle message
            await _handle_message(websocket, session, msg_data)

    except Exception as e:
        logger.exception(f"Error in lobby WebSocket handler for {session_id}: {e}")
    finally:
        await lobby_connection_manager.disconnect(session_id, websocket)


async def _handle_message(
    websocket: WebSocket,
    session: LobbySession,
    data: Any,
) -> None:
    """Handle a WebSocket message.

    State changes are not answered directly; the resulting ``lobby_state``
    event reaches every connection of the session, the sender included.

    Args:
        websocket: The WebSocket connection
        session: The lobby session
        data: The parsed message data
    """
    msg_type = data.get("type") if isinstance(data, dict) else None
    if msg_type not in _CLIENT_MESSAGE_TYPES:
        await _send_error(websocket, "unknown_type", f"Unknown message type: {msg_type}")
        return

    message = parse_client_message(data)
    if message is None:
        await _send_error(websocket, "invalid_message", f"Invalid {msg_type} message")
        return

    if isinstance(message, PingMessage):
        await _send(websocket, PongMessage().model_dump())

    elif isinstance(message, SetGameMessage):
        game: LobbyGame | None = None
        if message.slug:
            game = await _load_game(message.slug)
            if game is None:
                await _send_error(websocket, "game_not_found", f"Game {message.slug} not found")
                return
        elif message.game is not None:
            try:
                game = LobbyGame.from_dict(message.game)
            except ValueError as e:
                await _send_error(websocket, "invalid_game", str(e))
                return
        await session.set_game(game)

    elif isinstance(message, ShowLobbyMessage):
        await session.set_show_lobby(message.visible)

    elif isinstance(message, OpenModalMessage):
        await session.open_lobby_modal()

    elif isinstance(message, CloseModalMessage):
        await session.close_lobby_modal()

    elif isinstance(message, SetMatchmakingStateMessage):
        await session.set_matchmaking_state(message.status, message.error)
