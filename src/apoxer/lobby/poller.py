"""Player availability poller.

Periodically lists players who are online or looking for a game while a
lobby is active. One poller serves every presentation surface of a lobby
session, so all of them see the same list at the same cadence.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apoxer.lobby.models import AvailablePlayer

logger = logging.getLogger(__name__)

AvailabilityFetcher = Callable[[str], Awaitable[list[AvailablePlayer]]]
PlayersListener = Callable[[list[AvailablePlayer]], None]


async def fetch_available_players(game_id: str) -> list[AvailablePlayer]:
    """Fetch available players for a game from the database.

    Args:
        game_id: The game ID

    Returns:
        Online players first, then looking, most recently updated first
    """
    from apoxer.db.repositories.players import PlayerRepository
    from apoxer.db.session import async_session_factory

    async with async_session_factory() as session:
        repository = PlayerRepository(session)
        rows = await repository.list_available(game_id)
        return [AvailablePlayer.from_row(row) for row in rows]


class AvailabilityPoller:
    """Polls player availability for one game at a fixed interval.

    Failed or timed-out fetches are logged and the last good list is kept.
    Results of fetches that complete after ``stop()`` (or after the poller
    moved to another game) are discarded.
    """

    def __init__(
        self,
        fetch: AvailabilityFetcher = fetch_available_players,
        interval_seconds: float = 30.0,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the poller.

        Args:
            fetch: Coroutine function returning the available players for a game ID
            interval_seconds: Delay between the end of one fetch and the next
            timeout_seconds: Upper bound for a single fetch
        """
        self._fetch = fetch
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self._game_id: str | None = None
        self._players: list[AvailablePlayer] = []
        self._last_fetched_at: datetime | None = None
        self._listeners: list[PlayersListener] = []
        self._task: asyncio.Task[None] | None = None
        self._refresh_tasks: set[asyncio.Task[None]] = set()
        # Bumped on every start/stop; fetches from an older generation are stale
        self._generation = 0

    @property
    def game_id(self) -> str | None:
        return self._game_id

    @property
    def players(self) -> list[AvailablePlayer]:
        """The most recent successfully fetched list (possibly stale)."""
        return list(self._players)

    @property
    def last_fetched_at(self) -> datetime | None:
        return self._last_fetched_at

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: PlayersListener) -> Callable[[], None]:
        """Register a listener called with the list after each successful fetch.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self, game_id: str) -> None:
        """Start polling a game.

        Fetches immediately, then every ``interval_seconds``. Starting while
        already polling the same game is a no-op; a different game cancels
        the previous loop first.
        """
        if self.is_running and self._game_id == game_id:
            return

        await self.stop()

        if game_id != self._game_id:
            self._players = []
            self._last_fetched_at = None

        self._game_id = game_id
        self._task = asyncio.create_task(self._poll_loop(game_id, self._generation))
        logger.info(f"Availability polling started for game {game_id}")

    async def stop(self) -> None:
        """Stop polling and cancel any in-flight fetch."""
        self._generation += 1

        tasks: list[asyncio.Task[None]] = list(self._refresh_tasks)
        if self._task is not None:
            tasks.append(self._task)
        self._task = None
        self._refresh_tasks.clear()

        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        if tasks:
            logger.info(f"Availability polling stopped for game {self._game_id}")

    def refresh(self) -> asyncio.Task[None] | None:
        """Trigger an out-of-band fetch.

        Returns:
            The fetch task (awaitable), or None if the poller is not running
        """
        if not self.is_running or self._game_id is None:
            return None

        task = asyncio.create_task(self._fetch_once(self._game_id, self._generation))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)
        return task

    async def _poll_loop(self, game_id: str, generation: int) -> None:
        while generation == self._generation:
            await self._fetch_once(game_id, generation)
            await asyncio.sleep(self.interval_seconds)

    async def _fetch_once(self, game_id: str, generation: int) -> None:
        try:
            players = await asyncio.wait_for(self._fetch(game_id), timeout=self.timeout_seconds)
        except TimeoutError:
            logger.warning(
                f"Availability fetch for game {game_id} timed out after "
                f"{self.timeout_seconds}s; keeping {len(self._players)} stale players"
            )
            return
        except Exception as e:
            logger.warning(
                f"Availability fetch for game {game_id} failed: {e}; "
                f"keeping {len(self._players)} stale players"
            )
            return

        if generation != self._generation:
            logger.debug(f"Discarding availability result for game {game_id} after stop")
            return

        self._players = list(players)
        self._last_fetched_at = datetime.now()
        logger.debug(f"Fetched {len(self._players)} available players for game {game_id}")

        for listener in list(self._listeners):
            try:
                listener(self.players)
            except Exception:
                logger.exception("Players listener failed")
