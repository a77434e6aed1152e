"""Lobby countdown.

A cosmetic matchmaking-freshness timer: it counts down once per second and
starts over from the full duration when it runs out.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 15 * 60


class Countdown:
    """Wrapping countdown timer state."""

    def __init__(self, total_seconds: int = DEFAULT_COUNTDOWN_SECONDS) -> None:
        if total_seconds <= 0:
            raise ValueError(f"total_seconds must be positive, got {total_seconds}")
        self.total_seconds = total_seconds
        self.remaining = total_seconds

    def tick(self) -> bool:
        """Advance by one second.

        Returns:
            True if the countdown ran out and wrapped to the full duration
        """
        if self.remaining <= 1:
            self.remaining = self.total_seconds
            return True
        self.remaining -= 1
        return False

    def reset(self) -> None:
        self.remaining = self.total_seconds

    def format(self) -> str:
        """Remaining time as MM:SS."""
        minutes, seconds = divmod(self.remaining, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def progress(self) -> float:
        """Elapsed share of the duration as a percentage (0-100)."""
        return (self.total_seconds - self.remaining) / self.total_seconds * 100


class CountdownRunner:
    """Ticks a Countdown once per second in a background task."""

    def __init__(
        self,
        countdown: Countdown,
        on_tick: Callable[[Countdown], None] | None = None,
        on_wrap: Callable[[Countdown], None] | None = None,
        tick_seconds: float = 1.0,
    ) -> None:
        """Initialize the runner.

        Args:
            countdown: The countdown to drive
            on_tick: Called after every tick
            on_wrap: Called after a tick that wrapped the countdown
            tick_seconds: Real time between ticks
        """
        self.countdown = countdown
        self.on_tick = on_tick
        self.on_wrap = on_wrap
        self.tick_seconds = tick_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Reset the countdown and start ticking (restarts if already running)."""
        await self.stop()
        self.countdown.reset()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            wrapped = self.countdown.tick()
            if self.on_tick is not None:
                self.on_tick(self.countdown)
            if wrapped:
                logger.debug("Lobby countdown wrapped")
                if self.on_wrap is not None:
                    self.on_wrap(self.countdown)
