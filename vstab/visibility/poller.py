"""Decide whether the tab bar should be on screen.

The poller asks which application is frontmost on a fixed interval and
shows the tab bar while the editor (or the tab bar itself) is in front. A
failing query is retried a couple of times; if every attempt fails the
previous answer stands.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence, Set

from vstab.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_FRAGMENTS = ("code", "vscode", "vstab", "electron", "python")

class PollerState(Enum):
    IDLE = "idle"
    POLLING = "polling"

class VisibilityPoller:
    """Single-flow state machine turning frontmost-app queries into a bool."""

    def __init__(self, query: Callable[[], Awaitable[str]], fragments: Sequence[str] = DEFAULT_FRAGMENTS,
                 interval: float = 0.25, max_retries: int = 2, retry_delay: float = 0.1,
                 on_change: Optional[Callable[[bool], None]] = None) -> None:
        """Initialize the poller.

        Args:
            query: Coroutine function returning the frontmost application name
            fragments: Case-insensitive name fragments that keep the bar shown
            interval: Seconds between ticks
            max_retries: Extra attempts per tick after a failed query
            retry_delay: Seconds between attempts
            on_change: Called with the new value whenever visibility flips
        """
        self.query = query
        self.fragments = [f.lower() for f in fragments if f]
        self.interval = interval
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.on_change = on_change

        self.state = PollerState.IDLE
        self.visible = True
        self.last_app: Optional[str] = None
        self._scheduler = Scheduler("visibility")
        self._tasks: Set[asyncio.Task] = set()

    def should_show(self, app_name: str) -> bool:
        name = app_name.lower()
        return any(fragment in name for fragment in self.fragments)

    @property
    def torn_down(self) -> bool:
        return self._scheduler.closed

    def start(self) -> None:
        """Begin polling; the first tick runs right away."""
        if self.state is PollerState.POLLING or self.torn_down:
            return
        self.state = PollerState.POLLING
        logger.debug(f"Visibility polling every {self.interval}s")
        self._spawn_tick()

    def _spawn_tick(self) -> None:
        if self.torn_down:
            return
        task = asyncio.get_running_loop().create_task(self._run_tick())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        except asyncio.CancelledError:
            return
        if self.state is PollerState.POLLING and not self.torn_down:
            self._scheduler.call_later(self.interval, self._spawn_tick)

    async def tick(self) -> bool:
        """Run one tick, retries included, and return the visibility after it."""
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                await self._scheduler.sleep(self.retry_delay)
            try:
                app_name = await self.query()
            except Exception as e:
                last_error = e
                logger.debug(f"Frontmost app query failed (attempt {attempt + 1}): {e}")
                continue

            if self.torn_down:
                # Result of a query that outlived teardown
                return self.visible
            self._apply(app_name)
            return self.visible

        logger.error(f"Error checking visibility after {self.max_retries + 1} attempts: {last_error}")
        return self.visible

    def _apply(self, app_name: str) -> None:
        self.last_app = app_name
        visible = self.should_show(app_name)
        logger.debug(f"Visibility check - frontmost: {app_name!r} shouldShow: {visible}")
        if visible != self.visible:
            self.visible = visible
            if self.on_change:
                self.on_change(visible)

    async def stop(self) -> None:
        """Tear down: cancel pending ticks and retry waits.

        Queries already in flight finish on their own and their results are
        discarded.
        """
        self._scheduler.close()
        self.state = PollerState.IDLE
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.debug("Visibility polling stopped")
