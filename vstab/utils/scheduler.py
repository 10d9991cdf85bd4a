"""Timer handles for the polling loops.

A ``Scheduler`` hands out ``ScheduledCall`` handles on top of the running
event loop's ``call_later`` and remembers every pending one, so that a
component's teardown can cancel all of its timers and retry waits in one
place. Once closed, a scheduler never fires another callback.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)

class ScheduledCall:
    """A single pending callback with an explicit cancellation flag."""

    def __init__(self, callback: Callable[..., Any], args: tuple = ()) -> None:
        self._callback = callback
        self._args = args
        self._handle: Optional[asyncio.TimerHandle] = None
        self.cancelled = False
        self.fired = False

    def _run(self) -> None:
        if self.cancelled:
            return
        self.fired = True
        self._callback(*self._args)

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired


class Scheduler:
    """Owns the timers of one component."""

    def __init__(self, name: str = "scheduler") -> None:
        self.name = name
        self._calls: Set[ScheduledCall] = set()
        self._waiters: Set[asyncio.Future] = set()
        self.closed = False

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        """Run ``callback(*args)`` after ``delay`` seconds unless cancelled first."""
        call = ScheduledCall(callback, args)
        if self.closed:
            call.cancel()
            return call

        def _fire() -> None:
            self._calls.discard(call)
            call._run()

        call._handle = asyncio.get_running_loop().call_later(delay, _fire)
        self._calls.add(call)
        return call

    async def sleep(self, delay: float) -> None:
        """Sleep that is cut short with ``CancelledError`` when the scheduler closes."""
        if self.closed:
            raise asyncio.CancelledError()

        waiter = asyncio.get_running_loop().create_future()

        def _wake() -> None:
            if not waiter.done():
                waiter.set_result(None)

        call = self.call_later(delay, _wake)
        self._waiters.add(waiter)
        try:
            await waiter
        finally:
            self._waiters.discard(waiter)
            self._calls.discard(call)
            call.cancel()

    def close(self) -> None:
        """Cancel every pending timer and wait; later scheduling is a no-op."""
        self.closed = True
        for call in list(self._calls):
            call.cancel()
        self._calls.clear()
        for waiter in list(self._waiters):
            waiter.cancel()
        logger.debug(f"{self.name}: closed")

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._calls if call.pending)
