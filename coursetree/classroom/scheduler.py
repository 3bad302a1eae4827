"""
Deferred-callback scheduling for the persistence controller.

The controller only needs `call_later(delay_seconds, callback)` returning a
handle with `cancel()`. An asyncio event loop satisfies this directly; the
ManualScheduler below is a single-threaded deadline queue that is pumped
explicitly, either against a virtual clock (`advance`) or a real one
(`run_due`).
"""

import heapq
import itertools
from typing import Any, Callable, Optional, Protocol


class CancelHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> CancelHandle: ...


class ScheduledCall:
    """A pending callback in a ManualScheduler."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple):
        self.when = when
        self._callback = callback
        self._args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        self._callback(*self._args)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"<ScheduledCall when={self.when:.3f} {state}>"


class ManualScheduler:
    """
    Deadline queue driven by the caller.

    With no clock, time is virtual: it starts at 0 and only moves through
    `advance()`. With a clock (e.g. time.monotonic), `run_due()` fires every
    callback whose deadline has passed.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock
        self._now = 0.0
        self._queue: list[tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._clock() if self._clock else self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        handle = ScheduledCall(self.time() + delay, callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to fire."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def run_due(self) -> int:
        """Fire all callbacks due at the current time. Returns how many ran."""
        return self._run_until(self.time())

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, firing callbacks in deadline order."""
        if self._clock is not None:
            raise RuntimeError("advance() is only available with a virtual clock")
        target = self._now + seconds
        ran = self._run_until(target)
        self._now = target
        return ran

    def _run_until(self, target: float) -> int:
        ran = 0
        # Callbacks may schedule new calls; those fire too if due before target
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            if self._clock is None:
                self._now = when
            handle._run()
            ran += 1
        return ran
