"""
Time sources and timer scheduling.

Production code uses the asyncio event loop for deferred calls and
time.perf_counter for latency. Tests drive a ManualScheduler by hand so
throttling behaviour is reproducible.
"""

import asyncio
import heapq
import itertools
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

# Returns a monotonic timestamp in milliseconds
Timer = Callable[[], float]


def perf_counter_ms() -> float:
    """High-resolution monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


class TimerHandle(ABC):
    """Handle for a deferred call."""

    @abstractmethod
    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """
    Timer source for deferred, non-blocking calls.

    Delays and timestamps are in milliseconds.
    """

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_ms without blocking the caller."""
        ...


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    The loop is resolved lazily so the scheduler can be created before the
    loop starts running.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioHandle(self.loop.call_later(delay_ms / 1000.0, callback))


class _ManualHandle(TimerHandle):
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by advance().

    Time only moves when the caller says so, which makes replaying a
    sequence of timed input events exact.

    Usage:
        sched = ManualScheduler()
        sched.call_later(100, fire)
        sched.advance(100)  # fire() runs here
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self._now + delay_ms, next(self._seq), handle, callback))
        return handle

    def advance(self, delta_ms: float) -> None:
        """Move time forward by delta_ms, running due callbacks in order."""
        self.advance_to(self._now + delta_ms)

    def advance_to(self, when: float) -> None:
        """
        Move time forward to an absolute timestamp.

        Callbacks scheduled by other callbacks run too if they fall due
        before `when`.
        """
        if when < self._now:
            raise ValueError("time cannot move backwards")
        while self._queue and self._queue[0][0] <= when:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if not handle.cancelled:
                callback()
        self._now = when

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)
