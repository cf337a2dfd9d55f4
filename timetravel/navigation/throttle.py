"""
Throttled dispatcher: at most one forwarded call per window.

Trailing edge, last value wins. The first call of an idle period opens a
window; later calls inside it only replace the pending argument. When the
window elapses the newest argument is forwarded once.

    calls:     A@0   B@30                 C@250
    forwarded:             B@100                      C@350

With leading=True the call that opens a window is forwarded immediately and
a trailing call follows only if more calls arrived before it closed.
"""

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from ..core.clock import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOTHING = object()


class ThrottledDispatcher(Generic[T]):
    """
    Rate-limit calls to target.

    Holds no domain state; the scheduler is the only suspension point.

    Args:
        target: Function receiving the forwarded argument
        scheduler: Timer source (AsyncioScheduler in production)
        window_ms: Window length in milliseconds
        leading: Also forward the call that opens a window
        on_error: Receives (argument, exception) when target raises;
            without it the exception propagates out of the timer callback
    """

    def __init__(
        self,
        target: Callable[[T], Any],
        scheduler: Scheduler,
        window_ms: float = 100.0,
        leading: bool = False,
        on_error: Optional[Callable[[T, Exception], None]] = None,
    ) -> None:
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        self._target = target
        self._scheduler = scheduler
        self.window_ms = window_ms
        self.leading = leading
        self._on_error = on_error
        self._pending: Any = _NOTHING
        self._timer: Optional[TimerHandle] = None
        self.forwarded = 0

    @property
    def pending(self) -> bool:
        """True if a call is waiting for its window to close."""
        return self._pending is not _NOTHING

    def __call__(self, arg: T) -> None:
        self.submit(arg)

    def submit(self, arg: T) -> None:
        if self._timer is None:
            self._open_window()
            if self.leading:
                self._forward(arg)
                return
        self._pending = arg

    def flush(self) -> None:
        """Forward the pending call now and close the window."""
        self._close_window()
        self._fire_pending()

    def cancel(self) -> None:
        """Discard the pending call and close the window."""
        self._close_window()
        self._pending = _NOTHING

    def _open_window(self) -> None:
        self._timer = self._scheduler.call_later(self.window_ms, self._on_window_elapsed)

    def _close_window(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_window_elapsed(self) -> None:
        self._timer = None
        if not self.pending:
            return
        if self.leading:
            # cool-down so the next call is not forwarded straight away
            self._open_window()
        self._fire_pending()

    def _fire_pending(self) -> None:
        if not self.pending:
            return
        arg = self._pending
        self._pending = _NOTHING
        self._forward(arg)

    def _forward(self, arg: T) -> None:
        self.forwarded += 1
        try:
            self._target(arg)
        except Exception as ex:
            if self._on_error is None:
                raise
            self._on_error(arg, ex)
