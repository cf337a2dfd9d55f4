"""
Observer events pushed to session listeners.

Events are immutable records of navigation and statistics changes. The
EventBus delivers them synchronously, in subscription order.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Union

from .state import NavigationState
from .stats import RunningStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationChanged:
    """
    A seek completed.

    Fields:
        state: New navigation state
        text: Text displayed for the new state ("" when live)
        latency_ms: Checkout duration that produced this state
    """
    state: NavigationState
    text: str
    latency_ms: float

    @property
    def index(self) -> int:
        return self.state.index


@dataclass(frozen=True)
class StatsUpdated:
    """Running checkout statistics changed."""
    stats: RunningStats


@dataclass(frozen=True)
class SeekFailed:
    """A throttled seek raised; the navigation state did not change."""
    index: int
    error: BaseException


NavigationEvent = Union[NavigationChanged, StatsUpdated, SeekFailed]
Listener = Callable[[NavigationEvent], None]


class EventBus:
    """
    Registry of listeners.

    Usage:
        bus = EventBus()
        unsubscribe = bus.subscribe(print)
        bus.emit(StatsUpdated(stats))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register listener and return a callable that removes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: NavigationEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
