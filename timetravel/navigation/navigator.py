"""
Version navigator: map a timeline index to a document checkout.

States:
    Live   index -1, checked out to the empty frontier, displays ""
    At(i)  checked out to {timeline[i]}, displays the field's text

Every successful seek produces exactly one latency sample: the wall-clock
duration of the checkout call alone. Reading the text afterwards is not
counted.
"""

import logging
from typing import Optional

from .. import metrics
from ..core.clock import Timer, perf_counter_ms
from ..core.errors import IndexOutOfRange
from ..core.events import EventBus, NavigationChanged, StatsUpdated
from ..core.ids import EMPTY_FRONTIER
from ..core.state import LIVE_INDEX, NavigationState
from ..core.stats import StatsAggregator
from ..doc.store import CrdtDocument
from ..timeline.linearizer import Timeline

logger = logging.getLogger(__name__)


class VersionNavigator:
    """
    Navigation state machine over a timeline.

    The navigator does not own the document's lifetime; it only checks it
    out. The initial state is Live and nothing is checked out until the
    first seek.

    Usage:
        nav = VersionNavigator(doc, build_timeline(doc))
        nav.seek(10)
        nav.text       # content after the 11th operation
        nav.seek(-1)   # back to Live
    """

    def __init__(
        self,
        document: CrdtDocument,
        timeline: Timeline,
        stats: Optional[StatsAggregator] = None,
        text_field: str = "text",
        timer: Timer = perf_counter_ms,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._document = document
        self._timeline = timeline
        self._stats = stats if stats is not None else StatsAggregator()
        self._text_field = text_field
        self._timer = timer
        self._bus = bus if bus is not None else EventBus()
        self._state = NavigationState.live()
        self._text = ""

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def index(self) -> int:
        return self._state.index

    @property
    def max_index(self) -> int:
        return self._timeline.max_index

    @property
    def text(self) -> str:
        return self._text

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def bus(self) -> EventBus:
        return self._bus

    def validate(self, index: int) -> None:
        """
        Raises:
            IndexOutOfRange: If index is outside [-1, max_index]
        """
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"index must be an int, got {type(index).__name__}")
        if index < LIVE_INDEX or index > self.max_index:
            raise IndexOutOfRange(index, self.max_index)

    def seek(self, index: int) -> NavigationChanged:
        """
        Check the document out at index and record the latency.

        Args:
            index: -1 for Live, otherwise 0 <= index <= max_index

        Returns:
            The NavigationChanged event that was published

        Raises:
            IndexOutOfRange: If index is out of bounds (state unchanged)
            Exception: Engine checkout/read failures propagate unchanged
                (state unchanged)
        """
        try:
            self.validate(index)
        except IndexOutOfRange:
            metrics.track_seek("rejected")
            logger.warning("Rejected seek to %d (max index %d)", index, self.max_index)
            raise

        try:
            if index == LIVE_INDEX:
                frontier = EMPTY_FRONTIER
                target = "live"
            else:
                frontier = self._timeline.frontier_at(index)
                target = "version"

            start = self._timer()
            self._document.checkout(frontier)
            latency_ms = max(0.0, self._timer() - start)

            if index == LIVE_INDEX:
                text = ""
                state = NavigationState.live()
            else:
                text = self._document.get_text(self._text_field)
                state = NavigationState.at(index)
        except Exception:
            metrics.track_seek("failed")
            logger.exception("Checkout to index %d failed; staying at %s", index, self._state)
            raise

        self._state = state
        self._text = text
        self._stats.sample(latency_ms)
        metrics.observe_checkout(target, latency_ms / 1000.0)
        metrics.track_seek("ok")
        logger.debug("Seek to %s took %.3f ms", state, latency_ms)

        event = NavigationChanged(state=state, text=text, latency_ms=latency_ms)
        self._bus.emit(event)
        self._bus.emit(StatsUpdated(stats=self._stats.snapshot()))
        return event
