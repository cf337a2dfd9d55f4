"""
Time-travel session: one loaded document and its scrubbing state.

Wires the document, timeline, navigator, statistics and throttled dispatcher
together and exposes read-only observable values to a presentation layer.
"""

import logging
import uuid
from typing import Callable, Optional

from .. import metrics
from ..config import Settings
from ..core.clock import AsyncioScheduler, Scheduler, Timer, perf_counter_ms
from ..core.events import EventBus, Listener, NavigationChanged, SeekFailed
from ..core.stats import RunningStats, StatsAggregator
from ..doc.store import CrdtDocument
from ..logging_config import get_logger
from ..timeline.linearizer import Timeline, build_timeline
from .navigator import VersionNavigator
from .throttle import ThrottledDispatcher

logger = logging.getLogger(__name__)


class TimeTravelSession:
    """
    Scrubbing session over an explicitly owned document.

    Usage:
        session = TimeTravelSession.open(LoroDocument(), snapshot_bytes)
        session.subscribe(render)
        session.request_seek(42)   # throttled
        session.seek_now(7)        # immediate
    """

    def __init__(
        self,
        document: CrdtDocument,
        timeline: Timeline,
        settings: Optional[Settings] = None,
        scheduler: Optional[Scheduler] = None,
        timer: Timer = perf_counter_ms,
        session_id: Optional[str] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.log = get_logger(__name__, session_id=self.session_id)
        self._document = document
        self._bus = EventBus()
        self._stats = StatsAggregator()
        self._navigator = VersionNavigator(
            document,
            timeline,
            stats=self._stats,
            text_field=self.settings.text_field,
            timer=timer,
            bus=self._bus,
        )
        self._dispatcher: ThrottledDispatcher[int] = ThrottledDispatcher(
            self._navigator.seek,
            scheduler=scheduler or AsyncioScheduler(),
            window_ms=self.settings.throttle_ms,
            on_error=self._on_seek_error,
        )
        self._closed = False
        metrics.set_timeline_length(len(timeline))

    @classmethod
    def open(
        cls,
        document: CrdtDocument,
        snapshot: bytes,
        settings: Optional[Settings] = None,
        scheduler: Optional[Scheduler] = None,
        timer: Timer = perf_counter_ms,
    ) -> "TimeTravelSession":
        """
        Import snapshot into document and linearize its history.

        Raises:
            SnapshotImportError: If the snapshot is rejected
            GraphTraversalError: If the head cannot be walked
        """
        document.import_snapshot(snapshot)
        timeline = build_timeline(document, document.current_frontier())
        session = cls(document, timeline, settings=settings, scheduler=scheduler, timer=timer)
        logger.info(
            "Opened session %s: %d versions on %s",
            session.session_id,
            len(timeline),
            document.engine_name,
        )
        return session

    # -- observable values ----------------------------------------------

    @property
    def current_index(self) -> int:
        return self._navigator.index

    @property
    def max_index(self) -> int:
        return self._navigator.max_index

    @property
    def current_text(self) -> str:
        return self._navigator.text

    @property
    def latency_stats(self) -> RunningStats:
        return self._stats.snapshot()

    @property
    def timeline(self) -> Timeline:
        return self._navigator.timeline

    @property
    def document(self) -> CrdtDocument:
        return self._document

    @property
    def seek_pending(self) -> bool:
        return self._dispatcher.pending

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe callable."""
        return self._bus.subscribe(listener)

    # -- input -----------------------------------------------------------

    def request_seek(self, index: int) -> None:
        """
        Throttled seek entry point for user input.

        Out-of-range indices are rejected here, before they can displace a
        valid pending request.

        Raises:
            IndexOutOfRange: If index is outside [-1, max_index]
            RuntimeError: If the session is closed
        """
        if self._closed:
            raise RuntimeError("session is closed")
        self._navigator.validate(index)
        self._dispatcher.submit(index)

    def seek_now(self, index: int) -> NavigationChanged:
        """Seek immediately, bypassing the throttle."""
        if self._closed:
            raise RuntimeError("session is closed")
        return self._navigator.seek(index)

    def _on_seek_error(self, index: int, error: Exception) -> None:
        self.log.error("Throttled seek to %d failed: %s", index, error)
        self._bus.emit(SeekFailed(index=index, error=error))

    def close(self) -> None:
        """Deliver any pending seek and stop accepting input."""
        if self._closed:
            return
        self._dispatcher.flush()
        self._closed = True
        self.log.info("Closed session after %d checkouts", self._stats.count)
