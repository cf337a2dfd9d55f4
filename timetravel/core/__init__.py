"""
Core time-travel primitives.

- ChangeID / ChangeMeta / Frontier: causal graph addressing
- NavigationState: Live sentinel or a timeline index
- StatsAggregator: O(1) online latency statistics
- Scheduler: timer source for deferred calls
- EventBus: listener registry for navigation events
"""

from .ids import ChangeID, ChangeMeta, Frontier, EMPTY_FRONTIER
from .state import NavigationState, LIVE_INDEX
from .stats import StatsAggregator, RunningStats
from .clock import Scheduler, AsyncioScheduler, ManualScheduler, perf_counter_ms
from .events import EventBus, NavigationChanged, StatsUpdated, SeekFailed
from .canonical import canonical_json_bytes, content_hash, sha256_hex
from .errors import (
    TimeTravelError,
    SnapshotImportError,
    GraphTraversalError,
    IndexOutOfRange,
    DocumentError,
    TraceFormatError,
)

__all__ = [
    "ChangeID",
    "ChangeMeta",
    "Frontier",
    "EMPTY_FRONTIER",
    "NavigationState",
    "LIVE_INDEX",
    "StatsAggregator",
    "RunningStats",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "perf_counter_ms",
    "EventBus",
    "NavigationChanged",
    "StatsUpdated",
    "SeekFailed",
    "canonical_json_bytes",
    "sha256_hex",
    "content_hash",
    "TimeTravelError",
    "SnapshotImportError",
    "GraphTraversalError",
    "IndexOutOfRange",
    "DocumentError",
    "TraceFormatError",
]
