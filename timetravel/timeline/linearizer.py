"""
Change-graph linearizer: turn a causal DAG into an addressable timeline.

The engine's ancestor walk yields changes newest-first. Each change is split
into per-operation ids, accumulated, and the result reversed so index 0 is the
earliest operation.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ..core.errors import GraphTraversalError
from ..core.ids import ChangeID, ChangeMeta, Frontier
from ..doc.store import CrdtDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Timeline:
    """
    Immutable, causally ordered sequence of operation ids.

    Fields:
        ids: Operation ids, earliest first
        head: Frontier the timeline was built from
    """
    ids: Tuple[ChangeID, ...]
    head: Frontier

    def __len__(self) -> int:
        return len(self.ids)

    def __getitem__(self, index: int) -> ChangeID:
        return self.ids[index]

    def __iter__(self) -> Iterator[ChangeID]:
        return iter(self.ids)

    @property
    def max_index(self) -> int:
        """Largest addressable index; -1 for an empty timeline."""
        return len(self.ids) - 1

    def frontier_at(self, index: int) -> Frontier:
        """Single-point frontier for the operation at index."""
        return Frontier.of(self.ids[index])

    def last(self) -> Optional[ChangeID]:
        return self.ids[-1] if self.ids else None


def build_timeline(document: CrdtDocument, head: Optional[Frontier] = None) -> Timeline:
    """
    Linearize every operation reachable from head.

    Args:
        document: Document whose change graph is walked
        head: Frontier to start from (None = document.current_frontier())

    Returns:
        Timeline with one entry per reachable operation

    Raises:
        GraphTraversalError: If head is unknown to the engine
    """
    if head is None:
        head = document.current_frontier()

    acc: List[ChangeID] = []
    changes = 0

    def visit(meta: ChangeMeta) -> bool:
        nonlocal changes
        acc.extend(meta.expand_newest_first())
        changes += 1
        return True

    if not head.is_empty():
        try:
            document.walk_ancestors(head, visit)
        except GraphTraversalError:
            logger.error("Ancestor walk failed from %s", head)
            raise

    acc.reverse()
    logger.info("Built timeline: %d ops from %d changes (head %s)", len(acc), changes, head)
    return Timeline(ids=tuple(acc), head=head)
