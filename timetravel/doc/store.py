"""
CrdtDocument abstract interface.

Defines the boundary to the CRDT engine: snapshot import/export, the head
version marker, ancestor traversal, checkout and text reads.
"""

from abc import ABC, abstractmethod
from typing import Callable

from ..core.ids import ChangeMeta, Frontier

# Visitor signature: meta -> True to continue, False to stop
AncestorVisitor = Callable[[ChangeMeta], bool]


class CrdtDocument(ABC):
    """
    Abstract CRDT document.

    All implementations must guarantee:
    - walk_ancestors visits newest-reachable-first and never visits a
      ChangeMeta twice
    - checkout is deterministic (same frontier -> same text)
    - the empty frontier materializes a document with no operations applied
    """

    @abstractmethod
    def import_snapshot(self, data: bytes) -> None:
        """
        Load changes from a serialized snapshot.

        Raises:
            SnapshotImportError: If data is malformed or incompatible
        """
        ...

    @abstractmethod
    def export_snapshot(self) -> bytes:
        """Serialize the full document."""
        ...

    @abstractmethod
    def current_frontier(self) -> Frontier:
        """
        Head version marker of the change log.

        Unaffected by checkout: after seeking to a past version this still
        names the newest operations.
        """
        ...

    @abstractmethod
    def walk_ancestors(self, start: Frontier, visitor: AncestorVisitor) -> None:
        """
        Depth-first ancestor traversal from start.

        Args:
            start: Frontier to walk back from (inclusive)
            visitor: Called once per ChangeMeta; return False to stop

        Raises:
            GraphTraversalError: If start names a change unknown to the engine
        """
        ...

    @abstractmethod
    def checkout(self, frontier: Frontier) -> None:
        """Materialize the document as of frontier."""
        ...

    @abstractmethod
    def checkout_to_latest(self) -> None:
        """Materialize the newest state and resume editing."""
        ...

    @abstractmethod
    def get_text(self, field: str) -> str:
        """Text of the named field in the materialized state."""
        ...

    # Editing, used to build documents from edit traces

    @abstractmethod
    def set_peer(self, peer: int) -> None:
        """Set the author id for subsequent edits."""
        ...

    @abstractmethod
    def insert(self, pos: int, text: str, field: str = "text") -> None:
        ...

    @abstractmethod
    def delete(self, pos: int, length: int, field: str = "text") -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        """Close pending edits into a change."""
        ...

    @property
    def engine_name(self) -> str:
        return type(self).__name__
