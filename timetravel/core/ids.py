"""
Change identifiers and version markers.

A ChangeID names one atomic operation in the causal graph. A ChangeMeta is a
run of consecutive operations by one peer. A Frontier is a set of ChangeIDs
that marks a version of the document.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Tuple


@dataclass(frozen=True, order=True)
class ChangeID:
    """
    Identifier of a single operation.

    Fields:
        peer: Author (peer) id
        counter: Per-peer sequence number, starting at 0
    """
    peer: int
    counter: int

    def __str__(self) -> str:
        return f"{self.counter}@{self.peer}"

    @staticmethod
    def parse(raw: str) -> "ChangeID":
        """
        Parse the "counter@peer" form produced by str().

        Raises:
            ValueError: If raw is not in counter@peer form
        """
        counter, sep, peer = raw.partition("@")
        if not sep:
            raise ValueError(f"invalid change id: {raw!r}")
        return ChangeID(peer=int(peer), counter=int(counter))


@dataclass(frozen=True)
class Frontier:
    """
    Immutable set of ChangeIDs marking a document version.

    The empty frontier means "no operations applied".
    """
    ids: Tuple[ChangeID, ...] = ()

    def __post_init__(self) -> None:
        # normalized so equal sets compare equal
        object.__setattr__(self, "ids", tuple(sorted(set(self.ids))))

    @staticmethod
    def of(*ids: ChangeID) -> "Frontier":
        return Frontier(ids=tuple(ids))

    @staticmethod
    def from_iter(ids: Iterable[ChangeID]) -> "Frontier":
        return Frontier(ids=tuple(ids))

    def is_empty(self) -> bool:
        return not self.ids

    def __iter__(self) -> Iterator[ChangeID]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, item: object) -> bool:
        return item in self.ids

    def __str__(self) -> str:
        return "[" + ", ".join(str(i) for i in self.ids) + "]"


EMPTY_FRONTIER = Frontier()


@dataclass(frozen=True)
class ChangeMeta:
    """
    Contiguous run of operations authored by one peer.

    Fields:
        id: ChangeID of the first operation in the run
        length: Number of operations in the run (>= 1)
        lamport: Lamport timestamp of the first operation
        deps: Frontier of the run's causal dependencies
    """
    id: ChangeID
    length: int
    lamport: int = 0
    deps: Frontier = field(default_factory=Frontier)

    @property
    def last_id(self) -> ChangeID:
        return ChangeID(self.id.peer, self.id.counter + self.length - 1)

    @property
    def lamport_end(self) -> int:
        """Lamport timestamp one past the run's last operation."""
        return self.lamport + self.length

    def contains(self, change_id: ChangeID) -> bool:
        return (
            change_id.peer == self.id.peer
            and self.id.counter <= change_id.counter < self.id.counter + self.length
        )

    def expand_newest_first(self) -> List[ChangeID]:
        """
        Decompose the run into per-operation ids, newest first.

        A run covering counters [c, c+len) of peer p yields
        (p, c+len-1), (p, c+len-2), ..., (p, c).
        """
        peer, start = self.id.peer, self.id.counter
        return [ChangeID(peer, c) for c in range(start + self.length - 1, start - 1, -1)]
