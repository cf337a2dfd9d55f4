"""
Shared test doubles and document builders.
"""

from typing import Iterable, List

from timetravel.doc import MemoryDocument


class StepTimer:
    """
    Fake millisecond timer producing the given checkout latencies.

    Each checkout reads the timer twice (start, end); every pair is spaced
    100 ms apart so latencies never overlap.
    """

    def __init__(self, latencies: Iterable[float]) -> None:
        self._values: List[float] = []
        for n, latency in enumerate(latencies):
            self._values.extend([n * 100.0, n * 100.0 + latency])
        self.reads = 0

    def __call__(self) -> float:
        value = self._values[self.reads]
        self.reads += 1
        return value


def make_linear_doc() -> MemoryDocument:
    """'hello' (0-4), ' world' (5-10), delete 'h' (11): 12 ops, one peer."""
    doc = MemoryDocument(peer=1)
    doc.insert(0, "hello")
    doc.commit()
    doc.insert(5, " world")
    doc.commit()
    doc.delete(0, 1)
    doc.commit()
    return doc


def make_branching_doc() -> MemoryDocument:
    """
    Two peers edit concurrently after a shared 'abc', then peer 1 merges
    and appends 'Z'. 6 ops, single head 4@1.
    """
    a = MemoryDocument(peer=1)
    a.insert(0, "abc")
    a.commit()
    b = a.fork(peer=2)
    b.insert(3, "X")
    b.commit()
    a.insert(0, "Y")
    a.commit()
    a.import_snapshot(b.export_snapshot())
    a.insert(len(a.get_text("text")), "Z")
    a.commit()
    return a
