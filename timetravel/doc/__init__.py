"""
CRDT document adapters.

This module provides:
- CrdtDocument: Abstract engine boundary
- LoroDocument: Adapter over the loro engine
- MemoryDocument: Pure-Python reference engine
- Edit traces: load and replay recorded editing sessions
"""

from .store import CrdtDocument, AncestorVisitor
from .memory import MemoryDocument
from .loro_doc import LoroDocument
from .trace import EditTrace, load_trace, parse_trace, replay_trace

ENGINES = ("loro", "memory")


def open_document(engine: str = "loro", peer: int = 1) -> CrdtDocument:
    """
    Create an empty document for the named engine.

    Raises:
        ValueError: If engine is not one of ENGINES
    """
    if engine == "loro":
        doc = LoroDocument()
        doc.set_peer(peer)
        return doc
    if engine == "memory":
        return MemoryDocument(peer=peer)
    raise ValueError(f"unknown engine {engine!r}; expected one of {', '.join(ENGINES)}")


__all__ = [
    "CrdtDocument",
    "AncestorVisitor",
    "MemoryDocument",
    "LoroDocument",
    "EditTrace",
    "load_trace",
    "parse_trace",
    "replay_trace",
    "open_document",
    "ENGINES",
]
