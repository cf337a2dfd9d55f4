"""
CRDT document backed by the Loro engine.

Thin adapter that maps timetravel ids and frontiers onto loro.ID and
loro.Frontiers. All change storage, merging and materialization happens
inside LoroDoc.

The binding raises engine failures as bare BaseException, so every engine
call goes through _engine_errors() and surfaces as a TimeTravelError.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple, Type

from loro import ExportMode, Frontiers, ID, LoroDoc

from ..core.errors import DocumentError, GraphTraversalError, SnapshotImportError, TimeTravelError
from ..core.ids import ChangeID, ChangeMeta, Frontier
from .store import AncestorVisitor, CrdtDocument

logger = logging.getLogger(__name__)

# Interpreter control flow, never an engine failure
_PASSTHROUGH = (KeyboardInterrupt, SystemExit, GeneratorExit)


@contextmanager
def _engine_errors(error_type: Type[TimeTravelError], message: str) -> Iterator[None]:
    try:
        yield
    except _PASSTHROUGH:
        raise
    except TimeTravelError:
        raise
    except BaseException as ex:
        raise error_type(f"{message}: {ex}") from ex


def _read_varint(data: bytes, pos: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def decode_frontiers(data: bytes) -> List[ChangeID]:
    """
    Decode Frontiers.encode() output.

    Layout (postcard Vec<ID>): varint length, then per id a varint peer and
    a zigzag varint counter.
    """
    count, pos = _read_varint(data, 0)
    ids = []
    for _ in range(count):
        peer, pos = _read_varint(data, pos)
        raw, pos = _read_varint(data, pos)
        counter = (raw >> 1) ^ -(raw & 1)
        ids.append(ChangeID(peer=peer, counter=counter))
    if pos != len(data):
        raise ValueError(f"{len(data) - pos} trailing bytes after frontiers")
    return ids


def to_loro_id(change_id: ChangeID) -> ID:
    return ID(change_id.peer, change_id.counter)


def from_loro_id(loro_id: ID) -> ChangeID:
    return ChangeID(peer=int(loro_id.peer), counter=int(loro_id.counter))


def to_loro_frontiers(frontier: Frontier) -> Frontiers:
    return Frontiers.from_ids([to_loro_id(i) for i in frontier])


def from_loro_frontiers(frontiers: Frontiers) -> Frontier:
    return Frontier.from_iter(decode_frontiers(bytes(frontiers.encode())))


class LoroDocument(CrdtDocument):
    """
    Loro-backed document.

    Args:
        doc: Existing LoroDoc to wrap (default: a new empty one)
    """

    def __init__(self, doc: Optional[LoroDoc] = None) -> None:
        self._doc = doc if doc is not None else LoroDoc()

    @property
    def raw(self) -> LoroDoc:
        """Underlying LoroDoc."""
        return self._doc

    def import_snapshot(self, data: bytes) -> None:
        with _engine_errors(SnapshotImportError, "loro rejected snapshot"):
            self._doc.import_(data)

    def export_snapshot(self) -> bytes:
        with _engine_errors(DocumentError, "loro export failed"):
            return bytes(self._doc.export(ExportMode.Snapshot()))

    def current_frontier(self) -> Frontier:
        return from_loro_frontiers(self._doc.oplog_frontiers)

    def walk_ancestors(self, start: Frontier, visitor: AncestorVisitor) -> None:
        def on_change(meta) -> bool:
            return bool(visitor(ChangeMeta(
                id=from_loro_id(meta.id),
                length=int(meta.len),
                lamport=int(meta.lamport),
                deps=from_loro_frontiers(meta.deps),
            )))

        with _engine_errors(GraphTraversalError, f"cannot walk ancestors of {start}"):
            self._doc.travel_change_ancestors([to_loro_id(i) for i in start], on_change)

    def checkout(self, frontier: Frontier) -> None:
        with _engine_errors(DocumentError, f"cannot checkout {frontier}"):
            self._doc.checkout(to_loro_frontiers(frontier))

    def checkout_to_latest(self) -> None:
        with _engine_errors(DocumentError, "cannot checkout to latest"):
            self._doc.checkout_to_latest()

    def get_text(self, field: str) -> str:
        with _engine_errors(DocumentError, f"cannot read text {field!r}"):
            return self._doc.get_text(field).to_string()

    def set_peer(self, peer: int) -> None:
        with _engine_errors(DocumentError, f"cannot set peer {peer}"):
            self._doc.peer_id = peer

    def insert(self, pos: int, text: str, field: str = "text") -> None:
        with _engine_errors(DocumentError, f"insert at {pos} failed"):
            self._doc.get_text(field).insert(pos, text)

    def delete(self, pos: int, length: int, field: str = "text") -> None:
        with _engine_errors(DocumentError, f"delete [{pos}, {pos + length}) failed"):
            self._doc.get_text(field).delete(pos, length)

    def commit(self) -> None:
        with _engine_errors(DocumentError, "commit failed"):
            self._doc.commit()
