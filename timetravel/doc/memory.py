"""
In-memory reference CRDT document.

Keeps a causal change log of per-character text operations and materializes
any version on demand. This is a reference engine for tests and small
documents, not a collaborative merge implementation; production documents go
through LoroDocument.

Snapshot format: canonical JSON envelope
    {"format": "timetravel.memory", "version": 1, "changes": [...], "digest": "..."}
where digest is the SHA-256 of the canonical JSON of "changes".

Concurrent edits are materialized in (lamport, peer, counter) order with
positions clamped to the current text; positions are not transformed.
"""

import bisect
import heapq
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.canonical import canonical_json_bytes, sha256_hex
from ..core.errors import DocumentError, GraphTraversalError, SnapshotImportError
from ..core.ids import ChangeID, ChangeMeta, Frontier
from .store import AncestorVisitor, CrdtDocument

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "timetravel.memory"
SNAPSHOT_VERSION = 1

INSERT = "i"
DELETE = "d"

# (kind, field, pos, char) for inserts, (kind, field, pos) for deletes
Op = Tuple[Any, ...]

# peer -> number of that peer's ops included
VersionVector = Dict[int, int]


@dataclass(frozen=True)
class _Change:
    meta: ChangeMeta
    ops: Tuple[Op, ...]


def _change_to_dict(change: _Change) -> Dict[str, Any]:
    meta = change.meta
    return {
        "peer": meta.id.peer,
        "counter": meta.id.counter,
        "lamport": meta.lamport,
        "deps": [str(d) for d in meta.deps],
        "ops": [list(op) for op in change.ops],
    }


def _change_from_dict(data: Dict[str, Any]) -> _Change:
    ops = []
    for raw in data["ops"]:
        kind = raw[0]
        if kind == INSERT and len(raw) == 4 and isinstance(raw[3], str) and len(raw[3]) == 1:
            ops.append((INSERT, str(raw[1]), int(raw[2]), raw[3]))
        elif kind == DELETE and len(raw) == 3:
            ops.append((DELETE, str(raw[1]), int(raw[2])))
        else:
            raise ValueError(f"invalid op: {raw!r}")
    if not ops:
        raise ValueError("change has no ops")
    meta = ChangeMeta(
        id=ChangeID(peer=int(data["peer"]), counter=int(data["counter"])),
        length=len(ops),
        lamport=int(data["lamport"]),
        deps=Frontier.from_iter(ChangeID.parse(d) for d in data["deps"]),
    )
    if meta.id.peer < 0 or meta.id.counter < 0 or meta.lamport < 0:
        raise ValueError(f"negative id or lamport in change {meta.id}")
    return _Change(meta=meta, ops=tuple(ops))


class MemoryDocument(CrdtDocument):
    """
    Pure-Python causal text document.

    Usage:
        doc = MemoryDocument(peer=1)
        doc.insert(0, "hello")
        doc.commit()
        doc.checkout(Frontier.of(ChangeID(1, 1)))
        doc.get_text("text")  # "he"
    """

    def __init__(self, peer: int = 1) -> None:
        self._pending: List[Op] = []
        self.set_peer(peer)
        self._changes: Dict[ChangeID, _Change] = {}
        # peer -> start counters (sorted) and the matching changes
        self._starts: Dict[int, List[int]] = {}
        self._runs: Dict[int, List[_Change]] = {}
        # version vector before each change's first op, keyed by change start
        self._vv: Dict[ChangeID, VersionVector] = {}
        self._heads = Frontier()
        self._texts: Dict[str, List[str]] = {}
        self._checked_out: Optional[Frontier] = None
        self._op_order: Optional[List[Tuple[int, int, int, Op]]] = None

    # -- editing ---------------------------------------------------------

    def set_peer(self, peer: int) -> None:
        if peer < 0:
            raise ValueError(f"peer id must be non-negative, got {peer}")
        if self._pending:
            raise DocumentError("cannot change peer with uncommitted edits")
        self.peer = peer

    def _require_attached(self) -> None:
        if self._checked_out is not None:
            raise DocumentError("document is checked out to a past version; call checkout_to_latest() first")

    def insert(self, pos: int, text: str, field: str = "text") -> None:
        self._require_attached()
        buf = self._texts.setdefault(field, [])
        if pos < 0 or pos > len(buf):
            raise DocumentError(f"insert position {pos} out of range [0, {len(buf)}]")
        for k, ch in enumerate(text):
            self._pending.append((INSERT, field, pos + k, ch))
            buf.insert(pos + k, ch)

    def delete(self, pos: int, length: int, field: str = "text") -> None:
        self._require_attached()
        buf = self._texts.setdefault(field, [])
        if pos < 0 or length < 0 or pos + length > len(buf):
            raise DocumentError(f"delete range [{pos}, {pos + length}) out of range [0, {len(buf)}]")
        for _ in range(length):
            self._pending.append((DELETE, field, pos))
            del buf[pos]

    def commit(self) -> Optional[ChangeMeta]:
        """
        Close pending edits into one change.

        Returns:
            The new ChangeMeta, or None if nothing was pending
        """
        if not self._pending:
            return None
        deps = self._heads
        lamport = max((self._lamport_of(d) + 1 for d in deps), default=0)
        runs = self._runs.get(self.peer)
        counter = runs[-1].meta.last_id.counter + 1 if runs else 0
        meta = ChangeMeta(id=ChangeID(self.peer, counter), length=len(self._pending), lamport=lamport, deps=deps)
        self._add_change(_Change(meta=meta, ops=tuple(self._pending)))
        self._pending = []
        return meta

    def fork(self, peer: int) -> "MemoryDocument":
        """Copy of this document that edits as another peer."""
        other = MemoryDocument(peer=peer)
        other.import_snapshot(self.export_snapshot())
        return other

    # -- change log ------------------------------------------------------

    def _add_change(self, change: _Change) -> None:
        meta = change.meta
        start = meta.id

        vv: VersionVector = {start.peer: start.counter}
        if start.counter > 0:
            # ops of one peer are implicitly ordered
            self._merge_vv(vv, self._vv_at(ChangeID(start.peer, start.counter - 1)))
        for dep in meta.deps:
            self._merge_vv(vv, self._vv_at(dep))

        self._changes[start] = change
        starts = self._starts.setdefault(start.peer, [])
        runs = self._runs.setdefault(start.peer, [])
        at = bisect.bisect_left(starts, start.counter)
        starts.insert(at, start.counter)
        runs.insert(at, change)
        self._vv[start] = vv

        # a new change is never an ancestor of an existing one
        last = meta.last_id
        self._heads = Frontier.from_iter(
            [h for h in self._heads if vv.get(h.peer, 0) <= h.counter] + [last]
        )
        self._op_order = None

    def _find_change(self, change_id: ChangeID) -> Optional[_Change]:
        starts = self._starts.get(change_id.peer)
        if not starts:
            return None
        at = bisect.bisect_right(starts, change_id.counter) - 1
        if at < 0:
            return None
        change = self._runs[change_id.peer][at]
        return change if change.meta.contains(change_id) else None

    def _require_change(self, change_id: ChangeID) -> _Change:
        change = self._find_change(change_id)
        if change is None:
            raise GraphTraversalError(f"unknown change id {change_id}")
        return change

    def _lamport_of(self, change_id: ChangeID) -> int:
        change = self._require_change(change_id)
        return change.meta.lamport + (change_id.counter - change.meta.id.counter)

    def _vv_at(self, change_id: ChangeID) -> VersionVector:
        """Version vector including change_id and everything before it."""
        change = self._require_change(change_id)
        vv = dict(self._vv[change.meta.id])
        vv[change_id.peer] = max(vv.get(change_id.peer, 0), change_id.counter + 1)
        return vv

    @staticmethod
    def _merge_vv(into: VersionVector, other: VersionVector) -> None:
        for peer, end in other.items():
            if end > into.get(peer, 0):
                into[peer] = end

    def has_change(self, change_id: ChangeID) -> bool:
        return self._find_change(change_id) is not None

    @property
    def op_count(self) -> int:
        return sum(c.meta.length for c in self._changes.values())

    def oplog_frontier(self) -> Frontier:
        """Heads of the change log: the newest op of each branch."""
        return self._heads

    # -- CrdtDocument ----------------------------------------------------

    def current_frontier(self) -> Frontier:
        return self._heads

    def state_frontier(self) -> Frontier:
        """Version currently materialized (the head unless checked out)."""
        if self._checked_out is not None:
            return self._checked_out
        return self._heads

    @property
    def is_detached(self) -> bool:
        return self._checked_out is not None

    def walk_ancestors(self, start: Frontier, visitor: AncestorVisitor) -> None:
        # entries: (-lamport of newest op, -peer, change start counter, newest counter)
        heap: List[Tuple[int, int, int, int]] = []

        def push(change_id: ChangeID) -> None:
            change = self._require_change(change_id)
            lamport = change.meta.lamport + (change_id.counter - change.meta.id.counter)
            heapq.heappush(heap, (-lamport, -change_id.peer, change.meta.id.counter, change_id.counter))

        for change_id in start:
            push(change_id)

        # lamport strictly decreases along dependencies, so the first entry
        # popped for a change is always its newest reachable slice
        visited = set()
        while heap:
            _, neg_peer, start_counter, upto = heapq.heappop(heap)
            key = ChangeID(-neg_peer, start_counter)
            if key in visited:
                continue
            visited.add(key)
            meta = self._changes[key].meta
            sliced = ChangeMeta(
                id=meta.id,
                length=upto - start_counter + 1,
                lamport=meta.lamport,
                deps=meta.deps,
            )
            if not visitor(sliced):
                return
            for dep in meta.deps:
                push(dep)
            if start_counter > 0:
                push(ChangeID(meta.id.peer, start_counter - 1))

    def _ordered_ops(self) -> List[Tuple[int, int, int, Op]]:
        if self._op_order is None:
            order = []
            for change in self._changes.values():
                meta = change.meta
                for k, op in enumerate(change.ops):
                    order.append((meta.lamport + k, meta.id.peer, meta.id.counter + k, op))
            order.sort(key=lambda t: (t[0], t[1], t[2]))
            self._op_order = order
        return self._op_order

    def _materialize(self, vv: Optional[VersionVector]) -> Dict[str, List[str]]:
        texts: Dict[str, List[str]] = {}
        for _, peer, counter, op in self._ordered_ops():
            if vv is not None and counter >= vv.get(peer, 0):
                continue
            buf = texts.setdefault(op[1], [])
            pos = min(op[2], len(buf))
            if op[0] == INSERT:
                buf.insert(pos, op[3])
            elif pos < len(buf):
                del buf[pos]
        return texts

    def checkout(self, frontier: Frontier) -> None:
        self.commit()
        vv: VersionVector = {}
        for change_id in frontier:
            if self._find_change(change_id) is None:
                raise DocumentError(f"cannot checkout {frontier}: unknown change id {change_id}")
            self._merge_vv(vv, self._vv_at(change_id))
        self._texts = self._materialize(vv)
        self._checked_out = None if frontier == self._heads else frontier

    def checkout_to_latest(self) -> None:
        self.commit()
        self._texts = self._materialize(None)
        self._checked_out = None

    def get_text(self, field: str) -> str:
        return "".join(self._texts.get(field, ()))

    def export_snapshot(self) -> bytes:
        self.commit()
        ordered = sorted(self._changes.values(), key=lambda c: (c.meta.lamport, c.meta.id))
        changes = [_change_to_dict(c) for c in ordered]
        return canonical_json_bytes({
            "format": SNAPSHOT_FORMAT,
            "version": SNAPSHOT_VERSION,
            "changes": changes,
            "digest": sha256_hex(canonical_json_bytes(changes)),
        })

    def import_snapshot(self, data: bytes) -> None:
        try:
            envelope = json.loads(data)
        except ValueError as ex:
            raise SnapshotImportError(f"snapshot is not valid JSON: {ex}") from ex
        if not isinstance(envelope, dict) or envelope.get("format") != SNAPSHOT_FORMAT:
            raise SnapshotImportError("not a timetravel.memory snapshot")
        if envelope.get("version") != SNAPSHOT_VERSION:
            raise SnapshotImportError(f"unsupported snapshot version: {envelope.get('version')}")
        raw_changes = envelope.get("changes")
        if not isinstance(raw_changes, list):
            raise SnapshotImportError("snapshot has no change list")
        if envelope.get("digest") != sha256_hex(canonical_json_bytes(raw_changes)):
            raise SnapshotImportError("snapshot digest mismatch")

        try:
            incoming = [_change_from_dict(raw) for raw in raw_changes]
        except (KeyError, TypeError, ValueError, IndexError) as ex:
            raise SnapshotImportError(f"malformed change: {ex}") from ex

        self.commit()
        accepted = self._validate_incoming(incoming)
        for change in accepted:
            self._add_change(change)

        if self._checked_out is None:
            self._texts = self._materialize(None)
        logger.debug("Imported %d changes (%d already present)", len(accepted), len(incoming) - len(accepted))

    def _validate_incoming(self, incoming: List[_Change]) -> List[_Change]:
        """
        Check a batch against the log plus the batch itself, without applying it.

        Each peer's history is contiguous from counter 0, so an id is known
        exactly when its counter is below that peer's end.

        Returns:
            The changes not yet in the log, in application order

        Raises:
            SnapshotImportError: On a gap, an overlap or a missing dependency
        """
        ends = {peer: runs[-1].meta.last_id.counter + 1 for peer, runs in self._runs.items() if runs}
        accepted = []
        for change in sorted(incoming, key=lambda c: (c.meta.lamport, c.meta.id)):
            start = change.meta.id
            if start in self._changes:
                continue
            end = ends.get(start.peer, 0)
            if start.counter > end:
                raise SnapshotImportError(f"change {start} follows a gap in peer {start.peer}'s history")
            if start.counter < end:
                raise SnapshotImportError(f"change {start} overlaps an existing change")
            for dep in change.meta.deps:
                if dep.counter >= ends.get(dep.peer, 0):
                    raise SnapshotImportError(f"change {start} depends on unknown {dep}")
            ends[start.peer] = change.meta.last_id.counter + 1
            accepted.append(change)
        return accepted
