"""
Edit-trace loading.

Edit traces record a real editing session as positional patches
[pos, deleted, inserted]. Replaying one into a document produces a seed
snapshot with a realistic change history.

Accepted layouts:
- {"txns": [{"patches": [[pos, del, ins], ...]}, ...]}  one change per txn
- {"edits": [[pos, del, ins], ...]}                    one change per edit

Files ending in .gz are gzip-compressed.
"""

import gzip
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from ..core.errors import TraceFormatError
from .store import CrdtDocument

logger = logging.getLogger(__name__)

Patch = Tuple[int, int, str]


@dataclass(frozen=True)
class EditTrace:
    """
    Parsed edit trace.

    Fields:
        txns: Transactions, each a list of (pos, deleted, inserted) patches
        start_content: Text present before the first transaction
        end_content: Expected final text, if the trace records it
    """
    txns: Tuple[Tuple[Patch, ...], ...]
    start_content: str = ""
    end_content: Optional[str] = None

    @property
    def patch_count(self) -> int:
        return sum(len(t) for t in self.txns)


def _parse_patch(raw: Any) -> Patch:
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise TraceFormatError(f"patch must be [pos, deleted, inserted], got {raw!r}")
    pos, deleted, inserted = raw
    if not isinstance(pos, int) or not isinstance(deleted, int) or not isinstance(inserted, str):
        raise TraceFormatError(f"patch has wrong types: {raw!r}")
    if pos < 0 or deleted < 0:
        raise TraceFormatError(f"patch has negative position or length: {raw!r}")
    return pos, deleted, inserted


def parse_trace(data: Any) -> EditTrace:
    """
    Build an EditTrace from decoded JSON.

    Raises:
        TraceFormatError: If the layout is not recognised
    """
    if not isinstance(data, dict):
        raise TraceFormatError("trace must be a JSON object")

    txns: List[Tuple[Patch, ...]] = []
    if "txns" in data:
        for txn in data["txns"]:
            if not isinstance(txn, dict) or not isinstance(txn.get("patches"), list):
                raise TraceFormatError("each txn must carry a patches list")
            txns.append(tuple(_parse_patch(p) for p in txn["patches"]))
    elif "edits" in data:
        for edit in data["edits"]:
            txns.append((_parse_patch(edit),))
    else:
        raise TraceFormatError("trace has neither 'txns' nor 'edits'")

    end = data.get("endContent", data.get("finalText"))
    return EditTrace(
        txns=tuple(txns),
        start_content=str(data.get("startContent", "")),
        end_content=end if isinstance(end, str) else None,
    )


def load_trace(path: Union[str, Path]) -> EditTrace:
    """
    Read and parse a trace file.

    Raises:
        FileNotFoundError: If path does not exist
        TraceFormatError: If the file is not a valid trace
    """
    path = Path(path)
    opener = gzip.open if path.suffix == ".gz" else open
    try:
        with opener(path, "rt", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as ex:
        raise TraceFormatError(f"cannot read trace {path}: {ex}") from ex
    trace = parse_trace(data)
    logger.info("Loaded trace %s: %d txns, %d patches", path, len(trace.txns), trace.patch_count)
    return trace


def replay_trace(
    document: CrdtDocument,
    trace: EditTrace,
    field: str = "text",
    limit: Optional[int] = None,
) -> int:
    """
    Apply trace transactions to document, one commit per transaction.

    Args:
        document: Document to edit (must be attached to its latest state)
        trace: Parsed trace
        field: Text field to edit
        limit: Stop after this many transactions (None = all)

    Returns:
        Number of transactions applied
    """
    if trace.start_content:
        document.insert(0, trace.start_content, field=field)
        document.commit()

    applied = 0
    for txn in trace.txns:
        if limit is not None and applied >= limit:
            break
        for pos, deleted, inserted in txn:
            if deleted:
                document.delete(pos, deleted, field=field)
            if inserted:
                document.insert(pos, inserted, field=field)
        document.commit()
        applied += 1
    return applied
