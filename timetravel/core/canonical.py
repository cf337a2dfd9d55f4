"""
Canonical serialization and content hashing.

Reference-engine snapshots and the CLI's text hashes go through these
helpers so equal data always yields equal bytes.
"""

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic UTF-8 JSON.

    Keys sorted at every level, no whitespace, tuples written as arrays,
    non-ASCII characters kept unescaped.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def content_hash(text: str) -> str:
    """SHA-256 of materialized text, for comparing checkouts across engines."""
    return sha256_hex(text.encode("utf-8"))
