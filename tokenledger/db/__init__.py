"""
tokenledger.db
==============

Store backends for running the ledger outside a blockchain host.

URIs
----
- "memory://"                 → in-memory SQLite (tests, scratch runs)
- "sqlite:///path/to/x.db"    → SQLite file
- "sqlite:///:memory:"        → in-memory SQLite
- bare path                   → SQLite file at that path

The interface the ledger consumes lives in `tokenledger.db.kv`; any object with
`get(bytes) -> bytes | None` and `put(bytes, bytes)` works, including a host's
own world-state adapter.

Example
-------
>>> from tokenledger.db import open_kv
>>> kv = open_kv("memory://")
>>> kv.put(b"alice", b"{}")
>>> kv.get(b"alice")
b'{}'
"""

from __future__ import annotations

from typing import Tuple

from .kv import ScannableState, WorldState, can_scan, decode_key, encode_key
from .sqlite import SQLiteKV, open_sqlite_kv


def _parse_uri(uri: str) -> Tuple[str, str]:
    """Parse a store URI into (backend, path)."""
    u = uri.strip()
    if u.startswith("memory://"):
        return ("memory", "")
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if "://" in u:
        raise ValueError(f"unsupported store URI scheme: {uri!r}")
    return ("sqlite", u or ":memory:")


def open_kv(uri: str, create: bool = True) -> SQLiteKV:
    """
    Open a world-state store by URI.

    Raises:
        ValueError for unsupported schemes.
        FileNotFoundError when `create=False` and the file is missing.
    """
    backend, path = _parse_uri(uri)
    if backend == "memory":
        return open_sqlite_kv(":memory:")
    return open_sqlite_kv(path or ":memory:", create=create)


__all__ = [
    "WorldState",
    "ScannableState",
    "SQLiteKV",
    "can_scan",
    "encode_key",
    "decode_key",
    "open_kv",
    "open_sqlite_kv",
]
