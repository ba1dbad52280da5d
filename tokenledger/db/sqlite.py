"""
SQLite-backed world state
=========================

A small embedded store implementing `WorldState` / `ScannableState` from
`tokenledger.db.kv`, used for local runs, the CLI and tests.

- Table schema: kv(k BLOB PRIMARY KEY, v BLOB NOT NULL)
- Every `put` is its own autocommitted statement; there is no batch API.
- Prefix scans use a bounded range [prefix, prefix_hi) plus a substr guard.

Pragmas: WAL journal, NORMAL sync, in-memory temp store.
"""

from __future__ import annotations

import os
import sqlite3
from typing import Iterator, Optional, Tuple, Union

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "temp_store": "MEMORY",
}


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    cur = conn.cursor()
    for name, value in p.items():
        cur.execute(f"PRAGMA {name}={value}")
    cur.close()


def _migrate(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            k BLOB PRIMARY KEY,
            v BLOB NOT NULL
        )
        """
    )


def _prefix_hi(prefix: bytes) -> Optional[bytes]:
    """
    Smallest byte string strictly greater than every key starting with
    `prefix`, or None if no finite bound exists (empty or all-0xFF prefix).

    b"ab\\x01" -> b"ab\\x02"; b"\\xff\\xff" -> None
    """
    if not prefix:
        return None
    p = bytearray(prefix)
    for i in range(len(p) - 1, -1, -1):
        if p[i] != 0xFF:
            p[i] += 1
            del p[i + 1 :]
            return bytes(p)
    return None


def _resolve_path(path: PathLike) -> str:
    path_str = str(path)
    if path_str.startswith("sqlite:///"):
        path_str = path_str[len("sqlite:///") :]
    return path_str


class SQLiteKV:
    """SQLite-backed world state. Use `open_sqlite_kv(path)` to construct."""

    __slots__ = ("_conn", "_path")

    def __init__(self, conn: sqlite3.Connection, path: str = ":memory:") -> None:
        self._conn = conn
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    # --- WorldState ---

    def get(self, key: bytes) -> Optional[bytes]:
        cur = self._conn.execute("SELECT v FROM kv WHERE k = ?", (memoryview(key),))
        row = cur.fetchone()
        cur.close()
        return bytes(row[0]) if row is not None else None

    def put(self, key: bytes, value: bytes) -> None:
        self._conn.execute(
            "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v",
            (memoryview(key), memoryview(value)),
        )

    # --- ScannableState ---

    def has(self, key: bytes) -> bool:
        cur = self._conn.execute("SELECT 1 FROM kv WHERE k = ? LIMIT 1", (memoryview(key),))
        row = cur.fetchone()
        cur.close()
        return row is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        hi = _prefix_hi(prefix)
        if hi is not None:
            sql = (
                "SELECT k, v FROM kv "
                "WHERE k >= ? AND k < ? AND substr(k,1,?) = ? "
                "ORDER BY k"
            )
            args: tuple = (memoryview(prefix), memoryview(hi), len(prefix), memoryview(prefix))
        elif prefix:
            sql = "SELECT k, v FROM kv WHERE substr(k,1,?) = ? ORDER BY k"
            args = (len(prefix), memoryview(prefix))
        else:
            sql = "SELECT k, v FROM kv ORDER BY k"
            args = ()

        cur = self._conn.execute(sql, args)
        try:
            # Materialize so callers may write while iterating.
            rows = cur.fetchall()
        finally:
            cur.close()
        for k, v in rows:
            yield bytes(k), bytes(v)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteKV":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_sqlite_kv(
    path: PathLike,
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> SQLiteKV:
    """
    Open (or create) a SQLite world state at `path`.

    `create=False` raises FileNotFoundError if the file does not exist.
    """
    path_str = _resolve_path(path)
    in_memory = path_str in ("", ":memory:")
    if in_memory:
        path_str = ":memory:"
    elif not create and not os.path.exists(path_str):
        raise FileNotFoundError(f"SQLite world state not found at {path_str}")

    conn = sqlite3.connect(
        path_str,
        isolation_level=None,  # autocommit: every put is its own commit
        check_same_thread=False,
    )
    try:
        if not in_memory:
            _apply_pragmas(conn, pragmas)
        _migrate(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return SQLiteKV(conn, path_str)


__all__ = ["SQLiteKV", "open_sqlite_kv"]
