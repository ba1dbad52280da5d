"""
Shared pytest fixtures:
- Fresh in-memory SQLite world state per test
- A dict-backed store without scanning (the bare get/put contract)
- A fault-injecting wrapper for partial-commit and read-failure scenarios
- An initialized ledger (TKN, supply 1000, admin "admin")
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Set

import pytest

from tokenledger.contract import init_ledger
from tokenledger.db import SQLiteKV, open_kv


class DictStore:
    """Plain get/put store; no iter_prefix."""

    def __init__(self) -> None:
        self.data: Dict[bytes, bytes] = {}

    def get(self, key: bytes) -> Optional[bytes]:
        return self.data.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self.data[key] = value


class FaultyStore:
    """
    Wraps a store. `fail_put_at=N` makes the N-th put (1-based, counted from
    arming) raise; `fail_get_keys` makes reads of those keys raise.
    """

    def __init__(self, inner) -> None:
        self.inner = inner
        self.fail_put_at: Optional[int] = None
        self.fail_get_keys: Set[bytes] = set()
        self.puts: List[bytes] = []

    def arm_put(self, n: int) -> None:
        self.fail_put_at = n
        self.puts = []

    def get(self, key: bytes) -> Optional[bytes]:
        if key in self.fail_get_keys:
            raise IOError(f"simulated read failure for {key!r}")
        return self.inner.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        if self.fail_put_at is not None and len(self.puts) + 1 == self.fail_put_at:
            raise IOError(f"simulated write failure for {key!r}")
        self.inner.put(key, value)
        self.puts.append(key)


@pytest.fixture(autouse=True)
def _reset_ledger_logger() -> Iterator[None]:
    """CLI runs reconfigure the package logger; restore propagation for caplog."""
    yield
    logger = logging.getLogger("tokenledger")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def kv() -> Iterator[SQLiteKV]:
    store = open_kv("memory://")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def dict_store() -> DictStore:
    return DictStore()


@pytest.fixture
def faulty(dict_store: DictStore) -> FaultyStore:
    return FaultyStore(dict_store)


@pytest.fixture
def ledger(kv: SQLiteKV) -> SQLiteKV:
    init_ledger(kv, "TKN", "Test Token", 1000, "admin")
    return kv
