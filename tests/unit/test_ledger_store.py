"""
SQLite world state and store URI handling.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from tokenledger.contract import get_balance, init_ledger, transfer_tokens
from tokenledger.db import SQLiteKV, WorldState, can_scan, encode_key, open_kv, open_sqlite_kv
from tokenledger.db import _parse_uri


@pytest.mark.parametrize(
    "uri,expected",
    [
        ("memory://", ("memory", "")),
        ("sqlite:///ledger.db", ("sqlite", "ledger.db")),
        ("sqlite:////abs/ledger.db", ("sqlite", "/abs/ledger.db")),
        ("ledger.db", ("sqlite", "ledger.db")),
    ],
)
def test_parse_uri(uri, expected) -> None:
    assert _parse_uri(uri) == expected


def test_unsupported_scheme() -> None:
    with pytest.raises(ValueError):
        open_kv("rocksdb:///x")


def test_get_put_and_overwrite(kv: SQLiteKV) -> None:
    assert kv.get(b"a") is None
    kv.put(b"a", b"1")
    kv.put(b"a", b"2")
    assert kv.get(b"a") == b"2"
    assert kv.has(b"a")
    assert not kv.has(b"b")


def test_iter_prefix(kv: SQLiteKV) -> None:
    for k in (b"ab", b"abc", b"b", b"a\xff", b"TOKEN"):
        kv.put(k, k)
    assert [k for k, _ in kv.iter_prefix(b"ab")] == [b"ab", b"abc"]
    assert [k for k, _ in kv.iter_prefix(b"a")] == [b"ab", b"abc", b"a\xff"]
    assert len(list(kv.iter_prefix(b""))) == 5


def test_protocol_conformance(kv: SQLiteKV) -> None:
    assert isinstance(kv, WorldState)
    assert can_scan(kv)
    assert not can_scan(object())


def test_encode_key() -> None:
    assert encode_key("alice") == b"alice"
    assert encode_key("ünï") == "ünï".encode("utf-8")
    with pytest.raises(TypeError):
        encode_key(5)  # type: ignore[arg-type]


def test_file_store_persists(tmp_path: Path) -> None:
    path = tmp_path / "ledger.db"
    with open_kv(f"sqlite:///{path}") as kv:
        init_ledger(kv, "TKN", "Token", 100, "admin")
        transfer_tokens(kv, "admin", "alice", 40)
    with open_kv(str(path), create=False) as kv:
        assert get_balance(kv, "alice") == 40
        assert get_balance(kv, "admin") == 60


def test_open_missing_file_without_create(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        open_sqlite_kv(tmp_path / "absent.db", create=False)
