"""
World-state store interface
===========================

The ledger core consumes exactly two calls from the host's world state:

    get(key) -> bytes | None     # None for a missing key; never raises for absence
    put(key, value) -> None      # raises on failure

There is no batch, no delete and no multi-key transaction: every `put` is an
independent commit as far as the ledger is concerned.

`ScannableState` is an *optional* richer surface (prefix scans, close) that the
SQLite backend provides. Only the audit and the CLI use it; operations never do.

Keys
----
Ledger keys are strings (the identity, or the metadata key "TOKEN"). Byte-keyed
backends receive them UTF-8 encoded via `encode_key`; `decode_key` reverses it.
"""

from __future__ import annotations

from typing import Iterator, Optional, Protocol, Tuple, Union, runtime_checkable

KeyLike = Union[str, bytes, bytearray, memoryview]


@runtime_checkable
class WorldState(Protocol):
    """Minimal single-key get/put surface."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Persist (key, value), overwriting; raise on failure."""
        ...


@runtime_checkable
class ScannableState(WorldState, Protocol):
    """World state that can also enumerate keys (local backends only)."""

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose key starts with `prefix`, in key order."""
        ...

    def close(self) -> None:
        ...


def encode_key(key: KeyLike) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"unsupported key type: {type(key)!r}")


def decode_key(key: bytes) -> str:
    return bytes(key).decode("utf-8", errors="replace")


def can_scan(store: object) -> bool:
    return callable(getattr(store, "iter_prefix", None))


__all__ = [
    "KeyLike",
    "WorldState",
    "ScannableState",
    "encode_key",
    "decode_key",
    "can_scan",
]
