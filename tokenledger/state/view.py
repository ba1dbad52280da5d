"""
tokenledger.state.view — per-invocation typed access to the world state.

A `LedgerView` is created at the start of one ledger operation and discarded at
its end. It gives the operation:

- typed reads of the metadata record and account records,
- a read-or-default helper for identities that may not exist yet,
- an ordered, non-atomic `commit` of the planned writes.

Reads
-----
Each key is fetched from the store at most once per view; later lookups of the
same identity return the *same* in-memory record. Two arguments naming the same
identity (``from == to``, ``owner == recipient``) therefore mutate one object
and cannot overwrite each other's changes. Absence is cached as well.

Store exceptions on `get` surface as StoreReadFailure; undecodable bytes as
SerializationFailure.

Writes
------
`commit` encodes every planned record first, so codec failures happen before
the first `put`. It then puts in the given order. If a put raises, the error is
surfaced as StoreWriteFailure carrying the keys already written, and the
remaining puts are not attempted. Nothing is rolled back. A StoreWriteFailure
raised by the backend itself is re-raised with the same list attached; other
LedgerErrors from the backend pass through unchanged.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Type, Union

from ..db.kv import WorldState, encode_key
from ..errors import (
    LedgerError,
    NotFound,
    StoreReadFailure,
    StoreWriteFailure,
    TokenNotFound,
    UserNotFound,
)
from ..logging import get_logger
from .records import TOKEN_KEY, AccountRecord, TokenMetadata

log = get_logger(__name__)

Record = Union[TokenMetadata, AccountRecord]

_ABSENT = object()


class LedgerView:
    __slots__ = ("_store", "_token", "_accounts", "_committed")

    def __init__(self, store: WorldState) -> None:
        self._store = store
        self._token: object = None  # None = not read yet; _ABSENT = read, missing
        self._accounts: Dict[str, object] = {}
        self._committed: List[str] = []

    # ------------------------------ raw IO ---------------------------------

    def _get(self, key: str) -> Optional[bytes]:
        try:
            return self._store.get(encode_key(key))
        except LedgerError:
            raise
        except Exception as e:
            raise StoreReadFailure(key, cause=e) from e

    # ------------------------------ metadata -------------------------------

    def token(self) -> Optional[TokenMetadata]:
        if self._token is None:
            raw = self._get(TOKEN_KEY)
            self._token = _ABSENT if raw is None else TokenMetadata.decode(raw)
        return None if self._token is _ABSENT else self._token  # type: ignore[return-value]

    def require_token(self) -> TokenMetadata:
        tok = self.token()
        if tok is None:
            raise TokenNotFound(TOKEN_KEY)
        return tok

    # ------------------------------ accounts -------------------------------

    def account(self, identity: str) -> Optional[AccountRecord]:
        """Record for `identity`, or None if it has never been written."""
        cached = self._accounts.get(identity)
        if cached is None:
            raw = self._get(identity)
            cached = _ABSENT if raw is None else AccountRecord.decode(raw)
            self._accounts[identity] = cached
        return None if cached is _ABSENT else cached  # type: ignore[return-value]

    def exists(self, identity: str) -> bool:
        return self.account(identity) is not None

    def require_account(
        self, identity: str, missing: Type[NotFound] = UserNotFound
    ) -> AccountRecord:
        acct = self.account(identity)
        if acct is None:
            raise missing(identity)  # type: ignore[call-arg]
        return acct

    def account_or_default(self, identity: str) -> AccountRecord:
        """
        Existing record, or a fresh zero-balance record with an empty name.
        The default is cached so aliases of `identity` share it.
        """
        acct = self.account(identity)
        if acct is None:
            acct = AccountRecord()
            self._accounts[identity] = acct
            log.debug("materialized implicit account", extra={"identity": identity})
        return acct

    # ------------------------------ writes ---------------------------------

    def _log_write_failure(self, key: str) -> None:
        log.warning(
            "store write failed; earlier writes remain committed",
            extra={"key": key, "committed": list(self._committed)},
        )

    @property
    def committed(self) -> List[str]:
        """Keys successfully written through this view, in order."""
        return list(self._committed)

    def commit(self, writes: Sequence[Tuple[str, Record]]) -> None:
        """Encode all, then put each in order; stop at the first failing put."""
        encoded = [(key, rec.encode()) for key, rec in writes]
        for key, blob in encoded:
            try:
                self._store.put(encode_key(key), blob)
            except StoreWriteFailure as e:
                self._log_write_failure(key)
                raise StoreWriteFailure(
                    key, committed=self._committed, message=e.message, cause=e.cause or e
                ) from e
            except LedgerError:
                raise
            except Exception as e:
                self._log_write_failure(key)
                raise StoreWriteFailure(key, committed=self._committed, cause=e) from e
            self._committed.append(key)
            log.debug("store write", extra={"key": key, "size": len(blob)})


__all__ = ["LedgerView", "Record"]
