"""
tokenledger.errors
------------------

One error system for the ledger core, the store adapters and the CLI.

Design
------
- One root `LedgerError` with a machine-stable `code` and JSON-safe `data`.
- Families mirror how callers react to a failure:
    StoreError            (StoreReadFailure, StoreWriteFailure)  retryable
    NotFound              (User/Owner/Spender/Sender/Token)      permanent
    AlreadyExists         (AlreadyInitialized, UserAlreadyExists)
    Unauthorized, InsufficientBalance, AllowanceExceeded
    SerializationFailure, InvalidArgument, ConfigError, UnknownFunction
- `to_dict()` is what the dispatcher and the CLI emit.

Every ledger check raises before the first store write of an operation. The
only errors that can surface *after* a write are `StoreWriteFailure` and
`SerializationFailure`; the former records which keys were already committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence


class LedgerErrorCode(str, Enum):
    CONFIG = "LEDGER/CONFIG"
    INVALID_ARGUMENT = "LEDGER/INVALID_ARGUMENT"
    UNKNOWN_FUNCTION = "LEDGER/UNKNOWN_FUNCTION"

    # Store / codec
    STORE_READ = "LEDGER/STORE_READ_FAILURE"
    STORE_WRITE = "LEDGER/STORE_WRITE_FAILURE"
    SERIALIZATION = "LEDGER/SERIALIZATION_FAILURE"

    # Missing records
    USER_NOT_FOUND = "LEDGER/USER_NOT_FOUND"
    OWNER_NOT_FOUND = "LEDGER/OWNER_NOT_FOUND"
    SPENDER_NOT_FOUND = "LEDGER/SPENDER_NOT_FOUND"
    SENDER_NOT_FOUND = "LEDGER/SENDER_NOT_FOUND"
    TOKEN_NOT_FOUND = "LEDGER/TOKEN_NOT_FOUND"

    # Duplicates
    ALREADY_INITIALIZED = "LEDGER/ALREADY_INITIALIZED"
    USER_ALREADY_EXISTS = "LEDGER/USER_ALREADY_EXISTS"

    # Business rules
    UNAUTHORIZED = "LEDGER/UNAUTHORIZED"
    INSUFFICIENT_BALANCE = "LEDGER/INSUFFICIENT_BALANCE"
    ALLOWANCE_EXCEEDED = "LEDGER/ALLOWANCE_EXCEEDED"


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Root error for tokenledger.

    Attributes
    ----------
    code: str
        Machine-stable error code (see LedgerErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        JSON-serializable details (identities, amounts, keys).
    retryable: bool
        Whether re-running the same invocation may succeed.
    cause: Optional[BaseException]
        Wrapped backend exception, if any.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.code, LedgerErrorCode):
            self.code = self.code.value
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape for logs, invoke results and the CLI."""
        out: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "data": _jsonmap(self.data),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            return f"{self.code}: {self.message} [{preview}]"
        return f"{self.code}: {self.message}"


class ConfigError(LedgerError):
    def __init__(self, message: str = "invalid configuration", **data: Any) -> None:
        super().__init__(
            code=LedgerErrorCode.CONFIG, message=message, data=_jsonmap(data)
        )


class InvalidArgument(LedgerError):
    def __init__(self, message: str = "invalid argument", **data: Any) -> None:
        super().__init__(
            code=LedgerErrorCode.INVALID_ARGUMENT, message=message, data=_jsonmap(data)
        )


class UnknownFunction(LedgerError):
    def __init__(self, function: str) -> None:
        super().__init__(
            code=LedgerErrorCode.UNKNOWN_FUNCTION,
            message=f"unknown function: {function}",
            data={"function": function},
        )


# ---------------------------------------------------------------------------
# Store & codec
# ---------------------------------------------------------------------------


class StoreError(LedgerError):
    """An underlying store call failed. Never retried internally."""


class StoreReadFailure(StoreError):
    def __init__(
        self,
        key: str,
        message: str = "failed to read from world state",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            code=LedgerErrorCode.STORE_READ,
            message=message,
            data={"key": key},
            retryable=True,
            cause=cause,
        )


class StoreWriteFailure(StoreError):
    """
    A put failed. `committed` lists the keys this operation had already
    written before the failing one; those writes are not rolled back.
    """

    def __init__(
        self,
        key: str,
        committed: Sequence[str] = (),
        message: str = "failed to write to world state",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            code=LedgerErrorCode.STORE_WRITE,
            message=message,
            data={"key": key, "committed": list(committed)},
            retryable=True,
            cause=cause,
        )

    @property
    def committed(self) -> list:
        return list(self.data.get("committed", []))


class SerializationFailure(LedgerError):
    def __init__(self, message: str = "record (de)serialization failed", **data: Any) -> None:
        super().__init__(
            code=LedgerErrorCode.SERIALIZATION, message=message, data=_jsonmap(data)
        )


# ---------------------------------------------------------------------------
# Missing / duplicate records
# ---------------------------------------------------------------------------


class NotFound(LedgerError):
    """A required record is absent. `role` names which argument it was."""

    role = "record"

    def __init__(self, identity: str, *, code: LedgerErrorCode) -> None:
        super().__init__(
            code=code,
            message=f"{self.role} not found",
            data={"identity": identity},
        )


class UserNotFound(NotFound):
    role = "user"

    def __init__(self, identity: str) -> None:
        super().__init__(identity, code=LedgerErrorCode.USER_NOT_FOUND)


class OwnerNotFound(NotFound):
    role = "owner"

    def __init__(self, identity: str) -> None:
        super().__init__(identity, code=LedgerErrorCode.OWNER_NOT_FOUND)


class SpenderNotFound(NotFound):
    role = "spender"

    def __init__(self, identity: str) -> None:
        super().__init__(identity, code=LedgerErrorCode.SPENDER_NOT_FOUND)


class SenderNotFound(NotFound):
    role = "sender"

    def __init__(self, identity: str) -> None:
        super().__init__(identity, code=LedgerErrorCode.SENDER_NOT_FOUND)


class TokenNotFound(NotFound):
    role = "token"

    def __init__(self, key: str = "TOKEN") -> None:
        super().__init__(key, code=LedgerErrorCode.TOKEN_NOT_FOUND)


class AlreadyExists(LedgerError):
    pass


class AlreadyInitialized(AlreadyExists):
    def __init__(self, symbol: str = "") -> None:
        super().__init__(
            code=LedgerErrorCode.ALREADY_INITIALIZED,
            message="token already initialized",
            data={"symbol": symbol} if symbol else {},
        )


class UserAlreadyExists(AlreadyExists):
    def __init__(self, identity: str) -> None:
        super().__init__(
            code=LedgerErrorCode.USER_ALREADY_EXISTS,
            message="user already exists",
            data={"identity": identity},
        )


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


class Unauthorized(LedgerError):
    def __init__(self, caller: str, required: str = "admin") -> None:
        super().__init__(
            code=LedgerErrorCode.UNAUTHORIZED,
            message=f"only {required} can perform this operation",
            data={"caller": caller},
        )


class InsufficientBalance(LedgerError):
    def __init__(self, identity: str, needed: float, balance: float) -> None:
        super().__init__(
            code=LedgerErrorCode.INSUFFICIENT_BALANCE,
            message="insufficient balance",
            data={"identity": identity, "needed": needed, "balance": balance},
        )


class AllowanceExceeded(LedgerError):
    def __init__(
        self, owner: str, spender: str, needed: float, allowance: Optional[float]
    ) -> None:
        super().__init__(
            code=LedgerErrorCode.ALLOWANCE_EXCEEDED,
            message="spender allowance exceeded or not approved",
            data={
                "owner": owner,
                "spender": spender,
                "needed": needed,
                "allowance": allowance,
            },
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (list, tuple)):
        return [_coerce_json(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(i) for k, i in v.items()}
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    return str(v)


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "LedgerErrorCode",
    "LedgerError",
    "ConfigError",
    "InvalidArgument",
    "UnknownFunction",
    "StoreError",
    "StoreReadFailure",
    "StoreWriteFailure",
    "SerializationFailure",
    "NotFound",
    "UserNotFound",
    "OwnerNotFound",
    "SpenderNotFound",
    "SenderNotFound",
    "TokenNotFound",
    "AlreadyExists",
    "AlreadyInitialized",
    "UserAlreadyExists",
    "Unauthorized",
    "InsufficientBalance",
    "AllowanceExceeded",
]
