"""
tokenledger.state.records — the two record kinds and their byte codec.

TokenMetadata (singleton at TOKEN_KEY):
    {"symbol": str, "name": str, "totalSupply": float, "admin": str}

AccountRecord (one per identity, keyed by the identity string):
    {"name": str, "balance": float, "allowances": {spender: float}}

Wire format is compact UTF-8 JSON with the field names above, written in that
order, allowance keys sorted. Integral floats below 1e21 are written without a
fractional part ("1000", not "1000.0"), matching the bytes of the Go chaincode
that first defined this layout. Other numbers use Python's shortest repr
("12.5", "1e-05", "1e+21"), which can differ from Go's spelling of the same
value (Go writes "0.00001"); both spellings decode to the same `float`.

Decoding is lenient the way Go's encoding/json is: missing fields take their
zero value. It additionally accepts the historical misspelled key
"allownaces" and a null allowance map. Wrong *types* are rejected with
SerializationFailure.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..errors import SerializationFailure

TOKEN_KEY = "TOKEN"

_LEGACY_ALLOWANCES_KEY = "allownaces"

# Go's encoding/json switches to exponent notation at 1e21.
_INT_FORMAT_LIMIT = 1e21


def _wire_number(v: float) -> Any:
    if math.isfinite(v) and v.is_integer() and abs(v) < _INT_FORMAT_LIMIT:
        return int(v)
    return v


def _as_float(data: Mapping[str, Any], key: str, *, record: str) -> float:
    v = data.get(key, 0.0)
    if v is None:
        return 0.0
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise SerializationFailure(
            f"{record}.{key} must be a number", field=key, got=type(v).__name__
        )
    try:
        f = float(v)
    except OverflowError as e:
        raise SerializationFailure(f"{record}.{key} is out of float range", field=key) from e
    if not math.isfinite(f):
        raise SerializationFailure(f"{record}.{key} must be finite", field=key)
    return f


def _as_str(data: Mapping[str, Any], key: str, *, record: str) -> str:
    v = data.get(key, "")
    if v is None:
        return ""
    if not isinstance(v, str):
        raise SerializationFailure(
            f"{record}.{key} must be a string", field=key, got=type(v).__name__
        )
    return v


def _load_object(raw: bytes, *, record: str) -> Dict[str, Any]:
    try:
        obj = json.loads(bytes(raw).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise SerializationFailure(f"failed to unmarshal {record} data", error=str(e)) from e
    if not isinstance(obj, dict):
        raise SerializationFailure(
            f"{record} data must be a JSON object", got=type(obj).__name__
        )
    return obj


def _dump(obj: Dict[str, Any], *, record: str) -> bytes:
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
            "utf-8"
        )
    except ValueError as e:
        raise SerializationFailure(f"failed to marshal {record} data", error=str(e)) from e


# --------------------------------------------------------------------------- #
# TokenMetadata
# --------------------------------------------------------------------------- #


@dataclass
class TokenMetadata:
    symbol: str
    name: str
    total_supply: float
    admin: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "totalSupply": _wire_number(float(self.total_supply)),
            "admin": self.admin,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenMetadata":
        return cls(
            symbol=_as_str(data, "symbol", record="token"),
            name=_as_str(data, "name", record="token"),
            total_supply=_as_float(data, "totalSupply", record="token"),
            admin=_as_str(data, "admin", record="token"),
        )

    def encode(self) -> bytes:
        return _dump(self.to_dict(), record="token")

    @classmethod
    def decode(cls, raw: bytes) -> "TokenMetadata":
        return cls.from_dict(_load_object(raw, record="token"))


# --------------------------------------------------------------------------- #
# AccountRecord
# --------------------------------------------------------------------------- #


@dataclass
class AccountRecord:
    """
    Per-identity balance and the allowances this identity has granted.

    `name` is empty for records that were materialized implicitly (first seen
    as a recipient, or the admin account created during minting).
    """

    name: str = ""
    balance: float = 0.0
    allowances: Dict[str, float] = field(default_factory=dict)

    def allowance_for(self, spender: str) -> Optional[float]:
        """Approved amount for `spender`, or None if no entry exists."""
        return self.allowances.get(spender)

    def grant(self, spender: str, amount: float) -> None:
        """Add `amount` to the spender's entry (created at 0.0 if missing)."""
        self.allowances[spender] = self.allowances.get(spender, 0.0) + amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "balance": _wire_number(float(self.balance)),
            "allowances": {
                k: _wire_number(float(self.allowances[k])) for k in sorted(self.allowances)
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccountRecord":
        if "allowances" in data:
            raw_allow = data["allowances"]
        else:
            raw_allow = data.get(_LEGACY_ALLOWANCES_KEY)
        if raw_allow is None:
            raw_allow = {}
        if not isinstance(raw_allow, dict):
            raise SerializationFailure(
                "account.allowances must be an object", got=type(raw_allow).__name__
            )
        allowances = {
            str(k): _as_float(raw_allow, k, record="account.allowances") for k in raw_allow
        }
        return cls(
            name=_as_str(data, "name", record="account"),
            balance=_as_float(data, "balance", record="account"),
            allowances=allowances,
        )

    def encode(self) -> bytes:
        return _dump(self.to_dict(), record="account")

    @classmethod
    def decode(cls, raw: bytes) -> "AccountRecord":
        return cls.from_dict(_load_object(raw, record="account"))


__all__ = ["TOKEN_KEY", "TokenMetadata", "AccountRecord"]
