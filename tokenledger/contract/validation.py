"""
Argument guards shared by the ledger operations.

All guards raise InvalidArgument and run before the first store read.
"""

from __future__ import annotations

import math
from typing import Any

from ..errors import InvalidArgument
from ..state.records import TOKEN_KEY


def require_identity(value: Any, field: str = "identity") -> str:
    """Non-empty string that does not collide with the metadata key."""
    if not isinstance(value, str) or not value:
        raise InvalidArgument(f"{field} must be a non-empty string", field=field)
    if value == TOKEN_KEY:
        raise InvalidArgument(
            f"{field} may not be the reserved key {TOKEN_KEY!r}", field=field
        )
    return value


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{field} must be a non-empty string", field=field)
    return value


def require_amount(value: Any, field: str = "amount") -> float:
    """Finite, non-negative number, returned as float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{field} must be a number", field=field, got=type(value).__name__)
    try:
        amount = float(value)
    except OverflowError as e:
        raise InvalidArgument(f"{field} is out of range", field=field) from e
    if not math.isfinite(amount):
        raise InvalidArgument(f"{field} must be finite", field=field, got=str(value))
    if amount < 0:
        raise InvalidArgument(f"{field} must be non-negative", field=field, got=amount)
    return amount


def parse_amount(raw: Any, field: str = "amount") -> float:
    """Parse a string argument (as sent by an invocation transport) into an amount."""
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError as e:
            raise InvalidArgument(f"{field} is not a number", field=field, got=raw) from e
    return require_amount(raw, field)


__all__ = ["require_identity", "require_text", "require_amount", "parse_amount"]
