"""
tokenledger.state — record types, their codec, and the per-invocation view
that operations read and write through.
"""

from .records import TOKEN_KEY, AccountRecord, TokenMetadata
from .view import LedgerView

__all__ = ["TOKEN_KEY", "AccountRecord", "TokenMetadata", "LedgerView"]
