"""
tokenledger.contract — the fungible-token ledger procedures.

    from tokenledger.db import open_kv
    from tokenledger.contract import init_ledger, transfer_tokens, get_balance

    kv = open_kv("memory://")
    init_ledger(kv, "TKN", "Token", 1000, "admin")
    transfer_tokens(kv, "admin", "alice", 10)
    assert get_balance(kv, "alice") == 10.0
"""

from .audit import AuditFinding, AuditReport, audit_ledger
from .dispatcher import InvokeResult, InvokeStatus, functions, invoke, resolve_function
from .token import (
    approve_spender,
    burn_tokens,
    create_user,
    get_allowance,
    get_balance,
    get_token,
    get_user,
    init_ledger,
    mint_tokens,
    transfer_from_approved_spenders,
    transfer_tokens,
)

__all__ = [
    "init_ledger",
    "create_user",
    "mint_tokens",
    "burn_tokens",
    "transfer_tokens",
    "approve_spender",
    "transfer_from_approved_spenders",
    "get_user",
    "get_balance",
    "get_token",
    "get_allowance",
    "invoke",
    "functions",
    "resolve_function",
    "InvokeResult",
    "InvokeStatus",
    "audit_ledger",
    "AuditReport",
    "AuditFinding",
]
