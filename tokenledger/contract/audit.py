"""
tokenledger.contract.audit — read-only consistency report over the ledger.

Operations write 1–3 keys without a multi-key commit, so an interrupted
operation can leave states no successful sequence produces. The audit reads
the metadata record and account records and reports:

  TOKEN_MISSING         no metadata record (ledger never initialized)
  ADMIN_ACCOUNT_MISSING metadata present, admin account absent
                        (InitLedger stopped after its first write)
  ADMIN_ACCOUNT_EMPTY   admin balance is zero while totalSupply > 0
  NEGATIVE_BALANCE      an account balance below zero
  NEGATIVE_ALLOWANCE    an allowance entry below zero
  UNDECODABLE_RECORD    bytes that do not decode as the expected record
  ACCOUNT_MISSING       an identity asked for explicitly has no record
  SUPPLY_DRIFT          totalSupply != sum of balances

Supply drift is expected: burns keep totalSupply and approvals credit spender
balances. It is reported at "info" severity with the signed difference.

Accounts come from a full scan when the store supports `iter_prefix`;
otherwise the caller passes the identities to check.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..db.kv import WorldState, can_scan, decode_key
from ..errors import InvalidArgument, SerializationFailure
from ..logging import get_logger
from ..state.records import TOKEN_KEY, AccountRecord, TokenMetadata
from ..state.view import LedgerView

log = get_logger(__name__)

ERROR = "error"
WARNING = "warning"
INFO = "info"


@dataclass(frozen=True)
class AuditFinding:
    code: str
    severity: str
    message: str
    key: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "severity": self.severity, "message": self.message}
        if self.key is not None:
            out["key"] = self.key
        if self.data:
            out["data"] = dict(self.data)
        return out


@dataclass
class AuditReport:
    token: Optional[TokenMetadata]
    accounts: Dict[str, AccountRecord]
    findings: List[AuditFinding] = field(default_factory=list)

    @property
    def sum_balances(self) -> float:
        return math.fsum(a.balance for a in self.accounts.values())

    @property
    def supply_drift(self) -> Optional[float]:
        """totalSupply - sum(balances), or None without metadata."""
        if self.token is None:
            return None
        return self.token.total_supply - self.sum_balances

    @property
    def ok(self) -> bool:
        """No error-severity findings."""
        return not any(f.severity == ERROR for f in self.findings)

    def codes(self) -> List[str]:
        return [f.code for f in self.findings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "token": self.token.to_dict() if self.token else None,
            "accounts": len(self.accounts),
            "sumBalances": self.sum_balances,
            "supplyDrift": self.supply_drift,
            "findings": [f.to_dict() for f in self.findings],
        }


def _scan_accounts(store: Any, findings: List[AuditFinding]) -> Dict[str, AccountRecord]:
    accounts: Dict[str, AccountRecord] = {}
    for raw_key, raw in store.iter_prefix(b""):
        key = decode_key(raw_key)
        if key == TOKEN_KEY:
            continue
        try:
            accounts[key] = AccountRecord.decode(raw)
        except SerializationFailure as e:
            findings.append(
                AuditFinding("UNDECODABLE_RECORD", ERROR, e.message, key=key, data=e.data)
            )
    return accounts


def _read_accounts(
    view: LedgerView, identities: Iterable[str], findings: List[AuditFinding]
) -> Dict[str, AccountRecord]:
    accounts: Dict[str, AccountRecord] = {}
    for identity in identities:
        if identity == TOKEN_KEY or identity in accounts:
            continue
        try:
            acct = view.account(identity)
        except SerializationFailure as e:
            findings.append(
                AuditFinding("UNDECODABLE_RECORD", ERROR, e.message, key=identity, data=e.data)
            )
            continue
        if acct is None:
            findings.append(
                AuditFinding("ACCOUNT_MISSING", WARNING, "no record for identity", key=identity)
            )
            continue
        accounts[identity] = acct
    return accounts


def audit_ledger(store: WorldState, identities: Optional[Iterable[str]] = None) -> AuditReport:
    """
    Build an AuditReport. Never writes.

    Args:
        store: world state to inspect.
        identities: accounts to check. Required when the store cannot scan;
            when omitted on a scannable store every account is read.
    """
    findings: List[AuditFinding] = []
    view = LedgerView(store)

    token: Optional[TokenMetadata] = None
    try:
        token = view.token()
    except SerializationFailure as e:
        findings.append(
            AuditFinding("UNDECODABLE_RECORD", ERROR, e.message, key=TOKEN_KEY, data=e.data)
        )

    if identities is not None:
        wanted = list(identities)
        if token is not None and token.admin not in wanted:
            wanted.append(token.admin)
        accounts = _read_accounts(view, wanted, findings)
    elif can_scan(store):
        accounts = _scan_accounts(store, findings)
    else:
        raise InvalidArgument("store cannot enumerate keys; pass identities to audit")

    if token is None:
        if not any(f.key == TOKEN_KEY for f in findings):
            findings.append(AuditFinding("TOKEN_MISSING", WARNING, "ledger not initialized"))
    else:
        admin = accounts.get(token.admin)
        if admin is None:
            # An explicit read already reported ACCOUNT_MISSING for the admin.
            findings = [f for f in findings if not (f.code == "ACCOUNT_MISSING" and f.key == token.admin)]
            findings.append(
                AuditFinding(
                    "ADMIN_ACCOUNT_MISSING",
                    ERROR,
                    "token metadata exists but the admin account does not",
                    key=token.admin,
                )
            )
        elif admin.balance == 0 and token.total_supply > 0:
            findings.append(
                AuditFinding(
                    "ADMIN_ACCOUNT_EMPTY",
                    WARNING,
                    "admin balance is zero while total supply is positive",
                    key=token.admin,
                )
            )

    for identity, acct in accounts.items():
        if acct.balance < 0:
            findings.append(
                AuditFinding(
                    "NEGATIVE_BALANCE", ERROR, "balance below zero",
                    key=identity, data={"balance": acct.balance},
                )
            )
        for spender, amount in acct.allowances.items():
            if amount < 0:
                findings.append(
                    AuditFinding(
                        "NEGATIVE_ALLOWANCE", ERROR, "allowance below zero",
                        key=identity, data={"spender": spender, "allowance": amount},
                    )
                )

    report = AuditReport(token=token, accounts=accounts, findings=findings)
    drift = report.supply_drift
    if drift is not None and drift != 0:
        findings.append(
            AuditFinding(
                "SUPPLY_DRIFT", INFO, "total supply differs from the sum of balances",
                data={"drift": drift, "sumBalances": report.sum_balances},
            )
        )

    log.info(
        "audit finished",
        extra={"accounts": len(accounts), "findings": len(findings), "ok": report.ok},
    )
    return report


__all__ = ["AuditFinding", "AuditReport", "audit_ledger", "ERROR", "WARNING", "INFO"]
