"""
tokenledger.contract.dispatcher — route a named invocation to an operation.

A blockchain host hands the contract a function name and a list of string
arguments. `invoke` resolves the name, checks arity, parses numeric arguments
as floats, runs the operation inside a logging trace scope and folds the
outcome into an `InvokeResult`; it never raises for ledger failures.

Function names are the deployed chaincode's (`TransferTokens`, `Createuser`,
...). snake_case aliases (`transfer_tokens`, `create_user`, ...) resolve too.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..db.kv import WorldState
from ..errors import InvalidArgument, LedgerError, UnknownFunction
from ..logging import get_logger, trace_scope
from ..state.records import AccountRecord, TokenMetadata
from . import token as ops
from .validation import parse_amount

log = get_logger(__name__)


class InvokeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_success(self) -> bool:
        return self is InvokeStatus.SUCCESS

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class InvokeResult:
    """Outcome of one invocation: a payload on success, an error otherwise."""

    function: str
    status: InvokeStatus
    payload: Any = None
    error: Optional[LedgerError] = None

    @property
    def ok(self) -> bool:
        return self.status.is_success

    def unwrap(self) -> Any:
        """Return the payload or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.payload

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"function": self.function, "status": str(self.status)}
        if self.ok:
            out["payload"] = _payload_to_json(self.payload)
        else:
            out["error"] = self.error.to_dict() if self.error else None
        return out


def _payload_to_json(payload: Any) -> Any:
    if isinstance(payload, (AccountRecord, TokenMetadata)):
        return payload.to_dict()
    return payload


# --------------------------------------------------------------------------------------
# Routing table
# --------------------------------------------------------------------------------------

# kind per positional argument: "s" = identity/text, "n" = amount
_Route = Tuple[Callable[..., Any], str, Tuple[str, ...]]

_ROUTES: Dict[str, _Route] = {
    "Createuser": (ops.create_user, "s", ("name",)),
    "InitLedger": (ops.init_ledger, "ssns", ("symbol", "name", "initialSupply", "admin")),
    "MintTokens": (ops.mint_tokens, "sn", ("admin", "amount")),
    "ApproveSpender": (ops.approve_spender, "ssn", ("owner", "spender", "amount")),
    "TransferTokens": (ops.transfer_tokens, "ssn", ("from", "to", "amount")),
    "GetBalance": (ops.get_balance, "s", ("user",)),
    "GetUser": (ops.get_user, "s", ("user",)),
    "BurnTokens": (ops.burn_tokens, "sn", ("user", "amount")),
    "TransferFromApprovedSpenders": (
        ops.transfer_from_approved_spenders,
        "sssn",
        ("owner", "spender", "recipient", "amount"),
    ),
    "GetToken": (ops.get_token, "", ()),
    "GetAllowance": (ops.get_allowance, "ss", ("owner", "spender")),
}

_ALIASES: Dict[str, str] = {
    "create_user": "Createuser",
    "init_ledger": "InitLedger",
    "mint_tokens": "MintTokens",
    "approve_spender": "ApproveSpender",
    "transfer_tokens": "TransferTokens",
    "get_balance": "GetBalance",
    "get_user": "GetUser",
    "burn_tokens": "BurnTokens",
    "transfer_from_approved_spenders": "TransferFromApprovedSpenders",
    "get_token": "GetToken",
    "get_allowance": "GetAllowance",
}


def functions() -> Tuple[str, ...]:
    """Canonical invocable function names."""
    return tuple(_ROUTES)


def resolve_function(name: str) -> str:
    """Canonical name for `name` (exact or snake_case alias)."""
    key = (name or "").strip()
    if key in _ROUTES:
        return key
    if key in _ALIASES:
        return _ALIASES[key]
    raise UnknownFunction(key)


def _coerce_args(function: str, kinds: str, names: Tuple[str, ...], args: Sequence[Any]) -> list:
    if len(args) != len(kinds):
        raise InvalidArgument(
            f"{function} expects {len(kinds)} argument(s), got {len(args)}",
            function=function,
            expected=list(names),
        )
    out = []
    for kind, field, raw in zip(kinds, names, args):
        if kind == "n":
            out.append(parse_amount(raw, field))
        else:
            out.append(raw)
    return out


# --------------------------------------------------------------------------------------
# Public API
# --------------------------------------------------------------------------------------


def invoke(store: WorldState, function: str, args: Sequence[Any] = ()) -> InvokeResult:
    """
    Run `function(*args)` against `store`.

    Ledger failures (including unknown functions and bad arguments) are
    returned as a FAILURE result. Exceptions that are not LedgerError are
    programming errors and propagate.
    """
    try:
        canonical = resolve_function(function)
    except UnknownFunction as e:
        log.warning("unknown function", extra={"code": e.code, "function": function})
        return InvokeResult(function=function, status=InvokeStatus.FAILURE, error=e)

    fn, kinds, names = _ROUTES[canonical]
    with trace_scope(op=canonical):
        try:
            call_args = _coerce_args(canonical, kinds, names, args)
            payload = fn(store, *call_args)
        except LedgerError as e:
            log.warning("invocation failed", extra={"code": e.code, "error": e.message})
            return InvokeResult(function=canonical, status=InvokeStatus.FAILURE, error=e)

    return InvokeResult(function=canonical, status=InvokeStatus.SUCCESS, payload=payload)


__all__ = [
    "InvokeStatus",
    "InvokeResult",
    "functions",
    "resolve_function",
    "invoke",
]
