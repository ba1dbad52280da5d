"""
Named invocation: routing, aliases, string-argument parsing and result shapes.
"""
from __future__ import annotations

import logging

import pytest

from tokenledger.contract import functions, invoke, resolve_function
from tokenledger.contract.dispatcher import InvokeStatus
from tokenledger.errors import InsufficientBalance, LedgerErrorCode, UnknownFunction


def test_function_table_lists_chaincode_names() -> None:
    names = set(functions())
    assert {
        "Createuser",
        "InitLedger",
        "MintTokens",
        "ApproveSpender",
        "TransferTokens",
        "GetBalance",
        "GetUser",
        "BurnTokens",
        "TransferFromApprovedSpenders",
        "GetToken",
        "GetAllowance",
    } <= names


@pytest.mark.parametrize(
    "name,canonical",
    [
        ("TransferTokens", "TransferTokens"),
        ("transfer_tokens", "TransferTokens"),
        ("create_user", "Createuser"),
        ("  GetBalance ", "GetBalance"),
    ],
)
def test_resolve_function(name: str, canonical: str) -> None:
    assert resolve_function(name) == canonical


def test_resolve_unknown() -> None:
    with pytest.raises(UnknownFunction):
        resolve_function("Steal")


def test_invoke_full_flow_with_string_args(kv) -> None:
    assert invoke(kv, "InitLedger", ["TKN", "Token", "1000", "admin"]).ok
    assert invoke(kv, "Createuser", ["alice"]).ok
    assert invoke(kv, "TransferTokens", ["admin", "alice", "12.5"]).ok

    res = invoke(kv, "GetBalance", ["alice"])
    assert res.status is InvokeStatus.SUCCESS
    assert res.payload == 12.5
    assert res.to_dict() == {"function": "GetBalance", "status": "success", "payload": 12.5}


def test_invoke_record_payload_is_serialized(ledger) -> None:
    res = invoke(ledger, "get_token")
    assert res.function == "GetToken"
    assert res.to_dict()["payload"] == {
        "symbol": "TKN",
        "name": "Test Token",
        "totalSupply": 1000,
        "admin": "admin",
    }


def test_invoke_ledger_failure_becomes_result(ledger, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="tokenledger")
    res = invoke(ledger, "BurnTokens", ["admin", "5000"])
    assert not res.ok
    assert res.status is InvokeStatus.FAILURE
    assert res.error.code == LedgerErrorCode.INSUFFICIENT_BALANCE.value
    assert res.to_dict()["error"]["code"] == "LEDGER/INSUFFICIENT_BALANCE"
    with pytest.raises(InsufficientBalance):
        res.unwrap()
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_invoke_unknown_function(kv) -> None:
    res = invoke(kv, "Steal", ["admin"])
    assert res.error.code == LedgerErrorCode.UNKNOWN_FUNCTION.value
    assert res.function == "Steal"


@pytest.mark.parametrize(
    "function,args",
    [
        ("TransferTokens", ["admin", "alice"]),
        ("TransferTokens", ["admin", "alice", "1", "extra"]),
        ("MintTokens", ["admin", "lots"]),
        ("MintTokens", ["admin", "-3"]),
        ("MintTokens", ["admin", "inf"]),
    ],
)
def test_invoke_bad_arguments(ledger, function, args) -> None:
    res = invoke(ledger, function, args)
    assert res.error.code == LedgerErrorCode.INVALID_ARGUMENT.value
    assert ledger.get(b"TOKEN") == b'{"symbol":"TKN","name":"Test Token","totalSupply":1000,"admin":"admin"}'


def test_invoke_logs_operation_summary(ledger, caplog) -> None:
    caplog.set_level(logging.INFO, logger="tokenledger")
    invoke(ledger, "MintTokens", ["admin", "1"])
    minted = [r for r in caplog.records if r.getMessage() == "tokens minted"]
    assert minted


def test_unwrap_returns_payload_on_success(ledger) -> None:
    res = invoke(ledger, "GetBalance", ["admin"])
    assert res.ok
    assert res.unwrap() == 1000


def test_out_of_range_stored_number_is_a_serialization_failure(ledger) -> None:
    ledger.put(b"alice", b'{"name":"alice","balance":' + b"9" * 400 + b"}")
    res = invoke(ledger, "GetBalance", ["alice"])
    assert res.status is InvokeStatus.FAILURE
    assert res.error.code == LedgerErrorCode.SERIALIZATION.value
