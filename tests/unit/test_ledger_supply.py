"""
Initialization, account creation, minting and burning.
"""
from __future__ import annotations

import pytest

from tokenledger.contract import (
    burn_tokens,
    create_user,
    get_balance,
    get_token,
    get_user,
    init_ledger,
    mint_tokens,
    transfer_tokens,
)
from tokenledger.errors import (
    AlreadyInitialized,
    InsufficientBalance,
    InvalidArgument,
    TokenNotFound,
    Unauthorized,
    UserAlreadyExists,
    UserNotFound,
)
from tokenledger.state.records import AccountRecord, TokenMetadata


def test_walkthrough_scenario(kv) -> None:
    init_ledger(kv, "TOK", "Tok", 1000, "admin1")
    assert get_balance(kv, "admin1") == 1000

    mint_tokens(kv, "admin1", 500)
    assert get_balance(kv, "admin1") == 1500
    assert get_token(kv).total_supply == 1500

    transfer_tokens(kv, "admin1", "u1", 300)
    assert get_balance(kv, "admin1") == 1200
    assert get_balance(kv, "u1") == 300

    burn_tokens(kv, "u1", 100)
    assert get_balance(kv, "u1") == 200
    assert get_token(kv).total_supply == 1500


# -------------------------- init --------------------------


def test_init_writes_metadata_and_admin(kv) -> None:
    tok = init_ledger(kv, "TKN", "Test Token", 1000, "admin")
    assert tok == TokenMetadata("TKN", "Test Token", 1000.0, "admin")
    assert kv.get(b"TOKEN") == b'{"symbol":"TKN","name":"Test Token","totalSupply":1000,"admin":"admin"}'
    assert get_user(kv, "admin") == AccountRecord(name="admin", balance=1000.0)


def test_second_init_fails_without_mutation(ledger) -> None:
    before_tok = ledger.get(b"TOKEN")
    before_admin = ledger.get(b"admin")
    with pytest.raises(AlreadyInitialized):
        init_ledger(ledger, "OTHER", "Other", 5, "someone")
    assert ledger.get(b"TOKEN") == before_tok
    assert ledger.get(b"admin") == before_admin
    assert ledger.get(b"someone") is None


def test_init_replaces_existing_admin_account(kv) -> None:
    kv.put(b"admin", AccountRecord(name="old", balance=7.0, allowances={"x": 1.0}).encode())
    init_ledger(kv, "TKN", "Test Token", 50, "admin")
    assert get_user(kv, "admin") == AccountRecord(name="admin", balance=50.0)


@pytest.mark.parametrize(
    "args",
    [
        ("", "Token", 1, "admin"),
        ("TKN", "", 1, "admin"),
        ("TKN", "Token", -1, "admin"),
        ("TKN", "Token", float("inf"), "admin"),
        ("TKN", "Token", 1, ""),
        ("TKN", "Token", 1, "TOKEN"),
    ],
)
def test_init_rejects_bad_arguments(kv, args) -> None:
    with pytest.raises(InvalidArgument):
        init_ledger(kv, *args)
    assert kv.get(b"TOKEN") is None


# -------------------------- accounts --------------------------


def test_create_user(kv) -> None:
    acct = create_user(kv, "alice")
    assert acct == AccountRecord(name="alice")
    assert kv.get(b"alice") == b'{"name":"alice","balance":0,"allowances":{}}'


def test_create_user_twice_fails(kv) -> None:
    create_user(kv, "alice")
    with pytest.raises(UserAlreadyExists):
        create_user(kv, "alice")


def test_create_user_without_token(kv) -> None:
    create_user(kv, "alice")
    with pytest.raises(TokenNotFound):
        get_token(kv)


def test_reserved_identity_is_rejected(kv) -> None:
    with pytest.raises(InvalidArgument):
        create_user(kv, "TOKEN")


def test_get_user_missing(kv) -> None:
    with pytest.raises(UserNotFound):
        get_user(kv, "ghost")
    with pytest.raises(UserNotFound):
        get_balance(kv, "ghost")


# -------------------------- mint --------------------------


def test_mint_by_admin(ledger) -> None:
    mint_tokens(ledger, "admin", 250.5)
    assert get_token(ledger).total_supply == 1250.5
    assert get_balance(ledger, "admin") == 1250.5


def test_mint_by_non_admin_is_unauthorized(ledger) -> None:
    create_user(ledger, "mallory")
    before = dict(tok=ledger.get(b"TOKEN"), m=ledger.get(b"mallory"))
    with pytest.raises(Unauthorized):
        mint_tokens(ledger, "mallory", 10)
    assert ledger.get(b"TOKEN") == before["tok"]
    assert ledger.get(b"mallory") == before["m"]


def test_mint_before_init(kv) -> None:
    with pytest.raises(TokenNotFound):
        mint_tokens(kv, "admin", 1)


def test_mint_materializes_missing_admin_account(dict_store) -> None:
    init_ledger(dict_store, "TKN", "Token", 10, "admin")
    del dict_store.data[b"admin"]
    mint_tokens(dict_store, "admin", 5)
    assert get_user(dict_store, "admin") == AccountRecord(name="", balance=5.0)
    assert get_token(dict_store).total_supply == 15


def test_mint_zero_is_allowed(ledger) -> None:
    mint_tokens(ledger, "admin", 0)
    assert get_token(ledger).total_supply == 1000


# -------------------------- burn --------------------------


def test_burn_debits_balance_but_not_supply(ledger) -> None:
    burn_tokens(ledger, "admin", 400)
    assert get_balance(ledger, "admin") == 600
    assert get_token(ledger).total_supply == 1000


def test_burn_more_than_balance(ledger) -> None:
    with pytest.raises(InsufficientBalance) as ei:
        burn_tokens(ledger, "admin", 1000.01)
    assert ei.value.data["identity"] == "admin"
    assert get_balance(ledger, "admin") == 1000


def test_burn_entire_balance(ledger) -> None:
    burn_tokens(ledger, "admin", 1000)
    assert get_balance(ledger, "admin") == 0


def test_burn_missing_user(ledger) -> None:
    with pytest.raises(UserNotFound):
        burn_tokens(ledger, "ghost", 1)


def test_negative_amounts_are_rejected(ledger) -> None:
    with pytest.raises(InvalidArgument):
        burn_tokens(ledger, "admin", -5)
    with pytest.raises(InvalidArgument):
        mint_tokens(ledger, "admin", -5)
    assert get_balance(ledger, "admin") == 1000
