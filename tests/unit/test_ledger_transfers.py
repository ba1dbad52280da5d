"""
Direct transfers, approvals and delegated (transfer-from) transfers.
"""
from __future__ import annotations

import pytest

from tokenledger.contract import (
    approve_spender,
    burn_tokens,
    create_user,
    get_allowance,
    get_balance,
    get_token,
    get_user,
    transfer_from_approved_spenders,
    transfer_tokens,
)
from tokenledger.errors import (
    AllowanceExceeded,
    InsufficientBalance,
    InvalidArgument,
    OwnerNotFound,
    SenderNotFound,
    SpenderNotFound,
)
from tokenledger.state.records import AccountRecord


@pytest.fixture
def funded(ledger):
    for who in ("alice", "bob", "carol"):
        create_user(ledger, who)
    return ledger


# -------------------------- transfer --------------------------


def test_transfer_moves_exact_amount(funded) -> None:
    transfer_tokens(funded, "admin", "alice", 125.25)
    assert get_balance(funded, "admin") == 874.75
    assert get_balance(funded, "alice") == 125.25
    assert get_token(funded).total_supply == 1000


def test_transfer_creates_recipient_with_empty_name(ledger) -> None:
    transfer_tokens(ledger, "admin", "newcomer", 10)
    assert get_user(ledger, "newcomer") == AccountRecord(name="", balance=10.0)


def test_self_transfer_nets_to_zero(ledger) -> None:
    transfer_tokens(ledger, "admin", "admin", 300)
    assert get_balance(ledger, "admin") == 1000


def test_transfer_insufficient_balance_leaves_state(funded) -> None:
    before = funded.get(b"alice")
    with pytest.raises(InsufficientBalance):
        transfer_tokens(funded, "alice", "bob", 1)
    assert funded.get(b"alice") == before
    assert get_balance(funded, "bob") == 0


def test_transfer_from_unknown_sender(ledger) -> None:
    with pytest.raises(SenderNotFound):
        transfer_tokens(ledger, "ghost", "admin", 1)
    assert ledger.get(b"ghost") is None


def test_transfer_rejects_bad_amounts(ledger) -> None:
    for bad in (-1, float("nan"), "10", True, None):
        with pytest.raises(InvalidArgument):
            transfer_tokens(ledger, "admin", "alice", bad)


# -------------------------- approve --------------------------


def test_approve_records_allowance_and_credits_spender(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    admin = get_user(funded, "admin")
    assert admin.allowances == {"bob": 100.0}
    assert admin.balance == 1000
    assert get_balance(funded, "bob") == 100


def test_approvals_accumulate(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    approve_spender(funded, "admin", "bob", 50)
    assert get_allowance(funded, "admin", "bob") == 150
    assert get_balance(funded, "bob") == 150


def test_approve_missing_owner(funded) -> None:
    with pytest.raises(OwnerNotFound):
        approve_spender(funded, "ghost", "bob", 1)


def test_approve_checks_owner_balance_before_spender(funded) -> None:
    with pytest.raises(InsufficientBalance):
        approve_spender(funded, "alice", "ghost", 5)


def test_approve_missing_spender(funded) -> None:
    with pytest.raises(SpenderNotFound):
        approve_spender(funded, "admin", "ghost", 5)
    assert get_user(funded, "admin").allowances == {}


def test_get_allowance_defaults_to_zero(funded) -> None:
    assert get_allowance(funded, "admin", "bob") == 0.0
    with pytest.raises(OwnerNotFound):
        get_allowance(funded, "ghost", "bob")


# -------------------------- transfer-from --------------------------


def test_transfer_from_moves_allowance_and_balances(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    transfer_from_approved_spenders(funded, "admin", "bob", "carol", 40)

    admin = get_user(funded, "admin")
    assert admin.allowances == {"bob": 60.0, "carol": 40.0}
    assert admin.balance == 1000
    assert get_balance(funded, "bob") == 60
    assert get_balance(funded, "carol") == 40


def test_transfer_from_to_implicit_recipient(funded) -> None:
    approve_spender(funded, "admin", "bob", 10)
    transfer_from_approved_spenders(funded, "admin", "bob", "dave", 10)
    assert get_user(funded, "dave") == AccountRecord(name="", balance=10.0)
    assert get_allowance(funded, "admin", "bob") == 0.0


def test_transfer_from_back_to_owner_shares_one_record(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    transfer_from_approved_spenders(funded, "admin", "bob", "admin", 40)
    admin = get_user(funded, "admin")
    assert admin.balance == 1040
    assert admin.allowances == {"admin": 40.0, "bob": 60.0}


def test_transfer_from_over_allowance(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    with pytest.raises(AllowanceExceeded) as ei:
        transfer_from_approved_spenders(funded, "admin", "bob", "carol", 100.5)
    assert ei.value.data["allowance"] == 100.0
    assert get_allowance(funded, "admin", "bob") == 100


def test_transfer_from_without_approval(funded) -> None:
    with pytest.raises(AllowanceExceeded) as ei:
        transfer_from_approved_spenders(funded, "admin", "bob", "carol", 1)
    assert ei.value.data["allowance"] is None


def test_transfer_from_missing_parties(funded) -> None:
    with pytest.raises(OwnerNotFound):
        transfer_from_approved_spenders(funded, "ghost", "bob", "carol", 1)
    with pytest.raises(SpenderNotFound):
        transfer_from_approved_spenders(funded, "admin", "ghost", "carol", 1)


def test_transfer_from_owner_balance_too_low(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    burn_tokens(funded, "admin", 995)
    with pytest.raises(InsufficientBalance) as ei:
        transfer_from_approved_spenders(funded, "admin", "bob", "carol", 50)
    assert ei.value.data["identity"] == "admin"


def test_transfer_from_spender_balance_too_low(funded) -> None:
    approve_spender(funded, "admin", "bob", 100)
    transfer_tokens(funded, "bob", "alice", 100)
    with pytest.raises(InsufficientBalance) as ei:
        transfer_from_approved_spenders(funded, "admin", "bob", "carol", 50)
    assert ei.value.data["identity"] == "bob"
    assert get_balance(funded, "bob") == 0
    assert get_allowance(funded, "admin", "bob") == 100


@pytest.mark.parametrize("amount", [10**400, -(10**400)])
def test_out_of_range_integer_amount_is_invalid(funded, amount) -> None:
    with pytest.raises(InvalidArgument) as ei:
        transfer_tokens(funded, "admin", "alice", amount)
    assert ei.value.data["field"] == "amount"
    assert get_balance(funded, "admin") == 1000
