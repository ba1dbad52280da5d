"""
Fungible token ledger operations
================================

Stateless procedures over a single-key get/put world state. Each operation:

1. validates its arguments,
2. reads only the records it needs (through a fresh `LedgerView`),
3. runs every business check,
4. commits its planned writes in a fixed order.

Steps 1–3 never write. Step 4 is *not* atomic: the store offers no multi-key
commit, so a failing put leaves the earlier puts of the same operation in
place (see each operation's "Writes" line). `StoreWriteFailure.committed`
names them.

Public interface
----------------
# mutations
init_ledger(store, symbol, name, initial_supply, admin)
create_user(store, name)
mint_tokens(store, admin, amount)
transfer_tokens(store, sender, recipient, amount)
burn_tokens(store, user, amount)
approve_spender(store, owner, spender, amount)
transfer_from_approved_spenders(store, owner, spender, recipient, amount)

# queries
get_balance(store, user) -> float
get_user(store, user) -> AccountRecord
get_token(store) -> TokenMetadata
get_allowance(store, owner, spender) -> float

Behavior kept from the deployed chaincode
-----------------------------------------
- Burning lowers the holder's balance but never `totalSupply`.
- Approving an allowance also credits the spender's balance by the amount.
- A delegated transfer re-grants the consumed allowance to the recipient on
  the owner's record instead of dropping it.
- Balances are Python floats (IEEE-754 binary64); no rounding is applied.
"""

from __future__ import annotations

from ..db.kv import WorldState
from ..errors import (
    AllowanceExceeded,
    AlreadyInitialized,
    InsufficientBalance,
    OwnerNotFound,
    SenderNotFound,
    SpenderNotFound,
    Unauthorized,
    UserAlreadyExists,
    UserNotFound,
)
from ..logging import get_logger
from ..state.records import TOKEN_KEY, AccountRecord, TokenMetadata
from ..state.view import LedgerView
from .validation import require_amount, require_identity, require_text

log = get_logger(__name__)


# ------------------------------------------------------------------------------
# Initialization & accounts
# ------------------------------------------------------------------------------


def init_ledger(
    store: WorldState, symbol: str, name: str, initial_supply: float, admin: str
) -> TokenMetadata:
    """
    One-time initializer: writes the metadata record and credits the admin
    account with the initial supply.

    Writes: TOKEN, then admin. If the admin write fails the token exists with
    no (or a stale) admin account; `audit_ledger` reports that state.

    An admin account that already existed is replaced by a fresh record.
    """
    symbol = require_text(symbol, "symbol")
    name = require_text(name, "name")
    supply = require_amount(initial_supply, "initialSupply")
    admin = require_identity(admin, "admin")

    view = LedgerView(store)
    existing = view.token()
    if existing is not None:
        raise AlreadyInitialized(existing.symbol)

    token = TokenMetadata(symbol=symbol, name=name, total_supply=supply, admin=admin)
    admin_account = AccountRecord(name=admin, balance=supply)
    view.commit([(TOKEN_KEY, token), (admin, admin_account)])

    log.info("ledger initialized", extra={"symbol": symbol, "supply": supply, "admin": admin})
    return token


def create_user(store: WorldState, name: str) -> AccountRecord:
    """Create an empty account under `name`; fails if any record is there."""
    name = require_identity(name, "name")

    view = LedgerView(store)
    if view.exists(name):
        raise UserAlreadyExists(name)

    account = AccountRecord(name=name)
    view.commit([(name, account)])
    log.info("account created", extra={"identity": name})
    return account


# ------------------------------------------------------------------------------
# Supply
# ------------------------------------------------------------------------------


def mint_tokens(store: WorldState, admin: str, amount: float) -> None:
    """
    Admin-gated mint: raises total supply and the admin balance by `amount`.

    A missing admin account is tolerated and materialized with zero balance
    (unlike every other path, which requires the acting account to exist).

    Writes: TOKEN, then admin.
    """
    admin = require_identity(admin, "admin")
    amount = require_amount(amount)

    view = LedgerView(store)
    token = view.require_token()
    if token.admin != admin:
        raise Unauthorized(admin, required="admin")

    token.total_supply += amount
    admin_account = view.account_or_default(admin)
    admin_account.balance += amount

    view.commit([(TOKEN_KEY, token), (admin, admin_account)])
    log.info("tokens minted", extra={"amount": amount, "supply": token.total_supply})


def burn_tokens(store: WorldState, user: str, amount: float) -> None:
    """
    Destroy `amount` from `user`'s balance. `totalSupply` is left unchanged.

    Writes: user.
    """
    user = require_identity(user, "user")
    amount = require_amount(amount)

    view = LedgerView(store)
    account = view.require_account(user, UserNotFound)
    if account.balance < amount:
        raise InsufficientBalance(user, amount, account.balance)

    account.balance -= amount
    view.commit([(user, account)])
    log.info("tokens burned", extra={"identity": user, "amount": amount})


# ------------------------------------------------------------------------------
# Transfers
# ------------------------------------------------------------------------------


def transfer_tokens(store: WorldState, sender: str, recipient: str, amount: float) -> None:
    """
    Move `amount` from `sender` to `recipient` (created on first receipt).

    `sender == recipient` is allowed and nets to no change.

    Writes: sender, then recipient. A failure on the second write leaves the
    sender debited with nothing credited.
    """
    sender = require_identity(sender, "from")
    recipient = require_identity(recipient, "to")
    amount = require_amount(amount)

    view = LedgerView(store)
    src = view.require_account(sender, SenderNotFound)
    if src.balance < amount:
        raise InsufficientBalance(sender, amount, src.balance)
    dst = view.account_or_default(recipient)

    src.balance -= amount
    dst.balance += amount

    view.commit([(sender, src), (recipient, dst)])
    log.info("transfer committed", extra={"from": sender, "to": recipient, "amount": amount})


def approve_spender(store: WorldState, owner: str, spender: str, amount: float) -> None:
    """
    Grant `spender` an allowance of `amount` on `owner`'s tokens.

    Approvals accumulate: the entry grows by `amount` each call. The spender's
    own balance is credited by `amount` at approval time.

    Checks, in order: owner exists, owner balance >= amount, spender exists.
    Writes: owner, then spender.
    """
    owner = require_identity(owner, "owner")
    spender = require_identity(spender, "spender")
    amount = require_amount(amount)

    view = LedgerView(store)
    owner_acct = view.require_account(owner, OwnerNotFound)
    if owner_acct.balance < amount:
        raise InsufficientBalance(owner, amount, owner_acct.balance)
    spender_acct = view.require_account(spender, SpenderNotFound)

    owner_acct.grant(spender, amount)
    spender_acct.balance += amount

    view.commit([(owner, owner_acct), (spender, spender_acct)])
    log.info(
        "allowance approved",
        extra={"owner": owner, "spender": spender, "amount": amount},
    )


def transfer_from_approved_spenders(
    store: WorldState, owner: str, spender: str, recipient: str, amount: float
) -> None:
    """
    Spend `amount` of the allowance `owner` granted `spender`, paying
    `recipient` out of the spender's balance.

    On the owner's record the spender's entry drops by `amount` and the
    recipient's entry rises by the same amount. Balances: spender -amount,
    recipient +amount (created on first receipt). The owner's balance is
    checked but not debited.

    Writes: owner, recipient, spender, each independent of the others.
    """
    owner = require_identity(owner, "owner")
    spender = require_identity(spender, "spender")
    recipient = require_identity(recipient, "recipient")
    amount = require_amount(amount)

    view = LedgerView(store)
    owner_acct = view.require_account(owner, OwnerNotFound)
    spender_acct = view.require_account(spender, SpenderNotFound)

    allowance = owner_acct.allowance_for(spender)
    if allowance is None or allowance < amount:
        raise AllowanceExceeded(owner, spender, amount, allowance)
    if owner_acct.balance < amount:
        raise InsufficientBalance(owner, amount, owner_acct.balance)
    if spender_acct.balance < amount:
        raise InsufficientBalance(spender, amount, spender_acct.balance)

    owner_acct.allowances[spender] = allowance - amount
    owner_acct.grant(recipient, amount)

    recipient_acct = view.account_or_default(recipient)
    spender_acct.balance -= amount
    recipient_acct.balance += amount

    view.commit([(owner, owner_acct), (recipient, recipient_acct), (spender, spender_acct)])
    log.info(
        "delegated transfer committed",
        extra={"owner": owner, "spender": spender, "to": recipient, "amount": amount},
    )


# ------------------------------------------------------------------------------
# Queries (pure reads)
# ------------------------------------------------------------------------------


def get_user(store: WorldState, user: str) -> AccountRecord:
    user = require_identity(user, "user")
    return LedgerView(store).require_account(user, UserNotFound)


def get_balance(store: WorldState, user: str) -> float:
    return get_user(store, user).balance


def get_token(store: WorldState) -> TokenMetadata:
    return LedgerView(store).require_token()


def get_allowance(store: WorldState, owner: str, spender: str) -> float:
    """Allowance `owner` has granted `spender`; 0.0 when there is no entry."""
    owner = require_identity(owner, "owner")
    spender = require_identity(spender, "spender")
    acct = LedgerView(store).require_account(owner, OwnerNotFound)
    return acct.allowances.get(spender, 0.0)


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
]
