"""
tokenledger — command-line interface for a fungible-token ledger.

Runs the ledger procedures against a local world state (SQLite file or an
in-memory store), one operation per command.

Global options:
  --db TEXT           Store URI (memory://, sqlite:///path.db, path.db)
  --json              Output JSON instead of human-readable text
  --log-level TEXT    DEBUG|INFO|WARNING|ERROR

Examples:
  tokenledger --db ledger.db init-ledger TKN "Test Token" 1000 admin
  tokenledger --db ledger.db create-user alice
  tokenledger --db ledger.db transfer admin alice 25
  tokenledger --db ledger.db --json balance alice
  tokenledger --db ledger.db invoke TransferTokens admin bob 5
  tokenledger --db ledger.db audit

Exit codes: 0 success, 1 ledger failure (or audit errors), 2 invalid
arguments or configuration.

Note that `memory://` (the default) starts empty on every run.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, List, NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from ..config import LedgerConfig, load_config, summary
from ..contract.audit import ERROR, WARNING, AuditReport, audit_ledger
from ..contract.dispatcher import InvokeResult, functions, invoke
from ..db import SQLiteKV, open_kv
from ..errors import ConfigError, LedgerError, LedgerErrorCode
from ..logging import configure_from_config
from ..state.records import AccountRecord, TokenMetadata
from ..version import version_metadata

app = typer.Typer(
    name="tokenledger",
    help="Fungible-token ledger: accounts, supply, transfers and allowances.",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self) -> None:
        self.config: Optional[LedgerConfig] = None
        self.json_output: bool = False


_ctx = GlobalContext()


# -------------------- output --------------------


def _fmt_amount(v: Any) -> str:
    f = float(v)
    if f.is_integer() and abs(f) < 1e21:
        return str(int(f))
    return repr(f)


def _dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _render_account(console: Console, identity: str, acct: AccountRecord) -> None:
    console.print(f"[bold]{identity}[/bold]  name={acct.name or '-'}  balance={_fmt_amount(acct.balance)}")
    if acct.allowances:
        t = Table(box=box.SIMPLE, show_header=True)
        t.add_column("spender")
        t.add_column("allowance", justify="right")
        for spender in sorted(acct.allowances):
            t.add_row(spender, _fmt_amount(acct.allowances[spender]))
        console.print(t)


def _render_token(console: Console, token: TokenMetadata) -> None:
    t = Table(box=box.SIMPLE, show_header=False)
    t.add_column("field", style="bold")
    t.add_column("value")
    t.add_row("symbol", token.symbol)
    t.add_row("name", token.name)
    t.add_row("totalSupply", _fmt_amount(token.total_supply))
    t.add_row("admin", token.admin)
    console.print(t)


def _fail(err: LedgerError) -> NoReturn:
    if _ctx.json_output:
        typer.echo(_dumps({"status": "failure", "error": err.to_dict()}), err=True)
    else:
        Console(stderr=True).print(f"[red]error[/red] {err.code}: {err.message}")
        if err.data:
            typer.echo(_dumps(err.data), err=True)
    code = 2 if err.code in (LedgerErrorCode.INVALID_ARGUMENT.value, LedgerErrorCode.CONFIG.value) else 1
    raise typer.Exit(code)


def _emit(result: InvokeResult, subject: Optional[str] = None) -> None:
    if not result.ok:
        assert result.error is not None
        _fail(result.error)

    if _ctx.json_output:
        typer.echo(_dumps(result.to_dict()))
        return

    console = Console()
    payload = result.payload
    if isinstance(payload, AccountRecord):
        _render_account(console, subject or payload.name, payload)
    elif isinstance(payload, TokenMetadata):
        _render_token(console, payload)
    elif isinstance(payload, (int, float)):
        console.print(_fmt_amount(payload))
    else:
        console.print(f"[green]ok[/green] {result.function}")


def _config() -> LedgerConfig:
    if _ctx.config is None:
        _ctx.config = load_config()
    return _ctx.config


def _open_store() -> SQLiteKV:
    uri = _config().db_uri
    try:
        return open_kv(uri)
    except (ValueError, OSError, sqlite3.Error) as e:
        _fail(ConfigError(str(e), db_uri=uri))


def _run(function: str, args: List[str], subject: Optional[str] = None) -> None:
    kv = _open_store()
    with kv:
        result = invoke(kv, function, args)
    _emit(result, subject)


# -------------------- global options --------------------


def _version_callback(value: bool) -> None:
    if value:
        meta = version_metadata()
        typer.echo(f"tokenledger {meta['version']} ({meta['describe']})")
        raise typer.Exit()


@app.callback()
def main_callback(
    db: Optional[str] = typer.Option(
        None, "--db", help="Store URI (memory://, sqlite:///path.db, path.db)", envvar="TOKENLEDGER_DB"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON instead of human-readable text"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG|INFO|WARNING|ERROR", envvar="TOKENLEDGER_LOG_LEVEL"
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """
    Fungible-token ledger CLI.

    Configuration is resolved from flags first, then TOKENLEDGER_* environment
    variables, then defaults.
    """
    _ctx.json_output = json_output
    try:
        _ctx.config = load_config(overrides={"db_uri": db, "log_level": log_level})
    except ConfigError as e:
        _fail(e)
    configure_from_config(_ctx.config)


# -------------------- accounts & supply --------------------


@app.command("create-user")
def create_user(name: str = typer.Argument(..., help="Identity of the new account")) -> None:
    """Create an empty account."""
    _run("Createuser", [name], subject=name)


@app.command("init-ledger")
def init_ledger(
    symbol: str = typer.Argument(...),
    name: str = typer.Argument(...),
    initial_supply: str = typer.Argument(..., metavar="SUPPLY"),
    admin: str = typer.Argument(...),
) -> None:
    """Initialize token metadata and credit the admin with the initial supply."""
    _run("InitLedger", [symbol, name, initial_supply, admin])


@app.command()
def mint(admin: str = typer.Argument(...), amount: str = typer.Argument(...)) -> None:
    """Mint AMOUNT to the admin account (admin only)."""
    _run("MintTokens", [admin, amount])


@app.command()
def burn(user: str = typer.Argument(...), amount: str = typer.Argument(...)) -> None:
    """Burn AMOUNT from USER's balance (total supply is unchanged)."""
    _run("BurnTokens", [user, amount])


# -------------------- transfers --------------------


@app.command()
def transfer(
    sender: str = typer.Argument(..., metavar="FROM"),
    recipient: str = typer.Argument(..., metavar="TO"),
    amount: str = typer.Argument(...),
) -> None:
    """Transfer AMOUNT from FROM to TO."""
    _run("TransferTokens", [sender, recipient, amount])


@app.command()
def approve(
    owner: str = typer.Argument(...),
    spender: str = typer.Argument(...),
    amount: str = typer.Argument(...),
) -> None:
    """Add AMOUNT to SPENDER's allowance on OWNER's tokens."""
    _run("ApproveSpender", [owner, spender, amount])


@app.command("transfer-from")
def transfer_from(
    owner: str = typer.Argument(...),
    spender: str = typer.Argument(...),
    recipient: str = typer.Argument(...),
    amount: str = typer.Argument(...),
) -> None:
    """Spend SPENDER's allowance on OWNER to pay RECIPIENT."""
    _run("TransferFromApprovedSpenders", [owner, spender, recipient, amount])


# -------------------- queries --------------------


@app.command()
def balance(user: str = typer.Argument(...)) -> None:
    """Print USER's balance."""
    _run("GetBalance", [user])


@app.command()
def user(identity: str = typer.Argument(..., metavar="USER")) -> None:
    """Show USER's account record."""
    _run("GetUser", [identity], subject=identity)


@app.command()
def token() -> None:
    """Show token metadata."""
    _run("GetToken", [])


@app.command()
def allowance(owner: str = typer.Argument(...), spender: str = typer.Argument(...)) -> None:
    """Print the allowance OWNER granted SPENDER."""
    _run("GetAllowance", [owner, spender])


# -------------------- generic & maintenance --------------------


@app.command("invoke")
def invoke_cmd(
    function: str = typer.Argument(..., help="Function name, e.g. TransferTokens"),
    args: Optional[List[str]] = typer.Argument(None, help="String arguments"),
) -> None:
    """Invoke a ledger function by name with string arguments."""
    _run(function, list(args or []))


@app.command("functions")
def list_functions() -> None:
    """List invocable function names."""
    names = list(functions())
    if _ctx.json_output:
        typer.echo(_dumps(names))
    else:
        for n in names:
            typer.echo(n)


def _render_audit(report: AuditReport) -> None:
    console = Console()
    if report.token is not None:
        _render_token(console, report.token)
    console.print(
        f"accounts={len(report.accounts)}  sumBalances={_fmt_amount(report.sum_balances)}  "
        f"drift={'-' if report.supply_drift is None else _fmt_amount(report.supply_drift)}"
    )
    if not report.findings:
        console.print("[green]no findings[/green]")
        return
    t = Table(box=box.SIMPLE)
    t.add_column("severity")
    t.add_column("code")
    t.add_column("key")
    t.add_column("message")
    colors = {ERROR: "red", WARNING: "yellow"}
    for f in report.findings:
        color = colors.get(f.severity, "cyan")
        t.add_row(f"[{color}]{f.severity}[/{color}]", f.code, f.key or "-", f.message)
    console.print(t)


@app.command()
def audit(
    identity: Optional[List[str]] = typer.Option(
        None, "--identity", "-i", help="Audit only these identities (repeatable)"
    ),
) -> None:
    """Check ledger consistency; exits 1 when error-level findings exist."""
    kv = _open_store()
    with kv:
        try:
            report = audit_ledger(kv, identity or None)
        except LedgerError as e:
            _fail(e)

    if _ctx.json_output:
        typer.echo(_dumps(report.to_dict()))
    else:
        _render_audit(report)
    if not report.ok:
        raise typer.Exit(1)


@app.command("config")
def show_config() -> None:
    """Show the effective configuration."""
    cfg = _config()
    if _ctx.json_output:
        typer.echo(_dumps(cfg.to_dict()))
    else:
        typer.echo(summary(cfg))


def main() -> None:
    """Entry point for the tokenledger CLI."""
    app()


if __name__ == "__main__":
    main()
