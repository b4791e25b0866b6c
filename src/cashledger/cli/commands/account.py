"""Account management commands."""

import click

from cashledger.cli.account_resolution import (
    resolve_account_or_exit,
    resolve_ledger_node_or_exit,
)
from cashledger.cli.date_filters import parse_date_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.chart import ChartOfAccountsService
from cashledger.domain.enums import AccountKind
from cashledger.domain.errors import DomainError
from cashledger.utils.amount_parser import format_amount, parse_amount

KIND_CHOICE = click.Choice([kind.value for kind in AccountKind], case_sensitive=False)


@click.group()
def account_group():
    """Manage cash, bank, wallet and investment accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--kind", type=KIND_CHOICE, required=True, help="Account kind")
@click.option("--initial-balance", default="0", help="Opening balance (default: 0)")
@click.option("--currency", help="Currency code (default from CASHLEDGER_CURRENCY)")
@click.option("--bank", help="Bank name (not for CAJA_CHICA)")
@click.option("--number", "account_number", help="Account number")
@click.option("--cbu", help="CBU routing number")
@click.option("--alias", help="Transfer alias")
@click.option("--investment-type", help="Investment type (INVERSION only)")
@click.option("--rate", help="Annual rate (INVERSION only)")
@click.option("--maturity", help="Maturity date (INVERSION only)")
@click.option("--ledger", "ledger_code", help="Chart-of-accounts code representing this account")
@click.pass_context
def create_account(
    ctx,
    name: str,
    kind: str,
    initial_balance: str,
    currency: str | None,
    bank: str | None,
    account_number: str | None,
    cbu: str | None,
    alias: str | None,
    investment_type: str | None,
    rate: str | None,
    maturity: str | None,
    ledger_code: str | None,
):
    """Create a new account.

    Examples:
        cashledger account create "Caja chica" --kind CAJA_CHICA --initial-balance 5000
        cashledger account create "Banco Nación CC" --kind CUENTA_CORRIENTE --bank "Banco Nación"
        cashledger account create "Plazo fijo" --kind INVERSION --rate 0.35 --maturity 2025-06-30
    """
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])

    try:
        opening = parse_amount(initial_balance)
        annual_rate = parse_amount(rate) if rate is not None else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)
    maturity_date = parse_date_or_exit(ctx, maturity, "maturity date") if maturity else None
    ledger_account_id = None
    if ledger_code is not None:
        ledger_account_id = resolve_ledger_node_or_exit(ctx, ChartOfAccountsService(db), ledger_code)

    try:
        account_id = service.create_account(
            name=name,
            kind=kind.upper(),
            initial_balance=opening,
            currency=currency,
            bank_name=bank,
            account_number=account_number,
            cbu=cbu,
            alias=alias,
            investment_type=investment_type,
            annual_rate=annual_rate,
            maturity_date=maturity_date,
            ledger_account_id=ledger_account_id,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts."""
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])

    accounts = service.list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        status = "" if acc.active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:25s} | {acc.kind.value:17s} | "
            f"{format_amount(acc.current_balance, acc.currency):>18s}{status}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show account details.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    click.echo(f"\nAccount {acc.id}: {acc.name}")
    click.echo(f"  Kind: {acc.kind.value}")
    click.echo(f"  Status: {'active' if acc.active else 'inactive'}")
    click.echo(f"  Initial balance: {format_amount(acc.initial_balance, acc.currency)}")
    click.echo(f"  Current balance: {format_amount(acc.current_balance, acc.currency)}")
    for label, value in (
        ("Bank", acc.bank_name),
        ("Number", acc.account_number),
        ("CBU", acc.cbu),
        ("Alias", acc.alias),
        ("Investment type", acc.investment_type),
        ("Annual rate", acc.annual_rate),
        ("Maturity", acc.maturity_date),
    ):
        if value is not None:
            click.echo(f"  {label}: {value}")
    if acc.ledger_account_id is not None:
        node = db.get_ledger_account(acc.ledger_account_id)
        if node is not None:
            click.echo(f"  Ledger account: {node.code} {node.name}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--bank", help="Bank name")
@click.option("--number", "account_number", help="Account number")
@click.option("--cbu", help="CBU routing number")
@click.option("--alias", help="Transfer alias")
@click.option("--ledger", "ledger_code", help="Chart-of-accounts code representing this account")
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    bank: str | None,
    account_number: str | None,
    cbu: str | None,
    alias: str | None,
    ledger_code: str | None,
) -> None:
    """Update account fields. Balances are never edited directly.

    Examples:
        cashledger account update "Caja chica" --name "Caja obra"
        cashledger account update 2 --ledger 1.1.02
    """
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])
    account_id = resolve_account_or_exit(ctx, service, account)

    fields = {
        key: value
        for key, value in (
            ("name", name),
            ("bank_name", bank),
            ("account_number", account_number),
            ("cbu", cbu),
            ("alias", alias),
        )
        if value is not None
    }
    if ledger_code is not None:
        fields["ledger_account_id"] = resolve_ledger_node_or_exit(
            ctx, ChartOfAccountsService(db), ledger_code
        )
    if not fields:
        click.echo("Nothing to update.")
        return

    try:
        service.update_account(account_id, **fields)
        click.echo(f"Updated account {account_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def deactivate_account(ctx, account: str, yes: bool) -> None:
    """Deactivate an account.

    ACCOUNT can be an account name or ID. Accounts with pending or confirmed
    movements cannot be deactivated until those are reconciled or voided.
    """
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to deactivate account '{acc.name}' (ID: {account_id})?"
    ):
        click.echo("Deactivation cancelled.")
        return

    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account '{acc.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.option("--as-of", help="Reconstruct the balance as of this date")
@click.pass_context
def account_balance(ctx, account: str, as_of: str | None) -> None:
    """Show the account balance, optionally as of a past date."""
    db = ctx.obj["db"]
    service = AccountService(db, ctx.obj["config"])
    account_id = resolve_account_or_exit(ctx, service, account)
    as_of_date = parse_date_or_exit(ctx, as_of, "as-of date") if as_of else None

    acc = service.require_account(account_id)
    balance = service.get_balance(account_id, as_of=as_of_date)
    suffix = f" as of {as_of_date}" if as_of_date else ""
    click.echo(f"{acc.name}: {format_amount(balance, acc.currency)}{suffix}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
