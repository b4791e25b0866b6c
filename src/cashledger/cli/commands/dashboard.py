"""Dashboard commands."""

from datetime import date

import click

from cashledger.cli.account_resolution import resolve_account_or_exit
from cashledger.cli.date_filters import parse_month_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.dashboard import DashboardService
from cashledger.domain.entities import MonthlyTotals
from cashledger.domain.errors import DomainError
from cashledger.utils.amount_parser import format_amount


def print_month(totals: MonthlyTotals) -> None:
    click.echo(f"\n{totals.year}-{totals.month:02d}")
    click.echo(f"  Income:  {format_amount(totals.income.amount):>16s} ({totals.income.count} movements)")
    click.echo(f"  Expense: {format_amount(totals.expense.amount):>16s} ({totals.expense.count} movements)")
    click.echo(f"  Net:     {format_amount(totals.net):>16s}")


@click.group()
def dashboard_group():
    """Summaries of balances and movements."""
    pass


@dashboard_group.command("show")
@click.option("--limit", type=click.IntRange(min=0), help="Recent movements to show")
@click.pass_context
def show_dashboard(ctx, limit: int | None):
    """Show total balance, this month's totals and recent movements."""
    service = DashboardService(ctx.obj["db"], ctx.obj["config"])
    snapshot = service.snapshot(limit=limit)

    click.echo(f"\nTotal balance: {format_amount(snapshot.total_balance)}")
    for acc in snapshot.accounts:
        click.echo(f"  {acc.name:25s} {format_amount(acc.balance, acc.currency):>18s}")
    print_month(snapshot.month)

    if snapshot.recent_transactions:
        names = {acc.id: acc.name for acc in snapshot.accounts}
        click.echo("\nRecent movements:")
        for txn in snapshot.recent_transactions:
            sign = "+" if txn.direction.sign > 0 else "-"
            click.echo(
                f"  {txn.code} | {txn.date} | {sign}{format_amount(txn.amount)} | "
                f"{names.get(txn.account_id, txn.account_id)} | {txn.description}"
            )


@dashboard_group.command("balances")
@click.pass_context
def show_balances(ctx):
    """List active account balances, highest first."""
    service = DashboardService(ctx.obj["db"], ctx.obj["config"])
    report = service.balances()
    if not report.accounts:
        click.echo("No accounts found.")
        return

    for acc in report.accounts:
        bank = f" ({acc.bank_name})" if acc.bank_name else ""
        click.echo(f"{acc.name + bank:40s} {acc.kind.value:17s} {format_amount(acc.balance, acc.currency):>18s}")
    click.echo("-" * 77)
    click.echo(f"{'Total':58s} {format_amount(report.total):>18s}")


@dashboard_group.command("monthly")
@click.option("--month", help="Calendar month as YYYY-MM (default: current month)")
@click.option("--account", "accounts", multiple=True, help="Account name or ID (repeatable)")
@click.option("--exclude-transfers", is_flag=True, help="Leave transfer legs out of the totals")
@click.pass_context
def monthly(ctx, month: str | None, accounts: tuple[str, ...], exclude_transfers: bool):
    """Show posted income and expense totals for a month."""
    db = ctx.obj["db"]
    service = DashboardService(db, ctx.obj["config"])
    if month:
        year, month_number = parse_month_or_exit(ctx, month)
    else:
        today = date.today()
        year, month_number = today.year, today.month

    account_ids = None
    if accounts:
        account_service = AccountService(db, ctx.obj["config"])
        account_ids = [resolve_account_or_exit(ctx, account_service, acc) for acc in accounts]

    try:
        totals = service.monthly_totals(
            month_number,
            year,
            account_ids=account_ids,
            include_transfers=not exclude_transfers,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    print_month(totals)


def register_commands(cli):
    """Register dashboard commands with main CLI."""
    cli.add_command(dashboard_group, name="dashboard")
