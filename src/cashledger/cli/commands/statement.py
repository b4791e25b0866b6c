"""Financial statement commands."""

import click

from cashledger.cli.date_filters import parse_date_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.entities import StatementLine
from cashledger.domain.errors import DomainError
from cashledger.domain.statement import StatementService
from cashledger.utils.amount_parser import format_amount

GROUP_TITLES = ("Activo", "Pasivo", "Patrimonio", "Ingresos", "Gastos")


def print_statement_lines(lines: tuple[StatementLine, ...], indent: int = 1) -> None:
    """Recursively print statement lines with their balances."""
    for line in lines:
        label = f"{'  ' * indent}{line.code} {line.name}"
        click.echo(f"{label:50s} {format_amount(line.balance):>16s}")
        print_statement_lines(line.children, indent + 1)


@click.group()
def statement_group():
    """Build financial statements."""
    pass


@statement_group.command("balance-sheet")
@click.option("--as-of", help="Cutoff date, inclusive (default: today)")
@click.option(
    "--allow-empty-aggregators",
    is_flag=True,
    help="Build the sheet even if an aggregator has no sub-accounts, with a warning",
)
@click.pass_context
def balance_sheet(ctx, as_of: str | None, allow_empty_aggregators: bool):
    """Show the balance sheet and check the accounting equation.

    Fails when an aggregator ledger account has no sub-accounts, unless
    --allow-empty-aggregators is given.
    """
    service = StatementService(ctx.obj["db"], ctx.obj["config"])
    cutoff = parse_date_or_exit(ctx, as_of, "as-of date") if as_of else None

    try:
        sheet = service.build_balance_sheet(
            as_of=cutoff, strict=not allow_empty_aggregators
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance sheet as of {sheet.as_of}")
    for title, group in zip(
        GROUP_TITLES,
        (sheet.assets, sheet.liabilities, sheet.equity, sheet.income, sheet.expenses),
    ):
        click.echo("=" * 67)
        click.echo(f"{title:50s} {format_amount(group.total):>16s}")
        print_statement_lines(group.accounts)

    equation = sheet.equation
    click.echo("=" * 67)
    click.echo(f"{'Resultado del período':50s} {format_amount(sheet.period_result):>16s}")
    click.echo(
        f"Activo {format_amount(equation.assets)} = Pasivo + Patrimonio "
        f"{format_amount(equation.liabilities_plus_equity)} + Resultado "
        f"{format_amount(equation.period_result)}"
    )
    if equation.balanced:
        click.echo("Equation balanced.")
    else:
        click.echo(f"Equation NOT balanced: difference {format_amount(equation.difference)}")
    if sheet.empty_aggregators:
        click.echo(
            f"Warning: aggregators without sub-accounts: {', '.join(sheet.empty_aggregators)}"
        )


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
