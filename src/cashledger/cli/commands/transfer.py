"""Transfer commands."""

import click

from cashledger.cli.account_resolution import resolve_account_or_exit
from cashledger.cli.date_filters import parse_date_or_exit
from cashledger.cli.error_handling import handle_atomicity_failure, handle_domain_error
from cashledger.domain.errors import AtomicityFailure, DomainError
from cashledger.domain.transfer import TransferService
from cashledger.utils.amount_parser import format_amount, parse_amount


@click.group()
def transfer_group():
    """Move money between accounts."""
    pass


@transfer_group.command("create")
@click.argument("source", metavar="FROM_ACCOUNT")
@click.argument("destination", metavar="TO_ACCOUNT")
@click.argument("amount")
@click.option("--description", default="Transferencia entre cuentas", show_default=True, help="Description for both legs")
@click.option("--date", "transfer_date", default="today", help="Transfer date")
@click.option("--reference", help="Bank or receipt reference for both legs")
@click.pass_context
def create_transfer(ctx, source: str, destination: str, amount: str, description: str, transfer_date: str, reference: str | None):
    """Transfer AMOUNT from FROM_ACCOUNT to TO_ACCOUNT.

    Examples:
        cashledger transfer create "Banco Nación CC" "Caja chica" 20000
    """
    db = ctx.obj["db"]
    service = TransferService(db, ctx.obj["config"])
    source_id = resolve_account_or_exit(ctx, service.accounts, source)
    destination_id = resolve_account_or_exit(ctx, service.accounts, destination)

    try:
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)
    on_date = parse_date_or_exit(ctx, transfer_date)

    try:
        transfer = service.create_transfer(
            source_account_id=source_id,
            destination_account_id=destination_id,
            amount=value,
            date=on_date,
            description=description,
            reference=reference,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    except AtomicityFailure as e:
        handle_atomicity_failure(ctx, e)

    click.echo(f"Created transfer {transfer.transfer_ref} for {format_amount(value)}")
    for leg in transfer.legs:
        click.echo(f"  {leg.code} | {leg.direction.value:7s} | account {leg.account_id} | {leg.state.value}")


@transfer_group.command("void")
@click.argument("transfer_ref")
@click.option("--reason", help="Why the transfer is voided")
@click.pass_context
def void_transfer(ctx, transfer_ref: str, reason: str | None):
    """Void both legs of a transfer."""
    service = TransferService(ctx.obj["db"], ctx.obj["config"])
    try:
        service.void_transfer(transfer_ref, reason=reason)
    except DomainError as e:
        handle_domain_error(ctx, e)
    except AtomicityFailure as e:
        handle_atomicity_failure(ctx, e)
    click.echo(f"Voided transfer {transfer_ref}")


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
