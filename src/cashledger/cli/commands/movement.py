"""Movement (transaction) commands."""

import click

from cashledger.cli.account_resolution import (
    resolve_account_or_exit,
    resolve_cost_center_or_exit,
    resolve_ledger_node_or_exit,
)
from cashledger.cli.date_filters import parse_date_or_exit, resolve_cli_date_range
from cashledger.cli.error_handling import handle_atomicity_failure, handle_domain_error
from cashledger.domain.chart import ChartOfAccountsService
from cashledger.domain.entities import Transaction, movement_kind
from cashledger.domain.enums import (
    Direction,
    ExpenseCategory,
    IncomeCategory,
    PaymentMethod,
    TransactionState,
)
from cashledger.domain.errors import AtomicityFailure, DomainError
from cashledger.domain.transaction import TransactionService
from cashledger.utils.amount_parser import format_amount, parse_amount

DIRECTION_CHOICE = click.Choice([d.value for d in Direction], case_sensitive=False)
CATEGORY_CHOICE = click.Choice(
    sorted({c.value for c in IncomeCategory} | {c.value for c in ExpenseCategory}),
    case_sensitive=False,
)
METHOD_CHOICE = click.Choice([m.value for m in PaymentMethod], case_sensitive=False)
STATE_CHOICE = click.Choice([s.value for s in TransactionState], case_sensitive=False)


def format_transaction_line(txn: Transaction, account_names: dict[int, str]) -> str:
    sign = "+" if txn.direction is Direction.INCOME else "-"
    amount = f"{sign}{format_amount(txn.amount)}"
    account_name = account_names.get(txn.account_id, "Unknown")
    return (
        f"{txn.code:11s} | {txn.date} | {txn.state.value:10s} | {amount:>14s} | "
        f"{account_name[:20]:20s} | {txn.description}"
    )


@click.group()
def movement_group():
    """Record and manage income and expense movements."""
    pass


@movement_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--type", "direction", type=DIRECTION_CHOICE, required=True, help="INGRESO or EGRESO")
@click.option("--category", type=CATEGORY_CHOICE, required=True, help="Category for the direction")
@click.option("--amount", required=True, help="Amount (e.g., 1500.50)")
@click.option("--description", required=True, help="Description")
@click.option("--date", "txn_date", default="today", help="Date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--method", type=METHOD_CHOICE, help="Payment method (default depends on account kind)")
@click.option("--reference", help="Receipt or invoice number")
@click.option("--attachment", help="Receipt URL")
@click.option("--ledger", "ledger_code", help="Chart-of-accounts code classifying the movement")
@click.option("--cost-center", "cost_center_code", help="Cost center code the movement is charged to")
@click.option("--key", "idempotency_key", help="Idempotency key; repeating it does not create a duplicate")
@click.option("--confirm", "confirm_now", is_flag=True, help="Confirm immediately and update the balance")
@click.pass_context
def add_movement(
    ctx,
    account: str,
    direction: str,
    category: str,
    amount: str,
    description: str,
    txn_date: str,
    method: str | None,
    reference: str | None,
    attachment: str | None,
    ledger_code: str | None,
    cost_center_code: str | None,
    idempotency_key: str | None,
    confirm_now: bool,
):
    """Record a new movement (PENDIENTE unless --confirm is given).

    Examples:
        cashledger movement add --account "Caja chica" --type EGRESO --category COMBUSTIBLE \\
            --amount 300 --description "Nafta camioneta" --confirm
        cashledger movement add --account 2 --type INGRESO --category COBRO_FACTURA \\
            --amount 150000 --description "Factura A-0001" --ledger 4.1.01
    """
    db = ctx.obj["db"]
    service = TransactionService(db, ctx.obj["config"])
    account_id = resolve_account_or_exit(ctx, service.accounts, account)

    try:
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)
    on_date = parse_date_or_exit(ctx, txn_date)
    ledger_account_id = None
    if ledger_code is not None:
        ledger_account_id = resolve_ledger_node_or_exit(ctx, ChartOfAccountsService(db), ledger_code)
    cost_center_id = None
    if cost_center_code is not None:
        cost_center_id = resolve_cost_center_or_exit(ctx, service.cost_centers, cost_center_code)

    try:
        kind = movement_kind(direction.upper(), category.upper())
        transaction_id = service.create_transaction(
            kind=kind,
            amount=value,
            account_id=account_id,
            date=on_date,
            description=description,
            payment_method=method.upper() if method else None,
            reference=reference,
            attachment_url=attachment,
            ledger_account_id=ledger_account_id,
            cost_center_id=cost_center_id,
            idempotency_key=idempotency_key,
            confirm=confirm_now,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    except AtomicityFailure as e:
        handle_atomicity_failure(ctx, e)

    txn = service.require_transaction(transaction_id)
    click.echo(f"Created movement {txn.code} (ID: {txn.id}) - {txn.state.value}")


@movement_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--type", "direction", type=DIRECTION_CHOICE, help="INGRESO or EGRESO")
@click.option("--state", type=STATE_CHOICE, help="Only movements in this state")
@click.option("--ledger", "ledger_code", help="Chart-of-accounts code")
@click.option("--from", "start_date", help="Start date (inclusive)")
@click.option("--to", "end_date", help="End date (inclusive)")
@click.option("--month", help="Calendar month as YYYY-MM")
@click.option("--search", help="Text to find in description or reference")
@click.option("--limit", type=int, default=50, show_default=True, help="Page size")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True, help="Page number")
@click.pass_context
def list_movements(
    ctx,
    account: str | None,
    direction: str | None,
    state: str | None,
    ledger_code: str | None,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    search: str | None,
    limit: int,
    page: int,
):
    """List movements, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db, ctx.obj["config"])

    account_id = resolve_account_or_exit(ctx, service.accounts, account) if account else None
    ledger_account_id = (
        resolve_ledger_node_or_exit(ctx, ChartOfAccountsService(db), ledger_code)
        if ledger_code
        else None
    )
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month
    )
    filters = dict(
        account_id=account_id,
        direction=direction.upper() if direction else None,
        state=state.upper() if state else None,
        ledger_account_id=ledger_account_id,
        start_date=start,
        end_date=end,
        search=search,
    )

    total = service.count_transactions(**filters)
    transactions = service.list_transactions(**filters, limit=limit, offset=(page - 1) * limit)
    if not transactions:
        click.echo("No movements found.")
        return

    account_names = {acc.id: acc.name for acc in service.accounts.list_accounts(include_inactive=True)}
    click.echo(f"\nShowing {len(transactions)} of {total} movement(s):")
    click.echo("-" * 110)
    for txn in transactions:
        click.echo(format_transaction_line(txn, account_names))


@movement_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_movement(ctx, transaction_id: int):
    """Show all fields of a movement."""
    db = ctx.obj["db"]
    service = TransactionService(db, ctx.obj["config"])
    try:
        txn = service.require_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    account = service.accounts.get_account(txn.account_id)
    click.echo(f"\nMovement {txn.code} (ID: {txn.id})")
    click.echo(f"  State: {txn.state.value}")
    click.echo(f"  Type: {txn.direction.value} / {txn.category.value}")
    click.echo(f"  Amount: {format_amount(txn.amount, txn.currency)}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Account: {account.name if account else 'Unknown'} (ID: {txn.account_id})")
    click.echo(f"  Payment method: {txn.payment_method.value}")
    click.echo(f"  Description: {txn.description}")
    if txn.reference:
        click.echo(f"  Reference: {txn.reference}")
    if txn.attachment_url:
        click.echo(f"  Attachment: {txn.attachment_url}")
    if txn.ledger_account_id is not None:
        node = db.get_ledger_account(txn.ledger_account_id)
        if node is not None:
            click.echo(f"  Ledger account: {node.code} {node.name}")
    if txn.cost_center_id is not None:
        center = db.get_cost_center(txn.cost_center_id)
        if center is not None:
            click.echo(f"  Cost center: {center.code} {center.name}")
    if txn.transfer_ref:
        click.echo(f"  Transfer: {txn.transfer_ref}")


@movement_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--amount", help="Amount")
@click.option("--description", help="Description")
@click.option("--date", "txn_date", help="Date")
@click.option("--method", type=METHOD_CHOICE, help="Payment method")
@click.option("--reference", help="Receipt or invoice number")
@click.option("--ledger", "ledger_code", help="Chart-of-accounts code")
@click.option("--cost-center", "cost_center_code", help="Cost center code")
@click.pass_context
def update_movement(
    ctx,
    transaction_id: int,
    account: str | None,
    amount: str | None,
    description: str | None,
    txn_date: str | None,
    method: str | None,
    reference: str | None,
    ledger_code: str | None,
    cost_center_code: str | None,
) -> None:
    """Edit a PENDIENTE movement. Only the given fields change."""
    db = ctx.obj["db"]
    service = TransactionService(db, ctx.obj["config"])

    fields = {}
    if account is not None:
        fields["account_id"] = resolve_account_or_exit(ctx, service.accounts, account)
    if amount is not None:
        try:
            fields["amount"] = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)
    if description is not None:
        fields["description"] = description
    if txn_date is not None:
        fields["date"] = parse_date_or_exit(ctx, txn_date)
    if method is not None:
        fields["payment_method"] = method.upper()
    if reference is not None:
        fields["reference"] = reference
    if ledger_code is not None:
        fields["ledger_account_id"] = resolve_ledger_node_or_exit(
            ctx, ChartOfAccountsService(db), ledger_code
        )
    if cost_center_code is not None:
        fields["cost_center_id"] = resolve_cost_center_or_exit(
            ctx, service.cost_centers, cost_center_code
        )
    if not fields:
        click.echo("Nothing to update.")
        return

    try:
        txn = service.update_transaction(transaction_id, **fields)
        click.echo(f"Updated movement {txn.code}")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except AtomicityFailure as e:
        handle_atomicity_failure(ctx, e)


def _run_transition(ctx, action, transaction_id: int, verb: str, **kwargs) -> None:
    try:
        txn = action(transaction_id, **kwargs)
    except DomainError as e:
        handle_domain_error(ctx, e)
    except AtomicityFailure as e:
        handle_atomicity_failure(ctx, e)
    click.echo(f"{verb} movement {txn.code} - {txn.state.value}")


@movement_group.command("confirm")
@click.argument("transaction_id", type=int)
@click.pass_context
def confirm_movement(ctx, transaction_id: int):
    """Confirm a PENDIENTE movement and apply it to the account balance."""
    service = TransactionService(ctx.obj["db"], ctx.obj["config"])
    _run_transition(ctx, service.confirm, transaction_id, "Confirmed")


@movement_group.command("reconcile")
@click.argument("transaction_id", type=int)
@click.pass_context
def reconcile_movement(ctx, transaction_id: int):
    """Mark a CONFIRMADO movement as matched against the bank statement."""
    service = TransactionService(ctx.obj["db"], ctx.obj["config"])
    _run_transition(ctx, service.reconcile, transaction_id, "Reconciled")


@movement_group.command("void")
@click.argument("transaction_id", type=int)
@click.option("--reason", help="Why the movement is voided")
@click.pass_context
def void_movement(ctx, transaction_id: int, reason: str | None):
    """Void a PENDIENTE or CONFIRMADO movement, reversing its balance effect."""
    service = TransactionService(ctx.obj["db"], ctx.obj["config"])
    _run_transition(ctx, service.void, transaction_id, "Voided", reason=reason)


def register_commands(cli):
    """Register movement commands with main CLI."""
    cli.add_command(movement_group, name="movement")
