"""Chart of accounts commands."""

import click

from cashledger.cli.account_resolution import resolve_ledger_node_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.chart import ChartOfAccountsService, ChartTree
from cashledger.domain.enums import LedgerClass
from cashledger.domain.errors import DomainError

CLASS_CHOICE = click.Choice([c.value for c in LedgerClass], case_sensitive=False)


def print_chart_tree(tree: ChartTree) -> None:
    """Print chart nodes indented by depth."""
    for node, depth in tree.walk():
        prefix = "  " * depth
        marker = "" if node.imputable else " [+]"
        status = "" if node.active else " (inactive)"
        click.echo(f"{prefix}{node.code} {node.name}{marker}{status}")


@click.group()
def ledger_group():
    """Manage the chart of accounts."""
    pass


@ledger_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_ledger(ctx, include_inactive: bool):
    """Show the chart of accounts as a tree. [+] marks aggregators."""
    service = ChartOfAccountsService(ctx.obj["db"])
    try:
        tree = service.get_tree(include_inactive=include_inactive)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not tree:
        click.echo("No ledger accounts found. Run 'init-chart' to create the default chart.")
        return

    click.echo("\nChart of accounts:")
    print_chart_tree(tree)

    empty = service.find_empty_aggregators(tree)
    if empty:
        codes = ", ".join(node.code for node in empty)
        click.echo(f"\nWarning: aggregators without sub-accounts: {codes}")


@ledger_group.command("show")
@click.argument("code")
@click.pass_context
def show_ledger(ctx, code: str):
    """Show a ledger account with its path from the root and its sub-accounts."""
    service = ChartOfAccountsService(ctx.obj["db"])
    node_id = resolve_ledger_node_or_exit(ctx, service, code)
    try:
        tree = service.get_tree(include_inactive=True)
    except DomainError as e:
        handle_domain_error(ctx, e)

    node = tree.nodes[node_id]
    path = " > ".join(f"{step.code} {step.name}" for step in tree.path(node_id))
    click.echo(f"\nLedger account {node.code} {node.name}")
    click.echo(f"  Path: {path}")
    click.echo(f"  Classification: {node.classification.value}")
    click.echo(f"  Level: {node.level}{' (root)' if tree.is_root(node_id) else ''}")
    click.echo(f"  Receives postings: {'yes' if node.imputable else 'no (aggregator)'}")
    click.echo(f"  Active: {'yes' if node.active else 'no'}")
    if node.description:
        click.echo(f"  Description: {node.description}")

    children = tree.children(node_id)
    if children:
        click.echo("  Sub-accounts:")
        for child in children:
            status = "" if child.active else " (inactive)"
            click.echo(f"    {child.code} {child.name}{status}")
    elif not node.imputable:
        click.echo("  Warning: aggregator without sub-accounts")


@ledger_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option("--parent", "parent_code", help="Parent code")
@click.option("--class", "classification", type=CLASS_CHOICE, help="Classification (required for roots)")
@click.option("--aggregator", is_flag=True, help="Create a non-imputable grouping account")
@click.option("--description", help="Description")
@click.pass_context
def create_ledger(
    ctx,
    code: str,
    name: str,
    parent_code: str | None,
    classification: str | None,
    aggregator: bool,
    description: str | None,
):
    """Create a ledger account.

    Examples:
        cashledger ledger create 5.1.05 "Fletes" --parent 5.1
        cashledger ledger create 6 "Otros" --class GASTO --aggregator
    """
    service = ChartOfAccountsService(ctx.obj["db"])
    parent_id = resolve_ledger_node_or_exit(ctx, service, parent_code) if parent_code else None

    try:
        service.create_node(
            code=code,
            name=name,
            classification=classification.upper() if classification else None,
            parent_id=parent_id,
            imputable=not aggregator,
            description=description,
        )
        parent_str = f" under '{parent_code}'" if parent_code else ""
        click.echo(f"Created ledger account {code} '{name}'{parent_str}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("update")
@click.argument("code")
@click.option("--code", "new_code", help="New code")
@click.option("--name", help="New name")
@click.option("--description", help="New description")
@click.option("--imputable/--aggregator", default=None, help="Change whether it receives postings")
@click.pass_context
def update_ledger(
    ctx,
    code: str,
    new_code: str | None,
    name: str | None,
    description: str | None,
    imputable: bool | None,
):
    """Update a ledger account."""
    service = ChartOfAccountsService(ctx.obj["db"])
    node_id = resolve_ledger_node_or_exit(ctx, service, code)
    try:
        service.update_node(
            node_id, code=new_code, name=name, description=description, imputable=imputable
        )
        click.echo(f"Updated ledger account {new_code or code}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("deactivate")
@click.argument("code")
@click.pass_context
def deactivate_ledger(ctx, code: str):
    """Deactivate a ledger account with no postings and no active sub-accounts."""
    service = ChartOfAccountsService(ctx.obj["db"])
    node_id = resolve_ledger_node_or_exit(ctx, service, code)
    try:
        service.deactivate_node(node_id)
        click.echo(f"Deactivated ledger account {code}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
