"""Cost center commands."""

import click

from cashledger.cli.account_resolution import resolve_cost_center_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.cost_center import CostCenterService
from cashledger.domain.errors import DomainError


@click.group()
def cost_center_group():
    """Manage cost centers."""
    pass


@cost_center_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated cost centers")
@click.pass_context
def list_cost_centers(ctx, include_inactive: bool):
    """List cost centers with their parent."""
    service = CostCenterService(ctx.obj["db"])
    centers = service.list_cost_centers(include_inactive=include_inactive)

    if not centers:
        click.echo("No cost centers found.")
        return

    codes = {center.id: center.code for center in centers}
    click.echo(f"\n{'Code':<20} {'Name':<40} {'Parent':<20}")
    click.echo("-" * 82)
    for center in centers:
        parent = codes.get(center.parent_id, "")
        status = "" if center.active else " (inactive)"
        click.echo(f"{center.code:<20} {center.name + status:<40} {parent:<20}")


@cost_center_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option("--parent", "parent_code", help="Parent cost center code")
@click.option("--description", help="Description")
@click.pass_context
def create_cost_center(
    ctx, code: str, name: str, parent_code: str | None, description: str | None
):
    """Create a cost center.

    Examples:
        cashledger cost-center create OBRA-01 "Obra Belgrano"
        cashledger cost-center create OBRA-01-EL "Electricidad" --parent OBRA-01
    """
    service = CostCenterService(ctx.obj["db"])
    parent_id = resolve_cost_center_or_exit(ctx, service, parent_code) if parent_code else None

    try:
        cost_center_id = service.create_cost_center(
            code=code, name=name, parent_id=parent_id, description=description
        )
        click.echo(f"Created cost center {code} '{name}' (ID: {cost_center_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@cost_center_group.command("update")
@click.argument("code")
@click.option("--code", "new_code", help="New code")
@click.option("--name", help="New name")
@click.option("--parent", "parent_code", help="New parent cost center code")
@click.option("--top-level", is_flag=True, help="Remove the parent")
@click.option("--description", help="New description")
@click.pass_context
def update_cost_center(
    ctx,
    code: str,
    new_code: str | None,
    name: str | None,
    parent_code: str | None,
    top_level: bool,
    description: str | None,
):
    """Update a cost center. Only the given fields change."""
    service = CostCenterService(ctx.obj["db"])
    cost_center_id = resolve_cost_center_or_exit(ctx, service, code)

    if parent_code and top_level:
        click.echo("Error: --parent and --top-level cannot be combined", err=True)
        ctx.exit(1)

    fields = {}
    if new_code is not None:
        fields["code"] = new_code
    if name is not None:
        fields["name"] = name
    if description is not None:
        fields["description"] = description
    if parent_code is not None:
        fields["parent_id"] = resolve_cost_center_or_exit(ctx, service, parent_code)
    if top_level:
        fields["parent_id"] = None
    if not fields:
        click.echo("Nothing to update.")
        return

    try:
        service.update_cost_center(cost_center_id, **fields)
        click.echo(f"Updated cost center {new_code or code}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@cost_center_group.command("deactivate")
@click.argument("code")
@click.pass_context
def deactivate_cost_center(ctx, code: str):
    """Deactivate a cost center with no movements and no active children."""
    service = CostCenterService(ctx.obj["db"])
    cost_center_id = resolve_cost_center_or_exit(ctx, service, code)
    try:
        service.deactivate_cost_center(cost_center_id)
        click.echo(f"Deactivated cost center {code}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register cost center commands with main CLI."""
    cli.add_command(cost_center_group, name="cost-center")
