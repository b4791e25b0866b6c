"""CLI helpers for account resolution."""

from __future__ import annotations

import click

from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.chart import ChartOfAccountsService
from cashledger.domain.cost_center import CostCenterService
from cashledger.domain.errors import DomainError, NotFoundError
from cashledger.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_ledger_node_or_exit(
    ctx: click.Context, chart_service: ChartOfAccountsService, code: str
) -> int:
    """Resolve a chart-of-accounts code to its node ID, or exit with a CLI error."""
    node = chart_service.get_node_by_code(code)
    if node is None:
        handle_domain_error(ctx, NotFoundError(f"Ledger account '{code}' not found"))
    return node.id


def resolve_cost_center_or_exit(
    ctx: click.Context, cost_center_service: CostCenterService, code: str
) -> int:
    """Resolve a cost center code to its ID, or exit with a CLI error."""
    center = cost_center_service.get_cost_center_by_code(code)
    if center is None:
        handle_domain_error(ctx, NotFoundError(f"Cost center '{code}' not found"))
    return center.id
