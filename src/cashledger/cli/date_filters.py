"""CLI helpers for date range resolution."""

from datetime import date

import click

from cashledger.utils.date_parser import month_bounds, parse_date


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a CLI date option, or exit with a CLI error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_month_or_exit(ctx: click.Context, value: str) -> tuple[int, int]:
    """Parse a YYYY-MM option into (year, month), or exit with a CLI error."""
    try:
        year_str, month_str = value.strip().split("-")
        year, month = int(year_str), int(month_str)
        month_bounds(year, month)
    except ValueError:
        click.echo(f"Error: Invalid month '{value}'. Use YYYY-MM.", err=True)
        ctx.exit(1)
    return year, month


def resolve_cli_date_range(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from --month or explicit --from/--to dates."""
    if month and (start_date or end_date):
        click.echo(
            "Error: --month cannot be combined with --from or --to.",
            err=True,
        )
        ctx.exit(1)

    if month:
        year, month_number = parse_month_or_exit(ctx, month)
        return month_bounds(year, month_number)

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)
    return start, end
