"""Main CLI entry point."""

import dataclasses

import click

from cashledger.config import LedgerConfig
from cashledger.database.factories import create_sqlite_database
from cashledger.logging import setup_logging

# Import and register all commands at module level
from cashledger.cli.commands import (
    account,
    movement,
    transfer,
    ledger,
    cost_center,
    init_chart,
    statement,
    dashboard,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CASHLEDGER_DB_PATH environment variable)",
    envvar="CASHLEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides CASHLEDGER_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Cashledger - Cash, bank and wallet ledger.

    Record income and expense movements across accounts, move money between
    them, and build the balance sheet from the chart of accounts.
    """
    ctx.ensure_object(dict)

    try:
        config = LedgerConfig.from_env()
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        ctx.exit(1)
    overrides = {}
    if db_path is not None:
        overrides["database_path"] = db_path
    if log_level is not None:
        overrides["log_level"] = log_level.upper()
    config = dataclasses.replace(config, **overrides)

    setup_logging(level=config.log_level, format_type=config.log_format)
    ctx.obj["config"] = config

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=config.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
movement.register_commands(cli)
transfer.register_commands(cli)
ledger.register_commands(cli)
cost_center.register_commands(cli)
init_chart.register_commands(cli)
statement.register_commands(cli)
dashboard.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
