"""CLI error handling helpers."""

import click

from cashledger.domain.errors import AtomicityFailure, DomainError

ATOMICITY_MESSAGE = (
    "The operation could not be completed and nothing was saved. "
    "Check the current state before trying again."
)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_atomicity_failure(ctx: click.Context, error: AtomicityFailure) -> None:
    """Render a store failure without internal detail and exit with failure.

    The failure itself is logged where it happened.
    """
    click.echo(f"Error: {ATOMICITY_MESSAGE}", err=True)
    ctx.exit(1)
