"""CLI error handling helpers."""

import click

from bankimport.domain.errors import DomainError
from bankimport.integrations.nordigen import AggregatorError


def handle_domain_error(ctx: click.Context, error: DomainError | AggregatorError | ValueError) -> None:
    """Render a domain or aggregator error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
