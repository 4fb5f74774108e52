"""CLI error handling helpers."""

import click

from celeiro.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    code = getattr(error, "code", None)
    if code:
        click.echo(f"Error: {error} ({code})", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
