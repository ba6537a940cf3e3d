"""CLI error handling helpers."""

import click

from katalis.domain.errors import DomainError, TransactionValidationError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, TransactionValidationError):
        click.echo("Error: Transaction is invalid:", err=True)
        for issue in error.result.errors:
            click.echo(f"  - {issue.field}: {issue.message}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
