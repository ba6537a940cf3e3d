"""CLI helpers for business and account resolution."""

from __future__ import annotations

import click
from katalis.domain.account import AccountService
from katalis.domain.business import BusinessService
from katalis.domain.entities import Account, Business
from katalis.domain.errors import DomainError

business_option = click.option(
    "--business",
    "-b",
    required=True,
    envvar="KATALIS_BUSINESS",
    help="Business name or ID (overrides KATALIS_BUSINESS environment variable)",
)


def resolve_business_or_exit(ctx: click.Context, business: str) -> Business:
    """Resolve business name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return BusinessService(ctx.obj["db"]).resolve_business(business)
    except DomainError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_account_code_or_exit(
    ctx: click.Context, business_id: int, account_code: str
) -> Account:
    """Resolve an account code within a business, or exit with a CLI error."""
    try:
        return AccountService(ctx.obj["db"]).get_account_by_code(business_id, account_code)
    except DomainError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
