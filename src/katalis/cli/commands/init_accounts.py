"""Initialize the default chart of accounts."""

import click
from katalis.cli.business_resolution import business_option, resolve_business_or_exit
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.account import AccountService
from katalis.domain.errors import DomainError


@click.command("init-accounts")
@business_option
@click.pass_context
def init_accounts(ctx, business: str):
    """Create the default chart of accounts for a business.

    Accounts that already exist are kept, so running this twice is safe.

    Examples:
        katalis init-accounts --business "Villa Ubud"
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    service = AccountService(db)

    try:
        created = service.seed_default_chart(biz.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if created == 0:
        click.echo(f"Chart of accounts for '{biz.name}' is already initialized.")
    else:
        click.echo(f"Created {created} accounts for '{biz.name}'.")


def register_commands(cli):
    """Register init-accounts command with main CLI."""
    cli.add_command(init_accounts)
