"""Business management commands."""

import click
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.business import BusinessService
from katalis.domain.errors import DomainError
from katalis.utils.amount_parser import parse_amount


@click.group()
def business_group():
    """Manage businesses."""
    pass


@business_group.command("create")
@click.argument("name", metavar="BUSINESS_NAME")
@click.option("--capital", default="0", help="Owner's capital investment (e.g., 350jt or 350.000.000)")
@click.pass_context
def create_business(ctx, name: str, capital: str):
    """Create a new business.

    Examples:
        katalis business create "Villa Ubud"
        katalis business create "Villa Ubud" --capital 350jt
    """
    db = ctx.obj["db"]
    service = BusinessService(db)

    try:
        capital_amount = parse_amount(capital)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        business_id = service.create_business(name=name, capital_investment=capital_amount)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created business '{name.strip()}' (ID: {business_id})")
    click.echo(f"  Capital: {capital_amount:,.2f}")


@business_group.command("list")
@click.pass_context
def list_businesses(ctx):
    """List all businesses."""
    db = ctx.obj["db"]
    service = BusinessService(db)

    businesses = service.list_businesses()
    if not businesses:
        click.echo("No businesses found.")
        return

    click.echo("\nBusinesses:")
    click.echo("-" * 60)
    for biz in businesses:
        click.echo(f"ID: {biz.id:3d} | {biz.name:30s} | Capital: {biz.capital_investment:,.2f}")


def register_commands(cli: click.Group) -> None:
    """Register business commands with main CLI."""
    cli.add_command(business_group, name="business")
