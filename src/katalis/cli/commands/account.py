"""Chart-of-accounts commands."""

import click
from katalis.cli.business_resolution import (
    business_option,
    resolve_account_code_or_exit,
    resolve_business_or_exit,
)
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.account import AccountService
from katalis.domain.entities import AccountType, TransactionCategory
from katalis.domain.errors import DomainError
from katalis.domain.quick_transaction import get_flow_label, get_quick_add_accounts


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@business_option
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.option("--quick-add", is_flag=True, help="Only accounts offered by the add command")
@click.pass_context
def list_accounts(ctx, business: str, show_all: bool, quick_add: bool):
    """List accounts in display order."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    service = AccountService(db)

    accounts = service.list_accounts(biz.id, include_inactive=show_all)
    quick_add_ids = {acc.id for acc in get_quick_add_accounts(accounts)}
    if quick_add:
        accounts = [acc for acc in accounts if acc.id in quick_add_ids]
    if not accounts:
        click.echo("No accounts found. Run 'katalis init-accounts' to create the default chart.")
        return

    click.echo(f"\nChart of accounts for {biz.name}:")
    click.echo("-" * 90)
    click.echo(f"{'Code':<8} {'Name':<32} {'Type':<10} {'Category':<9} {'Flow':<18} {'Status':<8}")
    click.echo("-" * 90)
    for acc in accounts:
        name = f"  {acc.account_name}" if acc.is_sub_account else acc.account_name
        category = acc.default_category.value if acc.default_category else ""
        flow = get_flow_label(acc) if acc.id in quick_add_ids else ""
        status = "active" if acc.is_active else "inactive"
        click.echo(
            f"{acc.account_code:<8} {name[:32]:<32} {acc.account_type.value:<10} "
            f"{category:<9} {flow:<18} {status:<8}"
        )


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@business_option
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    help="Account type (must agree with the code prefix)",
)
@click.option("--parent", help="Parent account code")
@click.option(
    "--default-category",
    type=click.Choice([c.value for c in TransactionCategory], case_sensitive=False),
    help="Category used when this account is posted against cash/bank",
)
@click.option("--sort-order", type=int, default=0, help="Display order")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(
    ctx,
    code: str,
    name: str,
    business: str,
    account_type: str | None,
    parent: str | None,
    default_category: str | None,
    sort_order: int,
    description: str | None,
):
    """Create a new account.

    Examples:
        katalis account create 5250 "Laundry" --parent 5200 --default-category VAR
        katalis account create 1300 "Inventory" --default-category VAR
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    service = AccountService(db)

    try:
        account_id = service.create_account(
            biz.id,
            code,
            name,
            account_type=AccountType(account_type.upper()) if account_type else None,
            parent_code=parent,
            default_category=(
                TransactionCategory(default_category.upper()) if default_category else None
            ),
            sort_order=sort_order,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account {code} '{name}' (ID: {account_id})")


@account_group.command("deactivate")
@click.argument("code", metavar="CODE")
@business_option
@click.pass_context
def deactivate_account(ctx, code: str, business: str):
    """Deactivate an account. System accounts cannot be deactivated."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    acc = resolve_account_code_or_exit(ctx, biz.id, code)

    try:
        AccountService(db).deactivate_account(acc.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account {acc.display_name}")


@account_group.command("activate")
@click.argument("code", metavar="CODE")
@business_option
@click.pass_context
def activate_account(ctx, code: str, business: str):
    """Re-activate an account."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    acc = resolve_account_code_or_exit(ctx, biz.id, code)

    try:
        AccountService(db).activate_account(acc.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Activated account {acc.display_name}")


def register_commands(cli: click.Group) -> None:
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
