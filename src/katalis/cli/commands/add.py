"""Quick add command."""

import click
from katalis.cli.business_resolution import (
    business_option,
    resolve_account_code_or_exit,
    resolve_business_or_exit,
)
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.errors import DomainError
from katalis.domain.inventory import display_category
from katalis.domain.transaction import TransactionService
from katalis.utils.date_parser import parse_date
from katalis.utils.amount_parser import parse_amount


@click.command("add")
@business_option
@click.option("--account", required=True, help="Code of the revenue/expense/asset account")
@click.option("--amount", required=True, help="Transaction amount (e.g., 500000, 500rb, 1.5jt)")
@click.option("--name", required=True, help="Transaction name (e.g., the customer or vendor)")
@click.option(
    "--date",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--notes", help="Notes (used as the description)")
@click.pass_context
def add_transaction(
    ctx,
    business: str,
    account: str,
    amount: str,
    name: str,
    date: str,
    notes: str | None,
):
    """Quickly add a transaction by picking one account.

    The cash/bank side is chosen automatically (Bank 1120 when present) and
    the debit/credit direction follows from the account: expenses, owner
    drawings and asset purchases pay money out; everything else brings money in.

    Examples:
        katalis add --account 5110 --amount 500rb --name "PLN"
        katalis add --account 4100 --amount 1.5jt --name "Guest A" --date yesterday
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    acc = resolve_account_code_or_exit(ctx, biz.id, account)
    transaction_service = TransactionService(db)

    # Parse date
    try:
        txn_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    # Parse amount
    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        transaction_id = transaction_service.quick_add(
            business_id=biz.id,
            account_id=acc.id,
            amount=txn_amount,
            name=name,
            txn_date=txn_date,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    txn = transaction_service.get_transaction(transaction_id)
    click.echo(f"Created transaction {transaction_id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    click.echo(f"  Debit: {txn.debit_account.display_name}")
    click.echo(f"  Credit: {txn.credit_account.display_name}")
    click.echo(f"  Category: {display_category(txn)}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
