"""Transaction management commands."""

import click
from katalis.cli.business_resolution import (
    business_option,
    resolve_account_code_or_exit,
    resolve_business_or_exit,
)
from katalis.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.entities import DoubleEntryPosting, TransactionCategory
from katalis.domain.errors import DomainError
from katalis.domain.guidance import TransactionGuidanceService
from katalis.domain.inventory import display_category
from katalis.domain.transaction import TransactionService
from katalis.utils.date_parser import parse_date
from katalis.utils.amount_parser import parse_amount

CATEGORY_CHOICE = click.Choice([c.value for c in TransactionCategory], case_sensitive=False)


def _parse_date_or_exit(ctx, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _parse_amount_or_exit(ctx, value: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def _echo_matching_principle(service: TransactionService, transaction_id: int) -> None:
    warning = service.matching_principle_warning(transaction_id)
    if warning is None:
        return
    click.echo(f"\nNote: {warning.title}")
    click.echo(f"  {warning.body}")
    click.echo(f"  {warning.journal_hint}")


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("journal")
@business_option
@click.option("--debit", required=True, help="Debit account code")
@click.option("--credit", required=True, help="Credit account code")
@click.option("--amount", required=True, help="Transaction amount (e.g., 1500000 or 1.5jt)")
@click.option("--name", required=True, help="Transaction name")
@click.option("--description", help="Description (defaults to the name)")
@click.option(
    "--date",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--category", type=CATEGORY_CHOICE, help="Category (detected from the accounts if omitted)")
@click.option("--notes", help="Notes")
@click.pass_context
def journal_entry(
    ctx,
    business: str,
    debit: str,
    credit: str,
    amount: str,
    name: str,
    description: str | None,
    date: str,
    category: str | None,
    notes: str | None,
):
    """Record a double-entry journal transaction.

    Examples:
        katalis transaction journal --debit 1120 --credit 4100 --amount 1jt --name "Guest A"
        katalis transaction journal --debit 1220 --credit 1120 --amount 4.5jt --name "Sofa"
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    debit_account = resolve_account_code_or_exit(ctx, biz.id, debit)
    credit_account = resolve_account_code_or_exit(ctx, biz.id, credit)
    txn_date = _parse_date_or_exit(ctx, date)
    txn_amount = _parse_amount_or_exit(ctx, amount)
    service = TransactionService(db)

    try:
        transaction_id = service.create_double_entry(
            business_id=biz.id,
            debit_account_id=debit_account.id,
            credit_account_id=credit_account.id,
            amount=txn_amount,
            txn_date=txn_date,
            name=name,
            description=description or name,
            category=TransactionCategory(category.upper()) if category else None,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    txn = service.get_transaction(transaction_id)
    click.echo(f"Created transaction {transaction_id}")
    click.echo(f"  Debit: {debit_account.display_name}")
    click.echo(f"  Credit: {credit_account.display_name}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    click.echo(f"  Category: {display_category(txn)}")
    _echo_matching_principle(service, transaction_id)


@transaction_group.command("legacy")
@business_option
@click.option("--account", "account_label", required=True, help="Free-text account (e.g., 'BCA')")
@click.option("--category", type=CATEGORY_CHOICE, required=True, help="Category")
@click.option("--amount", required=True, help="Transaction amount")
@click.option("--name", required=True, help="Transaction name")
@click.option("--description", help="Description (defaults to the name)")
@click.option("--date", default="today", show_default=True, help="Transaction date")
@click.option("--notes", help="Notes")
@click.pass_context
def legacy_entry(
    ctx,
    business: str,
    account_label: str,
    category: str,
    amount: str,
    name: str,
    description: str | None,
    date: str,
    notes: str | None,
):
    """Record a single-entry transaction without chart-of-accounts postings.

    Examples:
        katalis transaction legacy --account BCA --category EARN --amount 2jt --name "Guest B"
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    txn_date = _parse_date_or_exit(ctx, date)
    txn_amount = _parse_amount_or_exit(ctx, amount)

    try:
        transaction_id = TransactionService(db).create_legacy(
            business_id=biz.id,
            account_label=account_label,
            amount=txn_amount,
            txn_date=txn_date,
            name=name,
            description=description or name,
            category=TransactionCategory(category.upper()),
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created legacy transaction {transaction_id}")


@transaction_group.command("list")
@business_option
@period_options
@click.option("--include-deleted", is_flag=True, help="Include soft-deleted transactions")
@click.option("--verbose", "-v", is_flag=True, help="Show all fields including notes")
@click.pass_context
def list_transactions(
    ctx,
    business: str,
    start_date: str | None,
    end_date: str | None,
    include_deleted: bool,
    verbose: bool,
    **period_kwargs,
):
    """View transactions with optional date filters.

    Inventory purchases are shown with the STOCK label.
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(period_kwargs),
    )
    service = TransactionService(db)

    transactions = service.list_transactions(
        biz.id, start_date=start, end_date=end, include_deleted=include_deleted
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Category':<9} {'Amount':>18}  {'Debit':<8} {'Credit':<8} {'Name':<30}"
    )
    click.echo("-" * 110)

    for txn in transactions:
        if isinstance(txn.posting, DoubleEntryPosting):
            debit = txn.debit_account.account_code if txn.debit_account else "?"
            credit = txn.credit_account.account_code if txn.credit_account else "?"
        else:
            debit, credit = txn.posting.account_label[:8], ""
        name = txn.name + (" (deleted)" if txn.is_deleted else "")
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {display_category(txn):<9} "
            f"{txn.amount:>18,.2f}  {debit:<8} {credit:<8} {name[:30]:<30}"
        )
        if verbose:
            click.echo(f"       Description: {txn.description}")
            if txn.notes:
                click.echo(f"       Notes: {txn.notes}")

    total = sum(txn.amount for txn in transactions if not txn.is_deleted)
    click.echo("-" * 110)
    click.echo(f"{'TOTAL':<6} Amount: {total:,.2f} | Count: {len(transactions)}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction. It can be restored later.

    Examples:
        katalis transaction delete 1
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)

    # Get transaction info for display
    txn = transaction_service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    # Confirm deletion
    if not yes and not click.confirm(
        f"Are you sure you want to delete transaction {transaction_id} ({txn.name})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        transaction_service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("restore")
@click.argument("transaction_id", type=int)
@click.pass_context
def restore_transaction(ctx, transaction_id: int) -> None:
    """Restore a deleted transaction."""
    db = ctx.obj["db"]
    try:
        TransactionService(db).restore_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Restored transaction {transaction_id}")


@transaction_group.command("to-cogs")
@click.argument("transaction_id", type=int)
@click.option("--cogs-account", help="Expense account code (found automatically if omitted)")
@click.pass_context
def stock_to_cogs(ctx, transaction_id: int, cogs_account: str | None) -> None:
    """Convert a sold inventory purchase to cost of goods sold.

    Only the debit account changes; amount, date and credit account stay.

    Examples:
        katalis transaction to-cogs 12
        katalis transaction to-cogs 12 --cogs-account 5250
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    cogs_account_id = None
    if cogs_account is not None:
        cogs_account_id = resolve_account_code_or_exit(ctx, txn.business_id, cogs_account).id

    try:
        service.reclassify_stock_to_cogs(transaction_id, cogs_account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    updated = service.get_transaction(transaction_id)
    click.echo(f"Converted transaction {transaction_id} to COGS")
    click.echo(f"  Debit: {updated.debit_account.display_name}")


@transaction_group.command("guide")
@business_option
@click.option("--debit", help="Debit account code")
@click.option("--credit", help="Credit account code")
@click.option("--name", help="Transaction name, used to recognise common patterns")
@click.pass_context
def guide(ctx, business: str, debit: str | None, credit: str | None, name: str | None) -> None:
    """Explain a transaction and suggest accounts.

    Examples:
        katalis transaction guide --name "bayar listrik"
        katalis transaction guide --debit 5110 --credit 1120
    """
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    debit_id = resolve_account_code_or_exit(ctx, biz.id, debit).id if debit else None
    credit_id = resolve_account_code_or_exit(ctx, biz.id, credit).id if credit else None

    accounts = db.list_accounts(biz.id, include_inactive=False)
    guidance = TransactionGuidanceService(accounts).get_guidance(debit_id, credit_id, name)

    click.echo(guidance.explanation)
    for label, suggestions in (
        ("Suggested debit accounts", guidance.suggested_debit_accounts),
        ("Suggested credit accounts", guidance.suggested_credit_accounts),
    ):
        if suggestions:
            click.echo(f"\n{label}:")
            for suggestion in suggestions:
                click.echo(
                    f"  {suggestion.account.display_name:<40} {suggestion.reason} ({suggestion.confidence})"
                )
    for warning in guidance.warnings:
        click.echo(f"\nWarning: {warning}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
