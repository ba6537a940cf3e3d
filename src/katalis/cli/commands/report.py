"""Financial report commands."""

import click
from katalis.cli.business_resolution import business_option, resolve_business_or_exit
from katalis.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from katalis.cli.error_handling import handle_domain_error
from katalis.domain.errors import DomainError
from katalis.domain.reports import ReportService
from katalis.domain.rules import ACCOUNT_TYPE_LABELS, CATEGORY_LABELS
from katalis.domain.entities import TransactionCategory
from katalis.utils.date_parser import parse_date

WIDTH = 72


def _line(label: str, amount, indent: int = 0) -> None:
    click.echo(f"{' ' * indent}{label:<{48 - indent}} {amount:>23,.2f}")


def _date_range(ctx, start_date, end_date, period_kwargs):
    return resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(period_kwargs),
    )


def _period_label(start, end) -> str:
    if start is None and end is None:
        return "all time"
    return f"{start or '...'} to {end or '...'}"


@click.group()
def report_group():
    """Financial reports."""
    pass


@report_group.command("summary")
@business_option
@period_options
@click.option("--monthly", is_flag=True, help="Show a month-by-month breakdown")
@click.pass_context
def summary(ctx, business: str, start_date, end_date, monthly: bool, **period_kwargs):
    """Income statement: category totals, profit and margins."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    start, end = _date_range(ctx, start_date, end_date, period_kwargs)
    service = ReportService(db)

    try:
        totals, metrics = service.income_statement(biz.id, start, end)
        initial_capital, roi = service.return_on_investment(biz.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nIncome statement for {biz.name} ({_period_label(start, end)})")
    click.echo("=" * WIDTH)
    _line(CATEGORY_LABELS[TransactionCategory.EARN], totals.total_earn)
    _line(CATEGORY_LABELS[TransactionCategory.VAR], totals.total_var)
    _line("Gross profit", totals.gross_profit)
    _line(CATEGORY_LABELS[TransactionCategory.OPEX], totals.total_opex)
    _line("Operating income", metrics.operating_income)
    _line(CATEGORY_LABELS[TransactionCategory.CAPEX], totals.total_capex)
    _line("EBIT", metrics.ebit)
    _line(CATEGORY_LABELS[TransactionCategory.FIN], totals.total_fin)
    _line("EBT", metrics.ebt)
    _line(CATEGORY_LABELS[TransactionCategory.TAX], totals.total_tax)
    click.echo("-" * WIDTH)
    _line("Net profit", totals.net_profit)
    click.echo(
        f"\nMargins: gross {metrics.gross_margin:.1f}% | "
        f"operating {metrics.operating_margin:.1f}% | net {metrics.net_margin:.1f}%"
    )
    if initial_capital:
        click.echo(f"Initial capital: {initial_capital:,.2f} | ROI {roi:.1f}%")
    else:
        click.echo("Initial capital: none recorded yet | ROI n/a")

    if monthly:
        months = service.monthly_breakdown(biz.id, start, end)
        click.echo(f"\n{'Month':<9} {'Revenue':>16} {'Expenses':>16} {'Net profit':>16}")
        click.echo("-" * WIDTH)
        for month in months:
            expenses = month.opex + month.var + month.capex + month.tax
            click.echo(
                f"{month.month:<9} {month.earn:>16,.2f} {expenses:>16,.2f} {month.net_profit:>16,.2f}"
            )


@report_group.command("trial-balance")
@business_option
@period_options
@click.pass_context
def trial_balance(ctx, business: str, start_date, end_date, **period_kwargs):
    """Trial balance of double-entry postings, grouped by account type."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    start, end = _date_range(ctx, start_date, end_date, period_kwargs)

    try:
        tb = ReportService(db).trial_balance(biz.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nTrial balance for {biz.name} ({_period_label(start, end)})")
    click.echo("=" * 90)
    click.echo(f"{'Code':<8} {'Account':<40} {'Debit':>20} {'Credit':>20}")
    for account_type, rows in tb.groups:
        click.echo(f"\n{ACCOUNT_TYPE_LABELS[account_type]}")
        for row in rows:
            click.echo(
                f"{row.account.account_code:<8} {row.account.account_name[:40]:<40} "
                f"{row.debit_balance:>20,.2f} {row.credit_balance:>20,.2f}"
            )
    click.echo("-" * 90)
    click.echo(f"{'TOTAL':<49} {tb.total_debits:>20,.2f} {tb.total_credits:>20,.2f}")

    if tb.is_balanced:
        click.echo("\nBalanced.")
    else:
        click.echo(f"\nWARNING: Not balanced. Difference: {tb.difference:,.2f}")
    if tb.legacy_count:
        click.echo(f"{tb.legacy_count} legacy transaction(s) without accounts are not included.")
    if tb.skipped_count:
        click.echo(f"{tb.skipped_count} transaction(s) with missing accounts were skipped.")


@report_group.command("balance-sheet")
@business_option
@click.option("--as-of", help="Balance sheet date (defaults to all transactions)")
@click.pass_context
def balance_sheet(ctx, business: str, as_of: str | None):
    """Balance sheet: assets, liabilities and equity."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)

    as_of_date = None
    if as_of:
        try:
            as_of_date = parse_date(as_of)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        bs = ReportService(db).balance_sheet(biz.id, as_of_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance sheet for {biz.name} as of {as_of_date or 'today'}")
    click.echo("=" * WIDTH)
    click.echo("Assets")
    _line("Cash & bank", bs.assets.cash, 2)
    _line("Property & equipment", bs.assets.property_value, 2)
    _line("Total assets", bs.assets.total_assets)
    click.echo("\nLiabilities")
    _line("Loans & payables", bs.liabilities.loans, 2)
    _line("Total liabilities", bs.liabilities.total_liabilities)
    click.echo("\nEquity")
    _line("Capital", bs.equity.capital, 2)
    _line("Retained earnings", bs.equity.retained_earnings, 2)
    _line("Total equity", bs.equity.total_equity)
    click.echo("-" * WIDTH)
    _line(
        "Total liabilities & equity",
        bs.liabilities.total_liabilities + bs.equity.total_equity,
    )
    if not bs.is_balanced:
        click.echo(f"\nWARNING: Assets differ from liabilities + equity by {bs.difference:,.2f}")


@report_group.command("cash-flow")
@business_option
@period_options
@click.pass_context
def cash_flow(ctx, business: str, start_date, end_date, **period_kwargs):
    """Cash flow by operating, investing and financing activity."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    start, end = _date_range(ctx, start_date, end_date, period_kwargs)

    try:
        cf = ReportService(db).cash_flow(biz.id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash flow for {biz.name} ({_period_label(start, end)})")
    click.echo("=" * WIDTH)
    _line("Opening balance", cf.opening_balance)
    _line("Operating activities", cf.operating, 2)
    _line("Investing activities", cf.investing, 2)
    _line("Financing activities", cf.financing, 2)
    _line("Net cash flow", cf.net_cash_flow)
    click.echo("-" * WIDTH)
    _line("Closing balance", cf.closing_balance)


@report_group.command("ledger")
@click.argument("code", metavar="ACCOUNT_CODE")
@business_option
@period_options
@click.pass_context
def ledger(ctx, code: str, business: str, start_date, end_date, **period_kwargs):
    """General ledger of one account with a running balance."""
    db = ctx.obj["db"]
    biz = resolve_business_or_exit(ctx, business)
    start, end = _date_range(ctx, start_date, end_date, period_kwargs)

    try:
        gl = ReportService(db).account_ledger(biz.id, code, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nLedger {gl.account.display_name} ({_period_label(start, end)})")
    click.echo("=" * 110)
    click.echo(
        f"{'Date':<12} {'ID':<6} {'Description':<30} {'Counter':<8} "
        f"{'Debit':>16} {'Credit':>16} {'Balance':>16}"
    )
    click.echo("-" * 110)
    for entry in gl.entries:
        click.echo(
            f"{str(entry.date):<12} {entry.transaction_id:<6} {entry.description[:30]:<30} "
            f"{entry.counter_account_code:<8} {entry.debit_amount:>16,.2f} "
            f"{entry.credit_amount:>16,.2f} {entry.balance:>16,.2f}"
        )
    click.echo("-" * 110)
    click.echo(
        f"{'TOTAL':<58} {gl.total_debits:>16,.2f} {gl.total_credits:>16,.2f} "
        f"{gl.closing_balance:>16,.2f}"
    )


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
