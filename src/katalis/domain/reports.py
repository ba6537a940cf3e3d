"""Financial aggregation.

Pure functions that fold a snapshot of transactions into summaries, cash
flow, trial balance, balance sheet and account ledgers, plus the
ReportService that feeds them from the database.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from katalis.database.base import Database
from katalis.domain.entities import (
    ACCOUNT_TYPE_ORDER,
    Account,
    AccountLedger,
    AccountType,
    AssetSection,
    BalanceSheetData,
    CashFlowData,
    DoubleEntryPosting,
    EquitySection,
    FinancialSummary,
    IncomeStatementMetrics,
    LedgerEntry,
    LiabilitySection,
    MonthlyData,
    NormalBalance,
    Transaction,
    TransactionCategory,
    TrialBalance,
    TrialBalanceRow,
    account_sort_key,
)
from katalis.domain.errors import (
    NotFoundError,
    account_code_not_found,
    business_not_found,
)
from katalis.domain.rules import DEFAULT_POLICY, CashAccountPolicy

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_SUMMARY_FIELDS = {
    TransactionCategory.EARN: "total_earn",
    TransactionCategory.OPEX: "total_opex",
    TransactionCategory.VAR: "total_var",
    TransactionCategory.CAPEX: "total_capex",
    TransactionCategory.TAX: "total_tax",
    TransactionCategory.FIN: "total_fin",
}


def _live(transactions: Sequence[Transaction]) -> list[Transaction]:
    return [t for t in transactions if not t.is_deleted]


def _category_totals(transactions: Sequence[Transaction]) -> dict[TransactionCategory, Decimal]:
    totals = {category: ZERO for category in TransactionCategory}
    for txn in transactions:
        if txn.is_deleted:
            continue
        if txn.category not in totals:
            logger.debug("Skipping transaction %s with unknown category", txn.id)
            continue
        totals[txn.category] += Decimal(txn.amount)
    return totals


def _summary_from_totals(totals: dict[TransactionCategory, Decimal]) -> FinancialSummary:
    earn = totals[TransactionCategory.EARN]
    opex = totals[TransactionCategory.OPEX]
    var = totals[TransactionCategory.VAR]
    capex = totals[TransactionCategory.CAPEX]
    tax = totals[TransactionCategory.TAX]
    return FinancialSummary(
        total_earn=earn,
        total_opex=opex,
        total_var=var,
        total_capex=capex,
        total_tax=tax,
        total_fin=totals[TransactionCategory.FIN],
        gross_profit=earn - var,
        # Financing flows are balance-sheet movements and stay out of profit
        net_profit=earn - opex - var - capex - tax,
    )


def calculate_financial_summary(transactions: Sequence[Transaction]) -> FinancialSummary:
    """Sum transaction amounts per category.

    Deleted transactions and transactions without a known category are
    skipped.

    Args:
        transactions: Transactions of one business

    Returns:
        FinancialSummary with category totals, gross profit and net profit
    """
    return _summary_from_totals(_category_totals(transactions))


def merge_summaries(*summaries: FinancialSummary) -> FinancialSummary:
    """Field-wise sum of financial summaries."""
    totals = {category: ZERO for category in TransactionCategory}
    for summary in summaries:
        for category, field_name in _SUMMARY_FIELDS.items():
            totals[category] += getattr(summary, field_name)
    return _summary_from_totals(totals)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def calculate_income_statement_metrics(summary: FinancialSummary) -> IncomeStatementMetrics:
    """Derive operating income, EBIT, EBT and margins from a summary.

    Margins are percentages of revenue, and zero when there is no revenue.
    """
    operating_income = summary.gross_profit - summary.total_opex
    ebit = operating_income - summary.total_capex
    ebt = ebit - summary.total_fin
    has_revenue = summary.total_earn > 0
    return IncomeStatementMetrics(
        operating_income=operating_income,
        ebit=ebit,
        ebt=ebt,
        gross_margin=_percent(summary.gross_profit, summary.total_earn) if has_revenue else ZERO,
        operating_margin=_percent(operating_income, summary.total_earn) if has_revenue else ZERO,
        net_margin=_percent(summary.net_profit, summary.total_earn) if has_revenue else ZERO,
    )


def calculate_category_counts(
    transactions: Sequence[Transaction],
) -> dict[TransactionCategory, int]:
    counts = {category: 0 for category in TransactionCategory}
    for txn in _live(transactions):
        if txn.category in counts:
            counts[txn.category] += 1
    return counts


def group_transactions_by_month(transactions: Sequence[Transaction]) -> list[MonthlyData]:
    """Category totals per calendar month, keyed "YYYY-MM" in ascending order."""
    by_month: dict[str, list[Transaction]] = defaultdict(list)
    for txn in _live(transactions):
        by_month[txn.date.strftime("%Y-%m")].append(txn)

    result = []
    for month in sorted(by_month):
        summary = calculate_financial_summary(by_month[month])
        result.append(
            MonthlyData(
                month=month,
                earn=summary.total_earn,
                opex=summary.total_opex,
                var=summary.total_var,
                capex=summary.total_capex,
                tax=summary.total_tax,
                fin=summary.total_fin,
                net_profit=summary.net_profit,
            )
        )
    return result


def _is_capex(txn: Transaction, policy: CashAccountPolicy) -> bool:
    if txn.category == TransactionCategory.CAPEX:
        return True
    debit = txn.debit_account
    return debit is not None and policy.is_fixed_asset(debit.account_code)


def calculate_total_capex(
    transactions: Sequence[Transaction], policy: CashAccountPolicy = DEFAULT_POLICY
) -> Decimal:
    """Total capital expenditure, by category or by a fixed-asset debit."""
    return sum(
        (Decimal(t.amount) for t in _live(transactions) if _is_capex(t, policy)),
        ZERO,
    )


def calculate_initial_capital(
    transactions: Sequence[Transaction], policy: CashAccountPolicy = DEFAULT_POLICY
) -> Decimal:
    """Capital expenditure of the month of the first capital expenditure.

    Returns zero when the business has no capital expenditure yet.
    """
    capex = [t for t in _live(transactions) if _is_capex(t, policy)]
    if not capex:
        return ZERO
    first = min(t.date for t in capex)
    return sum(
        (
            Decimal(t.amount)
            for t in capex
            if (t.date.year, t.date.month) == (first.year, first.month)
        ),
        ZERO,
    )


def calculate_roi(net_profit: Decimal, capital: Decimal) -> Decimal:
    """Return on investment as a percentage."""
    return _percent(Decimal(net_profit), Decimal(capital))


def calculate_profit_margin(net_profit: Decimal, revenue: Decimal) -> Decimal:
    """Net profit as a percentage of revenue."""
    return _percent(Decimal(net_profit), Decimal(revenue))


def filter_transactions_by_date_range(
    transactions: Sequence[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[Transaction]:
    """Transactions dated within [start_date, end_date], both inclusive."""
    return [
        t
        for t in transactions
        if (start_date is None or t.date >= start_date)
        and (end_date is None or t.date <= end_date)
    ]


def filter_transactions_up_to_date(
    transactions: Sequence[Transaction], end_date: date
) -> list[Transaction]:
    """Cumulative transactions up to and including end_date."""
    return filter_transactions_by_date_range(transactions, end_date=end_date)


def filter_transactions_by_category(
    transactions: Sequence[Transaction], category: TransactionCategory
) -> list[Transaction]:
    return [t for t in transactions if t.category == category]


def calculate_cash_flow(
    transactions: Sequence[Transaction], capital: Decimal = ZERO
) -> CashFlowData:
    """Cash flow by activity from category totals.

    Args:
        transactions: Transactions of the period
        capital: Opening balance

    Returns:
        CashFlowData with operating, investing and financing flows
    """
    summary = calculate_financial_summary(transactions)
    operating = summary.total_earn - summary.total_opex - summary.total_var - summary.total_tax
    investing = -summary.total_capex
    financing = summary.total_fin
    net_cash_flow = operating + investing + financing
    opening_balance = Decimal(capital)
    return CashFlowData(
        operating=operating,
        investing=investing,
        financing=financing,
        net_cash_flow=net_cash_flow,
        opening_balance=opening_balance,
        closing_balance=opening_balance + net_cash_flow,
    )


def calculate_trial_balance(
    transactions: Sequence[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> TrialBalance:
    """Build a trial balance from double-entry postings.

    Each debit posting adds to the debit column of its account and each
    credit posting to the credit column, whatever the account's normal
    balance. Legacy transactions have no accounts and are only counted, as
    are double-entry transactions whose accounts cannot be resolved.

    Args:
        transactions: Transactions of one business
        start_date: Optional inclusive start date
        end_date: Optional inclusive end date

    Returns:
        TrialBalance grouped by account type
    """
    accounts: dict[int, Account] = {}
    debits: dict[int, Decimal] = defaultdict(lambda: ZERO)
    credits: dict[int, Decimal] = defaultdict(lambda: ZERO)
    legacy_count = 0
    skipped_count = 0

    in_range = filter_transactions_by_date_range(_live(transactions), start_date, end_date)
    for txn in in_range:
        if not isinstance(txn.posting, DoubleEntryPosting):
            legacy_count += 1
            continue
        debit, credit = txn.posting.debit_account, txn.posting.credit_account
        if debit is None or credit is None:
            logger.debug("Skipping transaction %s with unresolved accounts", txn.id)
            skipped_count += 1
            continue
        amount = Decimal(txn.amount)
        accounts[debit.id] = debit
        accounts[credit.id] = credit
        debits[debit.id] += amount
        credits[credit.id] += amount

    groups = []
    for account_type in ACCOUNT_TYPE_ORDER:
        typed = sorted(
            (acc for acc in accounts.values() if acc.account_type == account_type),
            key=account_sort_key,
        )
        if typed:
            groups.append(
                (
                    account_type,
                    tuple(TrialBalanceRow(acc, debits[acc.id], credits[acc.id]) for acc in typed),
                )
            )

    total_debits = sum(debits.values(), ZERO)
    total_credits = sum(credits.values(), ZERO)
    difference = abs(total_debits - total_credits)
    if difference != 0:
        logger.warning(
            "Trial balance is unbalanced: debits %s, credits %s", total_debits, total_credits
        )

    return TrialBalance(
        groups=tuple(groups),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=total_debits == total_credits,
        difference=difference,
        legacy_count=legacy_count,
        skipped_count=skipped_count,
    )


def calculate_balance_sheet(
    transactions: Sequence[Transaction],
    capital: Decimal = ZERO,
    policy: CashAccountPolicy = DEFAULT_POLICY,
) -> BalanceSheetData:
    """Build a balance sheet from double-entry and legacy transactions.

    The two kinds are partitioned first and folded separately. Double-entry
    postings move the account totals directly; legacy transactions go
    through the category-sum method, whose closing cash (opening at
    ``capital``) joins the cash total.

    Args:
        transactions: Cumulative transactions up to the balance sheet date
        capital: Owner's capital investment
        policy: Account code conventions for the cash and property subtotals

    Returns:
        BalanceSheetData
    """
    capital = Decimal(capital)
    live = _live(transactions)
    double_entry = [t for t in live if t.is_double_entry]
    legacy = [t for t in live if not t.is_double_entry]

    total_assets = total_cash = total_property = ZERO
    total_liabilities = total_revenue = total_expenses = ZERO

    for txn in double_entry:
        amount = Decimal(txn.amount)
        debit, credit = txn.debit_account, txn.credit_account

        if debit is not None:
            if debit.account_type == AccountType.ASSET:
                total_assets += amount
                if policy.is_cash(debit.account_code):
                    total_cash += amount
                if policy.is_fixed_asset(debit.account_code):
                    total_property += amount
            elif debit.account_type == AccountType.LIABILITY:
                total_liabilities -= amount
            elif debit.account_type == AccountType.EXPENSE:
                total_expenses += amount

        if credit is not None:
            if credit.account_type == AccountType.ASSET:
                total_assets -= amount
                if policy.is_cash(credit.account_code):
                    total_cash -= amount
                if policy.is_fixed_asset(credit.account_code):
                    total_property -= amount
            elif credit.account_type == AccountType.LIABILITY:
                total_liabilities += amount
            elif credit.account_type == AccountType.REVENUE:
                total_revenue += amount

    if legacy:
        summary = calculate_financial_summary(legacy)
        closing_cash = calculate_cash_flow(legacy, capital).closing_balance
        total_cash += closing_cash
        total_property += summary.total_capex
        total_assets += closing_cash + summary.total_capex
        total_liabilities += abs(summary.total_fin)
        total_revenue += summary.total_earn
        total_expenses += summary.total_opex + summary.total_var + summary.total_tax

    retained_earnings = total_revenue - total_expenses
    return BalanceSheetData(
        assets=AssetSection(
            cash=total_cash,
            property_value=total_property,
            total_assets=total_assets,
        ),
        liabilities=LiabilitySection(
            loans=total_liabilities,
            total_liabilities=total_liabilities,
        ),
        equity=EquitySection(
            capital=capital,
            retained_earnings=retained_earnings,
            total_equity=capital + retained_earnings,
        ),
    )


def _ledger_sort_key(txn: Transaction) -> tuple[date, datetime, int]:
    return (txn.date, txn.created_at or datetime.min, txn.id)


def calculate_account_ledger(
    account: Account,
    transactions: Sequence[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AccountLedger:
    """General ledger of one account with a running balance.

    The balance grows on the account's normal side. Entries are ordered by
    date, then creation time, then id.
    """
    entries = []
    balance = total_debits = total_credits = ZERO
    legacy_count = 0

    in_range = filter_transactions_by_date_range(_live(transactions), start_date, end_date)
    for txn in sorted(in_range, key=_ledger_sort_key):
        if not isinstance(txn.posting, DoubleEntryPosting):
            legacy_count += 1
            continue

        amount = Decimal(txn.amount)
        if txn.posting.debit_account_id == account.id:
            debit_amount, credit_amount = amount, ZERO
            counter = txn.posting.credit_account
        elif txn.posting.credit_account_id == account.id:
            debit_amount, credit_amount = ZERO, amount
            counter = txn.posting.debit_account
        else:
            continue

        if account.normal_balance == NormalBalance.DEBIT:
            balance += debit_amount - credit_amount
        else:
            balance += credit_amount - debit_amount
        total_debits += debit_amount
        total_credits += credit_amount

        entries.append(
            LedgerEntry(
                transaction_id=txn.id,
                date=txn.date,
                description=txn.description or txn.name,
                counter_account_code=counter.account_code if counter else "",
                counter_account_name=counter.account_name if counter else "",
                debit_amount=debit_amount,
                credit_amount=credit_amount,
                balance=balance,
            )
        )

    return AccountLedger(
        account=account,
        entries=tuple(entries),
        total_debits=total_debits,
        total_credits=total_credits,
        closing_balance=balance,
        legacy_count=legacy_count,
    )


class ReportService:
    """Service for building financial reports of a business."""

    def __init__(self, db: Database, policy: CashAccountPolicy = DEFAULT_POLICY):
        """Initialize report service.

        Args:
            db: Database instance
            policy: Account code conventions of the chart of accounts
        """
        self.db = db
        self.policy = policy

    def _transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))
        return self.db.list_transactions(
            business_id=business_id, start_date=start_date, end_date=end_date
        )

    def financial_summary(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FinancialSummary:
        """Category totals for a period.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        return calculate_financial_summary(self._transactions(business_id, start_date, end_date))

    def income_statement(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[FinancialSummary, IncomeStatementMetrics]:
        summary = self.financial_summary(business_id, start_date, end_date)
        return summary, calculate_income_statement_metrics(summary)

    def return_on_investment(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[Decimal, Decimal]:
        """Initial capital and the period's net profit as a percentage of it.

        The initial capital is the capital expenditure of the business's
        first capex month, whatever the period.

        Returns:
            Tuple of (initial_capital, roi)
        """
        initial_capital = calculate_initial_capital(self._transactions(business_id), self.policy)
        net_profit = self.financial_summary(business_id, start_date, end_date).net_profit
        return initial_capital, calculate_roi(net_profit, initial_capital)

    def cash_flow(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CashFlowData:
        """Cash flow for a period, opening at the business's capital investment."""
        transactions = self._transactions(business_id, start_date, end_date)
        business = self.db.get_business(business_id)
        return calculate_cash_flow(transactions, business.capital_investment)

    def trial_balance(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TrialBalance:
        return calculate_trial_balance(
            self._transactions(business_id), start_date=start_date, end_date=end_date
        )

    def balance_sheet(
        self, business_id: int, as_of: Optional[date] = None
    ) -> BalanceSheetData:
        """Balance sheet from all transactions up to ``as_of``.

        Args:
            business_id: Business ID
            as_of: Balance sheet date (defaults to all transactions)

        Returns:
            BalanceSheetData

        Raises:
            NotFoundError: If the business doesn't exist
        """
        transactions = self._transactions(business_id)
        if as_of is not None:
            transactions = filter_transactions_up_to_date(transactions, as_of)
        business = self.db.get_business(business_id)
        balance_sheet = calculate_balance_sheet(
            transactions, business.capital_investment, self.policy
        )
        if not balance_sheet.is_balanced:
            logger.warning(
                "Balance sheet of business %s is off by %s", business_id, balance_sheet.difference
            )
        return balance_sheet

    def account_ledger(
        self,
        business_id: int,
        account_code: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountLedger:
        """General ledger for one account.

        Raises:
            NotFoundError: If the business or account doesn't exist
        """
        transactions = self._transactions(business_id, start_date, end_date)
        account = self.db.get_account_by_code(business_id, account_code)
        if account is None:
            raise NotFoundError(account_code_not_found(account_code, business_id))
        return calculate_account_ledger(account, transactions)

    def monthly_breakdown(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[MonthlyData]:
        return group_transactions_by_month(self._transactions(business_id, start_date, end_date))
