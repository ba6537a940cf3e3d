"""Domain model entities for katalis.

These are pure data classes representing bookkeeping concepts, independent of
database schema. The engine functions consume and produce only these types, so
the persistence layer can change without touching the accounting rules.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AccountType(str, Enum):
    """Chart-of-accounts classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class NormalBalance(str, Enum):
    """Side on which an account increases."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class TransactionCategory(str, Enum):
    """Reporting bucket for a transaction."""

    EARN = "EARN"
    OPEX = "OPEX"
    VAR = "VAR"
    CAPEX = "CAPEX"
    TAX = "TAX"
    FIN = "FIN"


# Fixed presentation order for trial balance groups
ACCOUNT_TYPE_ORDER: tuple[AccountType, ...] = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
)


@dataclass(frozen=True)
class Business:
    """Business (tenant) domain entity."""

    id: int
    name: str
    capital_investment: Decimal
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    business_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    parent_account_id: Optional[int] = None
    default_category: Optional[TransactionCategory] = None
    is_system: bool = False
    is_active: bool = True
    sort_order: int = 0
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_sub_account(self) -> bool:
        return self.parent_account_id is not None

    @property
    def display_name(self) -> str:
        return f"{self.account_code} - {self.account_name}"


def account_sort_key(account: Account) -> tuple[int, str]:
    """Stable display order: sort_order, then account_code."""
    return (account.sort_order, account.account_code)


@dataclass(frozen=True)
class DoubleEntryPosting:
    """Debit/credit pair of a double-entry transaction.

    The account objects are joined in by the store and are None when a
    reference cannot be resolved.
    """

    debit_account_id: int
    credit_account_id: int
    debit_account: Optional[Account] = field(default=None, compare=False)
    credit_account: Optional[Account] = field(default=None, compare=False)


@dataclass(frozen=True)
class LegacyPosting:
    """Free-text account of the single-entry model."""

    account_label: str


Posting = Union[DoubleEntryPosting, LegacyPosting]


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    business_id: int
    date: date
    category: Optional[TransactionCategory]
    name: str
    description: str
    amount: Decimal
    posting: Posting
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_double_entry(self) -> bool:
        return isinstance(self.posting, DoubleEntryPosting)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def debit_account(self) -> Optional[Account]:
        if isinstance(self.posting, DoubleEntryPosting):
            return self.posting.debit_account
        return None

    @property
    def credit_account(self) -> Optional[Account]:
        if isinstance(self.posting, DoubleEntryPosting):
            return self.posting.credit_account
        return None


# Aggregates


@dataclass(frozen=True)
class FinancialSummary:
    """Category totals with derived profit figures."""

    total_earn: Decimal = Decimal("0")
    total_opex: Decimal = Decimal("0")
    total_var: Decimal = Decimal("0")
    total_capex: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    total_fin: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")


@dataclass(frozen=True)
class IncomeStatementMetrics:
    """Income statement figures derived from a financial summary."""

    operating_income: Decimal
    ebit: Decimal
    ebt: Decimal
    gross_margin: Decimal
    operating_margin: Decimal
    net_margin: Decimal


@dataclass(frozen=True)
class MonthlyData:
    """Category totals for one calendar month."""

    month: str
    earn: Decimal = Decimal("0")
    opex: Decimal = Decimal("0")
    var: Decimal = Decimal("0")
    capex: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    fin: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")


@dataclass(frozen=True)
class CashFlowData:
    """Cash flow statement by activity."""

    operating: Decimal
    investing: Decimal
    financing: Decimal
    net_cash_flow: Decimal
    opening_balance: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class AssetSection:
    cash: Decimal
    property_value: Decimal
    total_assets: Decimal


@dataclass(frozen=True)
class LiabilitySection:
    loans: Decimal
    total_liabilities: Decimal


@dataclass(frozen=True)
class EquitySection:
    capital: Decimal
    retained_earnings: Decimal
    total_equity: Decimal


@dataclass(frozen=True)
class BalanceSheetData:
    """Balance sheet with an accounting-equation check."""

    assets: AssetSection
    liabilities: LiabilitySection
    equity: EquitySection

    @property
    def difference(self) -> Decimal:
        return abs(
            self.assets.total_assets
            - (self.liabilities.total_liabilities + self.equity.total_equity)
        )

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0


@dataclass(frozen=True)
class TrialBalanceRow:
    """Posted debit and credit totals for one account."""

    account: Account
    debit_balance: Decimal
    credit_balance: Decimal

    @property
    def net_balance(self) -> Decimal:
        """Balance signed by the account's normal side."""
        if self.account.normal_balance == NormalBalance.DEBIT:
            return self.debit_balance - self.credit_balance
        return self.credit_balance - self.debit_balance


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance grouped by account type."""

    groups: tuple[tuple[AccountType, tuple[TrialBalanceRow, ...]], ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool
    difference: Decimal
    legacy_count: int = 0
    skipped_count: int = 0

    @property
    def rows(self) -> tuple[TrialBalanceRow, ...]:
        return tuple(row for _, group_rows in self.groups for row in group_rows)


@dataclass(frozen=True)
class LedgerEntry:
    """One posting in an account's general ledger."""

    transaction_id: int
    date: date
    description: str
    counter_account_code: str
    counter_account_name: str
    debit_amount: Decimal
    credit_amount: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """General ledger for a single account."""

    account: Account
    entries: tuple[LedgerEntry, ...]
    total_debits: Decimal
    total_credits: Decimal
    closing_balance: Decimal
    legacy_count: int = 0


# Validation


@dataclass(frozen=True)
class ValidationIssue:
    """Field-attributed validation error or warning."""

    field: str
    code: str
    message: str
    severity: str = "error"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a candidate transaction."""

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_codes(self) -> list[str]:
        return [issue.code for issue in self.errors]

    def warning_codes(self) -> list[str]:
        return [issue.code for issue in self.warnings]


@dataclass(frozen=True)
class ValidationCandidate:
    """Prospective transaction as entered by the user.

    Account objects are the caller's lookups for the selected ids and are
    None when the lookup failed.
    """

    amount: Optional[Decimal]
    date: Union[date, str, None]
    name: Optional[str]
    description: Optional[str] = None
    debit_account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    debit_account: Optional[Account] = None
    credit_account: Optional[Account] = None
    account_label: Optional[str] = None
    is_double_entry: bool = True


# Quick add


@dataclass(frozen=True)
class QuickTransactionInput:
    """Single-account input of the quick-add form."""

    amount: Decimal
    selected_account_id: int
    name: str
    date: date
    notes: Optional[str] = None


@dataclass(frozen=True)
class ResolvedTransaction:
    """Full double-entry transaction derived from quick-add input."""

    date: date
    category: TransactionCategory
    name: str
    description: str
    amount: Decimal
    debit_account_id: int
    credit_account_id: int
    is_double_entry: bool = True


@dataclass(frozen=True)
class ResolutionFailure:
    """Precondition failure of the quick-add resolver."""

    error: str


@dataclass(frozen=True)
class StockToCOGSUpdate:
    """Update moving a stock transaction's debit to a COGS account."""

    transaction_id: int
    new_debit_account_id: int


# Guidance


@dataclass(frozen=True)
class TransactionPattern:
    """Common transaction shape used for guidance."""

    id: str
    name: str
    description: str
    debit_account_type: AccountType
    credit_account_type: AccountType
    suggested_debit_codes: tuple[str, ...] = ()
    suggested_credit_codes: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    # Side that moves cash/bank, if any
    cash_side: Optional[NormalBalance] = None


@dataclass(frozen=True)
class AccountSuggestion:
    account: Account
    reason: str
    confidence: str


@dataclass(frozen=True)
class TransactionGuidance:
    """Suggestions and explanation for a transaction being entered."""

    pattern: Optional[TransactionPattern]
    suggested_debit_accounts: tuple[AccountSuggestion, ...]
    suggested_credit_accounts: tuple[AccountSuggestion, ...]
    explanation: str
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchingPrincipleWarning:
    """Hint that a sale needs a matching COGS entry."""

    inventory_account: Account
    cogs_account: Optional[Account]
    title: str
    body: str
    journal_hint: str
