"""Accounting rules: account classification, normal balances and the cash policy."""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from katalis.domain.entities import AccountType, NormalBalance, TransactionCategory

# Largest amount accepted for a single transaction
MAX_TRANSACTION_AMOUNT = Decimal("100000000000")

CATEGORY_LABELS: dict[TransactionCategory, str] = {
    TransactionCategory.EARN: "Revenue",
    TransactionCategory.OPEX: "Operating Expenses",
    TransactionCategory.VAR: "Variable Costs",
    TransactionCategory.CAPEX: "Capital Expenditure",
    TransactionCategory.TAX: "Taxes",
    TransactionCategory.FIN: "Financing",
}

ACCOUNT_TYPE_LABELS: dict[AccountType, str] = {
    AccountType.ASSET: "Asset",
    AccountType.LIABILITY: "Liability",
    AccountType.EQUITY: "Equity",
    AccountType.REVENUE: "Revenue",
    AccountType.EXPENSE: "Expense",
}

_CODE_PREFIX = re.compile(r"^\s*(\d+)")

# Half-open numeric ranges of the chart-of-accounts code prefix
_TYPE_RANGES: tuple[tuple[int, int, AccountType], ...] = (
    (1000, 2000, AccountType.ASSET),
    (2000, 3000, AccountType.LIABILITY),
    (3000, 4000, AccountType.EQUITY),
    (4000, 5000, AccountType.REVENUE),
    (5000, 6000, AccountType.EXPENSE),
)


def account_type_for_code(code: Optional[str]) -> Optional[AccountType]:
    """Classify an account code by its numeric prefix.

    Args:
        code: Account code such as "1120"

    Returns:
        AccountType, or None when the code is outside every range
    """
    if not code:
        return None
    match = _CODE_PREFIX.match(code)
    if match is None:
        return None
    value = int(match.group(1))
    for low, high, account_type in _TYPE_RANGES:
        if low <= value < high:
            return account_type
    return None


def normal_balance_for(account_type: AccountType) -> NormalBalance:
    """Return the side on which accounts of this type increase."""
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


@dataclass(frozen=True)
class AccountRule:
    account_type: AccountType
    normal_balance: NormalBalance
    increases_on: NormalBalance
    decreases_on: NormalBalance


def _rule(account_type: AccountType) -> AccountRule:
    normal = normal_balance_for(account_type)
    opposite = NormalBalance.CREDIT if normal == NormalBalance.DEBIT else NormalBalance.DEBIT
    return AccountRule(account_type, normal, normal, opposite)


ACCOUNT_RULES: dict[AccountType, AccountRule] = {t: _rule(t) for t in AccountType}


def increases_on(account_type: AccountType, side: NormalBalance) -> bool:
    """True if posting on ``side`` increases an account of ``account_type``."""
    return ACCOUNT_RULES[account_type].increases_on == side


@dataclass(frozen=True)
class AccountCombination:
    debit: AccountType
    credit: AccountType
    description: str


VALID_COMBINATIONS: tuple[AccountCombination, ...] = (
    # Money in
    AccountCombination(AccountType.ASSET, AccountType.REVENUE, "Revenue received into cash/bank"),
    AccountCombination(AccountType.ASSET, AccountType.EQUITY, "Capital injected into cash/bank"),
    AccountCombination(AccountType.ASSET, AccountType.LIABILITY, "Loan received into cash/bank"),
    # Money out
    AccountCombination(AccountType.EXPENSE, AccountType.ASSET, "Expense paid from cash/bank"),
    AccountCombination(
        AccountType.ASSET, AccountType.ASSET, "Transfer between assets (asset purchase, bank transfer)"
    ),
    AccountCombination(AccountType.LIABILITY, AccountType.ASSET, "Debt repaid from cash/bank"),
    AccountCombination(AccountType.EQUITY, AccountType.ASSET, "Owner withdrawal from cash/bank"),
    # Adjustments
    AccountCombination(AccountType.REVENUE, AccountType.ASSET, "Sales return or revenue correction"),
    AccountCombination(AccountType.ASSET, AccountType.EXPENSE, "Expense reimbursement or correction"),
    AccountCombination(AccountType.LIABILITY, AccountType.EQUITY, "Debt converted to equity"),
)


def find_combination(
    debit_type: AccountType, credit_type: AccountType
) -> Optional[AccountCombination]:
    for combination in VALID_COMBINATIONS:
        if combination.debit == debit_type and combination.credit == credit_type:
            return combination
    return None


def is_valid_combination(debit_type: AccountType, credit_type: AccountType) -> bool:
    return find_combination(debit_type, credit_type) is not None


def _in_range(code: Optional[str], bounds: tuple[str, str]) -> bool:
    if not code:
        return False
    low, high = bounds
    return low <= code <= high


@dataclass(frozen=True)
class CashAccountPolicy:
    """Chart-of-accounts conventions for cash, bank and fixed-asset accounts.

    Ranges are inclusive and compared lexically on the account code.
    """

    control_codes: tuple[str, ...] = ("1100", "1200")
    counter_range: tuple[str, str] = ("1110", "1132")
    preferred_counter_code: str = "1120"
    cash_subtotal_range: tuple[str, str] = ("1110", "1199")
    fixed_asset_range: tuple[str, str] = ("1200", "1299")
    drawings_code: str = "3300"

    def is_counter_account(self, code: Optional[str]) -> bool:
        """Selectable cash/bank account used as the quick-add counter side."""
        return _in_range(code, self.counter_range)

    def is_cash_or_bank(self, code: Optional[str]) -> bool:
        """Cash/bank account that carries no category of its own."""
        return code in self.control_codes or self.is_counter_account(code)

    def is_cash(self, code: Optional[str]) -> bool:
        """Counted in the balance sheet cash sub-total."""
        return _in_range(code, self.cash_subtotal_range)

    def is_fixed_asset(self, code: Optional[str]) -> bool:
        return _in_range(code, self.fixed_asset_range)

    def is_drawings(self, code: Optional[str]) -> bool:
        return code == self.drawings_code


DEFAULT_POLICY = CashAccountPolicy()
