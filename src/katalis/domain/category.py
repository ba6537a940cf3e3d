"""Transaction category detection.

Detection is a two-stage pipeline: an explicit per-account override is looked
up first, and only when none applies is the (debit type, credit type) pair
classified by the rule table. Expense postings without an explicit
``default_category`` fall back to OPEX; VAR, TAX and CAPEX expenses must be
configured on the account.
"""

from typing import Optional

from katalis.domain.entities import Account, AccountType, TransactionCategory
from katalis.domain.rules import DEFAULT_POLICY, CashAccountPolicy, account_type_for_code

FALLBACK_CATEGORY = TransactionCategory.OPEX

CATEGORY_RULES: dict[tuple[AccountType, AccountType], TransactionCategory] = {
    (AccountType.ASSET, AccountType.REVENUE): TransactionCategory.EARN,
    (AccountType.ASSET, AccountType.LIABILITY): TransactionCategory.FIN,
    (AccountType.ASSET, AccountType.EQUITY): TransactionCategory.FIN,
    (AccountType.EXPENSE, AccountType.ASSET): TransactionCategory.OPEX,
    (AccountType.ASSET, AccountType.ASSET): TransactionCategory.CAPEX,
    (AccountType.EQUITY, AccountType.ASSET): TransactionCategory.FIN,
    (AccountType.LIABILITY, AccountType.ASSET): TransactionCategory.FIN,
}


def _default_category(account: Optional[Account]) -> Optional[TransactionCategory]:
    if account is None:
        return None
    return account.default_category


def category_override(
    debit_code: Optional[str],
    credit_code: Optional[str],
    debit_account: Optional[Account] = None,
    credit_account: Optional[Account] = None,
    policy: CashAccountPolicy = DEFAULT_POLICY,
) -> Optional[TransactionCategory]:
    """Stage one: explicit ``default_category`` lookup.

    When one side is a cash/bank account, the other side's category wins.
    Otherwise the debit side is checked before the credit side.
    """
    debit_is_cash = policy.is_cash_or_bank(debit_code)
    credit_is_cash = policy.is_cash_or_bank(credit_code)

    if debit_is_cash and not credit_is_cash:
        category = _default_category(credit_account)
        if category is not None:
            return category
    if credit_is_cash and not debit_is_cash:
        category = _default_category(debit_account)
        if category is not None:
            return category

    return _default_category(debit_account) or _default_category(credit_account)


def category_from_rules(
    debit_code: Optional[str], credit_code: Optional[str]
) -> TransactionCategory:
    """Stage two: classify by the account-type pair of the codes."""
    debit_type = account_type_for_code(debit_code)
    credit_type = account_type_for_code(credit_code)
    if debit_type is None or credit_type is None:
        return FALLBACK_CATEGORY
    return CATEGORY_RULES.get((debit_type, credit_type), FALLBACK_CATEGORY)


def detect_category(
    debit_code: Optional[str],
    credit_code: Optional[str],
    debit_account: Optional[Account] = None,
    credit_account: Optional[Account] = None,
    policy: CashAccountPolicy = DEFAULT_POLICY,
) -> TransactionCategory:
    """Detect the category of a debit/credit pair.

    Args:
        debit_code: Code of the debited account
        credit_code: Code of the credited account
        debit_account: Optional debited account, consulted for overrides
        credit_account: Optional credited account, consulted for overrides
        policy: Cash/bank conventions of the chart of accounts

    Returns:
        TransactionCategory; never raises, unknown pairs give OPEX
    """
    override = category_override(
        debit_code, credit_code, debit_account, credit_account, policy
    )
    if override is not None:
        return override
    return category_from_rules(debit_code, credit_code)
