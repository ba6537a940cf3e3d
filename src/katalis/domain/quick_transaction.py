"""Quick transaction resolver.

Resolves a single-account selection into a full double-entry transaction.
The user picks ONE account and the resolver determines which side it goes on,
the cash/bank counter-account and the transaction category.
"""

import logging
from typing import Optional, Sequence, Union

from katalis.domain.category import detect_category
from katalis.domain.entities import (
    Account,
    AccountType,
    QuickTransactionInput,
    ResolutionFailure,
    ResolvedTransaction,
    account_sort_key,
)
from katalis.domain.rules import DEFAULT_POLICY, CashAccountPolicy

logger = logging.getLogger(__name__)

FLOW_IN = "in"
FLOW_OUT = "out"

SELECTED_ACCOUNT_NOT_FOUND = "Selected account was not found"
NO_CASH_ACCOUNT = (
    "No active cash/bank account is configured. "
    "Create a cash or bank account first."
)
CASH_ACCOUNT_SELECTED = (
    "A cash/bank account cannot be used as the category. "
    "Use a journal entry for transfers between cash accounts."
)


def find_default_cash_account(
    accounts: Sequence[Account], policy: CashAccountPolicy = DEFAULT_POLICY
) -> Optional[Account]:
    """Find the counter-account for quick-add transactions.

    Args:
        accounts: Chart of accounts of the business
        policy: Cash/bank conventions

    Returns:
        The preferred active cash/bank account, or None if there is none
    """
    candidates = sorted(
        (
            acc
            for acc in accounts
            if acc.is_active and policy.is_counter_account(acc.account_code)
        ),
        key=account_sort_key,
    )
    for acc in candidates:
        if acc.account_code == policy.preferred_counter_code:
            return acc
    return candidates[0] if candidates else None


def is_money_out(account: Account, policy: CashAccountPolicy = DEFAULT_POLICY) -> bool:
    """True if selecting ``account`` pays money out of cash/bank."""
    if account.account_type == AccountType.EXPENSE:
        return True
    if account.account_type == AccountType.EQUITY:
        return policy.is_drawings(account.account_code)
    if account.account_type == AccountType.ASSET:
        return policy.is_fixed_asset(account.account_code)
    return False


def get_flow_direction(account: Account, policy: CashAccountPolicy = DEFAULT_POLICY) -> str:
    """Return "out" for money-out accounts and "in" otherwise."""
    return FLOW_OUT if is_money_out(account, policy) else FLOW_IN


def get_flow_label(account: Account, policy: CashAccountPolicy = DEFAULT_POLICY) -> str:
    """Human-facing hint for what selecting ``account`` records."""
    account_type = account.account_type
    if account_type == AccountType.REVENUE:
        return "Money In"
    if account_type == AccountType.EXPENSE:
        return "Money Out"
    if account_type == AccountType.LIABILITY:
        return "Receive Loan"
    if account_type == AccountType.EQUITY:
        if policy.is_drawings(account.account_code):
            return "Owner Withdrawal"
        return "Capital Injection"
    if account_type == AccountType.ASSET and policy.is_fixed_asset(account.account_code):
        return "Buy Asset"
    return "Transaction"


def get_quick_add_accounts(
    accounts: Sequence[Account], policy: CashAccountPolicy = DEFAULT_POLICY
) -> list[Account]:
    """Accounts offered in the quick-add selector.

    Active sub-accounts only, excluding cash/bank accounts since those are
    the automatic counter side.
    """
    return sorted(
        (
            acc
            for acc in accounts
            if acc.is_active
            and acc.is_sub_account
            and not policy.is_cash_or_bank(acc.account_code)
        ),
        key=account_sort_key,
    )


def resolve_quick_transaction(
    quick_input: QuickTransactionInput,
    accounts: Sequence[Account],
    policy: CashAccountPolicy = DEFAULT_POLICY,
) -> Union[ResolvedTransaction, ResolutionFailure]:
    """Derive a double-entry transaction from quick-add input.

    Args:
        quick_input: Amount, selected account and descriptive fields
        accounts: Chart of accounts of the business
        policy: Cash/bank conventions

    Returns:
        ResolvedTransaction, or ResolutionFailure when a precondition fails
    """
    selected = next(
        (acc for acc in accounts if acc.id == quick_input.selected_account_id), None
    )
    if selected is None:
        return ResolutionFailure(SELECTED_ACCOUNT_NOT_FOUND)

    cash_account = find_default_cash_account(accounts, policy)
    if cash_account is None:
        return ResolutionFailure(NO_CASH_ACCOUNT)

    if policy.is_counter_account(selected.account_code):
        return ResolutionFailure(CASH_ACCOUNT_SELECTED)

    if is_money_out(selected, policy):
        debit_account, credit_account = selected, cash_account
    else:
        debit_account, credit_account = cash_account, selected

    category = detect_category(
        debit_account.account_code,
        credit_account.account_code,
        debit_account,
        credit_account,
        policy,
    )
    logger.debug(
        "Resolved quick add on %s: debit %s, credit %s, category %s",
        selected.account_code,
        debit_account.account_code,
        credit_account.account_code,
        category.value,
    )

    return ResolvedTransaction(
        date=quick_input.date,
        category=category,
        name=quick_input.name,
        description=quick_input.notes or selected.account_name,
        amount=quick_input.amount,
        debit_account_id=debit_account.id,
        credit_account_id=credit_account.id,
        is_double_entry=True,
    )
