"""Inventory helpers.

Detects inventory accounts and stock transactions, and converts a stock
transaction to cost of goods sold once the inventory is sold. "STOCK" is a
display label derived from the debit account, not a stored category, so the
conversion only swaps the debit account.
"""

import re
from typing import Optional, Sequence

from katalis.domain.entities import (
    Account,
    AccountType,
    StockToCOGSUpdate,
    Transaction,
    TransactionCategory,
)

STOCK_LABEL = "STOCK"

INVENTORY_NAME_PATTERN = re.compile(r"inventory|persediaan|stok|barang|bahan", re.IGNORECASE)
COGS_NAME_PATTERN = re.compile(r"cogs|hpp|harga pokok|cost of|biaya pokok", re.IGNORECASE)


def is_inventory_account(account: Optional[Account]) -> bool:
    """Check if an account is an inventory/stock account."""
    if account is None or account.account_type != AccountType.ASSET:
        return False
    if account.default_category == TransactionCategory.VAR:
        return True
    return bool(INVENTORY_NAME_PATTERN.search(account.account_name or ""))


def is_stock_transaction(transaction: Transaction) -> bool:
    """Check if a transaction is an inventory purchase (VAR debiting inventory)."""
    if transaction.category != TransactionCategory.VAR:
        return False
    return is_inventory_account(transaction.debit_account)


def display_category(transaction: Transaction) -> str:
    """Category label for display, "STOCK" for inventory purchases."""
    if is_stock_transaction(transaction):
        return STOCK_LABEL
    if transaction.category is None:
        return ""
    return transaction.category.value


def get_stock_transactions(transactions: Sequence[Transaction]) -> list[Transaction]:
    """Stock transactions that have not been converted to COGS yet."""
    return [t for t in transactions if not t.is_deleted and is_stock_transaction(t)]


def get_inventory_accounts(accounts: Sequence[Account]) -> list[Account]:
    """Active inventory accounts of a chart of accounts."""
    return [acc for acc in accounts if acc.is_active and is_inventory_account(acc)]


def find_cogs_account(accounts: Sequence[Account]) -> Optional[Account]:
    """Find the best COGS/expense account for converting stock to COGS.

    Prefers an active expense sub-account named like COGS/HPP, then falls
    back to the first active expense sub-account.

    Returns:
        Account, or None if no expense sub-account is configured
    """
    expense_sub_accounts = [
        acc
        for acc in accounts
        if acc.is_active and acc.account_type == AccountType.EXPENSE and acc.is_sub_account
    ]
    for acc in expense_sub_accounts:
        if COGS_NAME_PATTERN.search(acc.account_name or ""):
            return acc
    return expense_sub_accounts[0] if expense_sub_accounts else None


def build_stock_to_cogs_update(
    stock_transaction: Transaction, cogs_account: Account
) -> StockToCOGSUpdate:
    """Build the update converting a stock transaction to COGS.

    Only the debit account changes; amount, date, credit account and the
    stored category stay as they are.
    """
    return StockToCOGSUpdate(
        transaction_id=stock_transaction.id,
        new_debit_account_id=cogs_account.id,
    )
