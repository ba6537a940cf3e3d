"""Domain layer for katalis application.

Only the pure bookkeeping engine is re-exported here. The services import
the database interface and are imported from their own modules.
"""

from katalis.domain.category import detect_category
from katalis.domain.inventory import (
    build_stock_to_cogs_update,
    find_cogs_account,
    is_inventory_account,
)
from katalis.domain.quick_transaction import resolve_quick_transaction
from katalis.domain.rules import CashAccountPolicy
from katalis.domain.validation import TransactionValidator

__all__ = [
    "detect_category",
    "build_stock_to_cogs_update",
    "find_cogs_account",
    "is_inventory_account",
    "resolve_quick_transaction",
    "CashAccountPolicy",
    "TransactionValidator",
]
