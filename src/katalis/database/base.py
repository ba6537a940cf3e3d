"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from katalis.domain.entities import (
    Account,
    AccountType,
    Business,
    NormalBalance,
    Transaction,
    TransactionCategory,
)


class Database(ABC):
    """Abstract database interface for katalis."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Business operations
    @abstractmethod
    def create_business(self, name: str, capital_investment: Decimal = Decimal("0")) -> int:
        """Create a business. Returns business ID."""
        pass

    @abstractmethod
    def get_business(self, business_id: int) -> Optional[Business]:
        """Get business by ID."""
        pass

    @abstractmethod
    def get_business_by_name(self, name: str) -> Optional[Business]:
        """Get business by name."""
        pass

    @abstractmethod
    def list_businesses(self) -> list[Business]:
        """List all businesses."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        business_id: int,
        account_code: str,
        account_name: str,
        account_type: AccountType,
        normal_balance: NormalBalance,
        parent_account_id: Optional[int] = None,
        default_category: Optional[TransactionCategory] = None,
        is_system: bool = False,
        sort_order: int = 0,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, business_id: int, account_code: str) -> Optional[Account]:
        """Get account by code within a business."""
        pass

    @abstractmethod
    def list_accounts(self, business_id: int, include_inactive: bool = True) -> list[Account]:
        """List accounts of a business in display order (sort_order, code)."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        account_name: Optional[str] = None,
        default_category: Optional[TransactionCategory] = None,
        description: Optional[str] = None,
        sort_order: Optional[int] = None,
        update_default_category: bool = False,
    ) -> None:
        """Update account fields.

        Args:
            update_default_category: If True, update default_category even if
                it's None (to clear it)
        """
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count non-deleted transactions posting to an account on either side."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        business_id: int,
        date: date,
        amount: Decimal,
        name: str,
        description: str,
        category: Optional[TransactionCategory] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        account_label: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID.

        A transaction with both account ids is double-entry; otherwise
        account_label holds the legacy free-text account.
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, with its posting accounts joined."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """List transactions of a business, newest first."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[TransactionCategory] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update transaction fields."""
        pass

    @abstractmethod
    def soft_delete_transaction(self, transaction_id: int) -> None:
        """Mark a transaction as deleted."""
        pass

    @abstractmethod
    def restore_transaction(self, transaction_id: int) -> None:
        """Clear the deleted mark of a transaction."""
        pass
