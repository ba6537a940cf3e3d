"""Chart-of-accounts domain service."""

import logging
from typing import Optional

from katalis.database.base import Database
from katalis.domain.entities import Account as AccountEntity
from katalis.domain.entities import AccountType, TransactionCategory
from katalis.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_not_found,
    account_type_mismatch,
    business_not_found,
    duplicate_account_code,
    system_account_locked,
)
from katalis.domain.rules import account_type_for_code, normal_balance_for

logger = logging.getLogger(__name__)

# (code, name, default category, parent code). Parents come before children.
DEFAULT_CHART_OF_ACCOUNTS: tuple[
    tuple[str, str, Optional[TransactionCategory], Optional[str]], ...
] = (
    ("1100", "Cash & Bank", None, None),
    ("1110", "Cash", None, "1100"),
    ("1120", "Bank - BCA", None, "1100"),
    ("1121", "Bank - Mandiri", None, "1100"),
    ("1130", "E-Wallet - OVO", None, "1100"),
    ("1200", "Fixed Assets", None, None),
    ("1210", "Property - Building", TransactionCategory.CAPEX, "1200"),
    ("1220", "Furniture & Fixtures", TransactionCategory.CAPEX, "1200"),
    ("1230", "Equipment", TransactionCategory.CAPEX, "1200"),
    ("2100", "Current Liabilities", None, None),
    ("2110", "Accounts Payable", None, "2100"),
    ("2120", "Utilities Payable", None, "2100"),
    ("2200", "Long-term Liabilities", None, None),
    ("2210", "Loan Payable", TransactionCategory.FIN, "2200"),
    ("3000", "Equity", None, None),
    ("3100", "Capital", TransactionCategory.FIN, "3000"),
    ("3200", "Retained Earnings", None, "3000"),
    ("3300", "Owner Drawings", TransactionCategory.FIN, "3000"),
    ("4000", "Revenue", None, None),
    ("4100", "Rental Income", TransactionCategory.EARN, "4000"),
    ("4200", "Service Fees", TransactionCategory.EARN, "4000"),
    ("4300", "Other Income", TransactionCategory.EARN, "4000"),
    ("5100", "Operating Expenses", None, None),
    ("5110", "Utilities - Electricity", TransactionCategory.OPEX, "5100"),
    ("5111", "Utilities - Water", TransactionCategory.OPEX, "5100"),
    ("5113", "Internet & Phone", TransactionCategory.OPEX, "5100"),
    ("5120", "Property Maintenance", TransactionCategory.OPEX, "5100"),
    ("5130", "Insurance", TransactionCategory.OPEX, "5100"),
    ("5200", "Variable Costs", None, None),
    ("5210", "Cleaning Services", TransactionCategory.VAR, "5200"),
    ("5220", "Guest Amenities", TransactionCategory.VAR, "5200"),
    ("5240", "Platform Commission", TransactionCategory.VAR, "5200"),
    ("5300", "Taxes", None, None),
    ("5310", "Income Tax", TransactionCategory.TAX, "5300"),
    ("5320", "Property Tax", TransactionCategory.TAX, "5300"),
    ("5400", "Financing Costs", None, None),
    ("5410", "Interest Expense", TransactionCategory.FIN, "5400"),
)


class AccountService:
    """Service for managing the chart of accounts of a business."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_business(self, business_id: int) -> None:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

    def create_account(
        self,
        business_id: int,
        account_code: str,
        account_name: str,
        account_type: Optional[AccountType] = None,
        parent_code: Optional[str] = None,
        default_category: Optional[TransactionCategory] = None,
        sort_order: int = 0,
        description: Optional[str] = None,
        is_system: bool = False,
    ) -> int:
        """Create a chart-of-accounts entry.

        The account type follows from the code prefix (1xxx asset, 2xxx
        liability, 3xxx equity, 4xxx revenue, 5xxx expense) and the normal
        balance from the type.

        Args:
            business_id: Business ID
            account_code: Numeric account code, unique within the business
            account_name: Display name
            account_type: Optional explicit type, which must agree with the code
            parent_code: Optional code of the parent account
            default_category: Optional category override for category detection
            sort_order: Display order
            description: Optional description
            is_system: Whether the account is protected from deactivation

        Returns:
            Account ID

        Raises:
            NotFoundError: If the business or parent account doesn't exist
            ValidationError: If the code, type or parent is invalid
            ConflictError: If the code already exists in the business
        """
        self._require_business(business_id)

        account_code = account_code.strip()
        account_name = account_name.strip()
        if not account_code or not account_name:
            raise ValidationError("Account code and name are required")

        implied_type = account_type_for_code(account_code)
        if implied_type is None:
            raise ValidationError(
                f"Account code '{account_code}' must start with 1-5 "
                "(asset, liability, equity, revenue, expense)"
            )
        if account_type is not None and account_type != implied_type:
            raise ValidationError(
                account_type_mismatch(account_code, implied_type.value, account_type.value)
            )

        if self.db.get_account_by_code(business_id, account_code) is not None:
            raise ConflictError(duplicate_account_code(account_code, business_id))

        parent_id = None
        if parent_code is not None:
            parent = self.db.get_account_by_code(business_id, parent_code)
            if parent is None:
                raise NotFoundError(account_code_not_found(parent_code, business_id))
            if parent.account_type != implied_type:
                raise ValidationError(
                    f"Parent account '{parent_code}' is {parent.account_type.value}, "
                    f"but '{account_code}' is {implied_type.value}"
                )
            parent_id = parent.id

        if default_category is not None and not isinstance(default_category, TransactionCategory):
            default_category = TransactionCategory(default_category)

        account_id = self.db.create_account(
            business_id=business_id,
            account_code=account_code,
            account_name=account_name,
            account_type=implied_type,
            normal_balance=normal_balance_for(implied_type),
            parent_account_id=parent_id,
            default_category=default_category,
            is_system=is_system,
            sort_order=sort_order,
            description=description,
        )
        logger.info("Created account %s (%s) in business %s", account_code, account_name, business_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_account_by_code(self, business_id: int, account_code: str) -> AccountEntity:
        """Get account by code.

        Raises:
            NotFoundError: If no account has this code in the business
        """
        account = self.db.get_account_by_code(business_id, account_code)
        if account is None:
            raise NotFoundError(account_code_not_found(account_code, business_id))
        return account

    def list_accounts(self, business_id: int, include_inactive: bool = False) -> list[AccountEntity]:
        """List accounts of a business in display order.

        Args:
            business_id: Business ID
            include_inactive: If True, include deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(business_id, include_inactive=include_inactive)

    def update_account(
        self,
        account_id: int,
        account_name: Optional[str] = None,
        default_category: Optional[TransactionCategory] = None,
        clear_default_category: bool = False,
        description: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> None:
        """Update account name, default category, description or sort order.

        Code and type are immutable once an account exists.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the new name is blank
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if account_name is not None and not account_name.strip():
            raise ValidationError("Account name cannot be empty")

        self.db.update_account(
            account_id,
            account_name=account_name.strip() if account_name else None,
            default_category=None if clear_default_category else default_category,
            description=description,
            sort_order=sort_order,
            update_default_category=clear_default_category,
        )

    def deactivate_account(self, account_id: int) -> None:
        """Deactivate an account so it is no longer offered for new entries.

        Existing transactions keep referencing it.

        Raises:
            NotFoundError: If the account doesn't exist
            DependencyError: If the account is a system account
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.is_system:
            raise DependencyError(system_account_locked(account.account_code))

        self.db.set_account_active(account_id, False)
        logger.info("Deactivated account %s", account.account_code)

    def activate_account(self, account_id: int) -> None:
        """Re-activate a deactivated account.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.set_account_active(account_id, True)
        logger.info("Activated account %s", account.account_code)

    def seed_default_chart(self, business_id: int) -> int:
        """Create the default chart of accounts for a business.

        Accounts whose code already exists are left untouched, so seeding
        twice is harmless. Top-level accounts are created as system accounts.

        Args:
            business_id: Business ID

        Returns:
            Number of accounts created

        Raises:
            NotFoundError: If the business doesn't exist
        """
        self._require_business(business_id)

        created = 0
        for index, (code, name, category, parent_code) in enumerate(DEFAULT_CHART_OF_ACCOUNTS):
            if self.db.get_account_by_code(business_id, code) is not None:
                continue
            self.create_account(
                business_id,
                code,
                name,
                parent_code=parent_code,
                default_category=category,
                sort_order=(index + 1) * 10,
                is_system=parent_code is None,
            )
            created += 1

        logger.info("Seeded %d default accounts for business %s", created, business_id)
        return created
