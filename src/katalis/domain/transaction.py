"""Transaction domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from katalis.database.base import Database
from katalis.domain.category import detect_category
from katalis.domain.entities import (
    Account,
    DoubleEntryPosting,
    MatchingPrincipleWarning,
    QuickTransactionInput,
    ResolutionFailure,
    StockToCOGSUpdate,
    Transaction as TransactionEntity,
    TransactionCategory,
    ValidationCandidate,
    ValidationResult,
)
from katalis.domain.errors import (
    ConflictError,
    NotFoundError,
    TransactionValidationError,
    ValidationError,
    account_not_found,
    business_not_found,
    transaction_not_found,
)
from katalis.domain.guidance import detect_matching_principle_warning
from katalis.domain.inventory import (
    build_stock_to_cogs_update,
    find_cogs_account,
    is_stock_transaction,
)
from katalis.domain.quick_transaction import resolve_quick_transaction
from katalis.domain.rules import DEFAULT_POLICY, CashAccountPolicy
from katalis.domain.validation import TransactionValidator

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for recording and maintaining transactions."""

    def __init__(
        self,
        db: Database,
        validator: Optional[TransactionValidator] = None,
        policy: CashAccountPolicy = DEFAULT_POLICY,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            validator: Validator for new and edited transactions
            policy: Cash/bank conventions of the chart of accounts
        """
        self.db = db
        self.policy = policy
        self.validator = validator or TransactionValidator(policy=policy)

    def _require_business(self, business_id: int) -> None:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

    def _require_transaction(self, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def _business_account(self, business_id: int, account_id: Optional[int]) -> Optional[Account]:
        """Look up an account, treating accounts of other businesses as missing."""
        if account_id is None:
            return None
        account = self.db.get_account(account_id)
        if account is None or account.business_id != business_id:
            return None
        return account

    def validate_double_entry(
        self,
        business_id: int,
        debit_account_id: Optional[int],
        credit_account_id: Optional[int],
        amount: Optional[Decimal],
        txn_date: Optional[date],
        name: Optional[str],
        description: Optional[str],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Validate a double-entry candidate without saving it."""
        candidate = ValidationCandidate(
            amount=amount,
            date=txn_date,
            name=name,
            description=description,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            debit_account=self._business_account(business_id, debit_account_id),
            credit_account=self._business_account(business_id, credit_account_id),
        )
        return self.validator.validate(candidate, today=today)

    def create_double_entry(
        self,
        business_id: int,
        debit_account_id: int,
        credit_account_id: int,
        amount: Decimal,
        txn_date: date,
        name: str,
        description: str,
        category: Optional[TransactionCategory] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Record a double-entry transaction.

        Args:
            business_id: Business ID
            debit_account_id: Account debited
            credit_account_id: Account credited
            amount: Positive amount
            txn_date: Transaction date
            name: Short name, e.g. the counterparty
            description: Description of the transaction
            category: Reporting category; detected from the accounts when None
            notes: Optional notes
            created_by: Optional author
            today: Reference date for the future-date rule

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the business doesn't exist
            TransactionValidationError: If the transaction fails validation
        """
        self._require_business(business_id)

        result = self.validate_double_entry(
            business_id,
            debit_account_id,
            credit_account_id,
            amount,
            txn_date,
            name,
            description,
            today=today,
        )
        if not result.is_valid:
            raise TransactionValidationError(result)
        for warning in result.warnings:
            logger.warning("%s: %s", warning.code, warning.message)

        if category is None:
            debit = self.db.get_account(debit_account_id)
            credit = self.db.get_account(credit_account_id)
            category = detect_category(
                debit.account_code, credit.account_code, debit, credit, self.policy
            )

        transaction_id = self.db.create_transaction(
            business_id=business_id,
            date=txn_date,
            amount=Decimal(amount),
            name=name.strip(),
            description=description.strip(),
            category=category,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            notes=notes,
            created_by=created_by,
        )
        logger.info(
            "Created transaction %s in business %s: %s %s",
            transaction_id,
            business_id,
            category.value,
            amount,
        )
        return transaction_id

    def create_legacy(
        self,
        business_id: int,
        account_label: str,
        amount: Decimal,
        txn_date: date,
        name: str,
        description: str,
        category: TransactionCategory,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Record a single-entry transaction with a free-text account.

        Legacy transactions carry an explicit category since there are no
        accounts to detect it from.

        Raises:
            NotFoundError: If the business doesn't exist
            TransactionValidationError: If the transaction fails validation
        """
        self._require_business(business_id)

        candidate = ValidationCandidate(
            amount=amount,
            date=txn_date,
            name=name,
            description=description,
            account_label=account_label,
            is_double_entry=False,
        )
        result = self.validator.validate(candidate, today=today)
        if not result.is_valid:
            raise TransactionValidationError(result)

        transaction_id = self.db.create_transaction(
            business_id=business_id,
            date=txn_date,
            amount=Decimal(amount),
            name=name.strip(),
            description=description.strip(),
            category=category,
            account_label=account_label.strip(),
            notes=notes,
            created_by=created_by,
        )
        logger.info("Created legacy transaction %s in business %s", transaction_id, business_id)
        return transaction_id

    def quick_add(
        self,
        business_id: int,
        account_id: int,
        amount: Decimal,
        name: str,
        txn_date: date,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Record a transaction from a single selected account.

        The cash/bank counter-account, the posting sides and the category are
        resolved automatically.

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the business doesn't exist
            ValidationError: If the selection cannot be resolved
            TransactionValidationError: If the resolved transaction is invalid
        """
        self._require_business(business_id)
        accounts = self.db.list_accounts(business_id, include_inactive=True)

        resolved = resolve_quick_transaction(
            QuickTransactionInput(
                amount=amount,
                selected_account_id=account_id,
                name=name,
                date=txn_date,
                notes=notes,
            ),
            accounts,
            self.policy,
        )
        if isinstance(resolved, ResolutionFailure):
            raise ValidationError(resolved.error)

        return self.create_double_entry(
            business_id=business_id,
            debit_account_id=resolved.debit_account_id,
            credit_account_id=resolved.credit_account_id,
            amount=resolved.amount,
            txn_date=resolved.date,
            name=resolved.name,
            description=resolved.description,
            category=resolved.category,
            notes=notes,
            created_by=created_by,
            today=today,
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_deleted: bool = False,
    ) -> list[TransactionEntity]:
        """List transactions of a business, newest first.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        self._require_business(business_id)
        return self.db.list_transactions(
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            include_deleted=include_deleted,
        )

    def update_transaction(
        self,
        transaction_id: int,
        txn_date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[TransactionCategory] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> None:
        """Update transaction fields.

        The merged transaction is validated again. When an account of a
        double-entry transaction changes and no category is given, the
        category is detected again.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValidationError: If accounts are changed on a legacy transaction
            TransactionValidationError: If the updated transaction is invalid
        """
        txn = self._require_transaction(transaction_id)
        accounts_changed = debit_account_id is not None or credit_account_id is not None

        if isinstance(txn.posting, DoubleEntryPosting):
            new_debit = debit_account_id or txn.posting.debit_account_id
            new_credit = credit_account_id or txn.posting.credit_account_id
            result = self.validate_double_entry(
                txn.business_id,
                new_debit,
                new_credit,
                amount if amount is not None else txn.amount,
                txn_date or txn.date,
                name if name is not None else txn.name,
                description if description is not None else txn.description,
                today=today,
            )
            if not result.is_valid:
                raise TransactionValidationError(result)

            if accounts_changed and category is None:
                debit = self.db.get_account(new_debit)
                credit = self.db.get_account(new_credit)
                category = detect_category(
                    debit.account_code, credit.account_code, debit, credit, self.policy
                )
        else:
            if accounts_changed:
                raise ValidationError("Accounts cannot be set on a legacy transaction")
            candidate = ValidationCandidate(
                amount=amount if amount is not None else txn.amount,
                date=txn_date or txn.date,
                name=name if name is not None else txn.name,
                description=description if description is not None else txn.description,
                account_label=txn.posting.account_label,
                is_double_entry=False,
            )
            result = self.validator.validate(candidate, today=today)
            if not result.is_valid:
                raise TransactionValidationError(result)

        self.db.update_transaction(
            transaction_id,
            date=txn_date,
            amount=amount,
            name=name,
            description=description,
            category=category,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            notes=notes,
        )
        logger.info("Updated transaction %s", transaction_id)

    def delete_transaction(self, transaction_id: int) -> None:
        """Soft delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction is already deleted
        """
        txn = self._require_transaction(transaction_id)
        if txn.is_deleted:
            raise ConflictError(f"Transaction {transaction_id} is already deleted")
        self.db.soft_delete_transaction(transaction_id)
        logger.info("Deleted transaction %s", transaction_id)

    def restore_transaction(self, transaction_id: int) -> None:
        """Restore a soft-deleted transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction is not deleted
        """
        txn = self._require_transaction(transaction_id)
        if not txn.is_deleted:
            raise ConflictError(f"Transaction {transaction_id} is not deleted")
        self.db.restore_transaction(transaction_id)
        logger.info("Restored transaction %s", transaction_id)

    def reclassify_stock_to_cogs(
        self, transaction_id: int, cogs_account_id: Optional[int] = None
    ) -> StockToCOGSUpdate:
        """Move a sold stock purchase from inventory to cost of goods sold.

        Only the debit account changes.

        Args:
            transaction_id: Stock transaction ID
            cogs_account_id: Target expense account; found automatically when None

        Returns:
            The applied StockToCOGSUpdate

        Raises:
            NotFoundError: If the transaction or a COGS account cannot be found
            ValidationError: If the transaction is not a stock transaction
        """
        txn = self._require_transaction(transaction_id)
        if txn.is_deleted or not is_stock_transaction(txn):
            raise ValidationError(
                f"Transaction {transaction_id} is not an inventory purchase"
            )

        if cogs_account_id is not None:
            cogs_account = self._business_account(txn.business_id, cogs_account_id)
            if cogs_account is None:
                raise NotFoundError(account_not_found(cogs_account_id))
        else:
            cogs_account = find_cogs_account(self.db.list_accounts(txn.business_id))
            if cogs_account is None:
                raise NotFoundError(
                    "No expense sub-account found for cost of goods sold. "
                    "Create one (e.g. 'COGS') first."
                )

        update = build_stock_to_cogs_update(txn, cogs_account)
        self.db.update_transaction(
            update.transaction_id, debit_account_id=update.new_debit_account_id
        )
        logger.info(
            "Reclassified transaction %s from %s to %s",
            transaction_id,
            txn.debit_account.account_code,
            cogs_account.account_code,
        )
        return update

    def matching_principle_warning(
        self, transaction_id: int
    ) -> Optional[MatchingPrincipleWarning]:
        """Check whether a sale needs a matching COGS entry.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        txn = self._require_transaction(transaction_id)
        accounts = self.db.list_accounts(txn.business_id)
        return detect_matching_principle_warning(txn, accounts)
