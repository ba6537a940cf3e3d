"""Transaction validator.

Validates prospective transactions against double-entry bookkeeping rules.
Problems are returned as data in a ValidationResult, never raised, so a form
can render them inline while the user is still typing.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.relativedelta import relativedelta

from katalis.domain.entities import (
    Account,
    AccountType,
    ValidationCandidate,
    ValidationIssue,
    ValidationResult,
)
from katalis.domain.rules import (
    ACCOUNT_TYPE_LABELS,
    DEFAULT_POLICY,
    MAX_TRANSACTION_AMOUNT,
    CashAccountPolicy,
    is_valid_combination,
)
from katalis.utils.date_parser import parse_date

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

INVALID_AMOUNT = "INVALID_AMOUNT"
MISSING_ACCOUNT = "MISSING_ACCOUNT"
SAME_ACCOUNT = "SAME_ACCOUNT"
ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
INVALID_DATE = "INVALID_DATE"
REQUIRED_FIELD = "REQUIRED_FIELD"

INACTIVE_ACCOUNT = "INACTIVE_ACCOUNT"
LARGE_AMOUNT = "LARGE_AMOUNT"
UNUSUAL_REVENUE_DEBIT = "UNUSUAL_REVENUE_DEBIT"
UNUSUAL_EXPENSE_CREDIT = "UNUSUAL_EXPENSE_CREDIT"
UNUSUAL_COMBINATION = "UNUSUAL_COMBINATION"

ERROR_MESSAGES = {
    INVALID_AMOUNT: "Transaction amount must be greater than 0",
    SAME_ACCOUNT: (
        "Debit and credit accounts must be different. "
        "A transaction needs at least two distinct accounts."
    ),
    ACCOUNT_NOT_FOUND: "Account not found. Make sure the selected account still exists.",
    "MISSING_DEBIT_ACCOUNT": "A debit account must be selected",
    "MISSING_CREDIT_ACCOUNT": "A credit account must be selected",
    INVALID_DATE: "Transaction date is not a valid date",
}

WARNING_MESSAGES = {
    UNUSUAL_REVENUE_DEBIT: (
        "Debiting a revenue account reduces revenue. This is usually a sales "
        "return or correction."
    ),
    UNUSUAL_EXPENSE_CREDIT: (
        "Crediting an expense account reduces expenses. This is usually a "
        "reimbursement or correction."
    ),
}

DEFAULT_LARGE_AMOUNT_FACTOR = 10


def _error(field: str, code: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, code=code, message=message, severity=SEVERITY_ERROR)


def _warning(field: str, code: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, code=code, message=message, severity=SEVERITY_WARNING)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class TransactionValidator:
    """Validator for candidate transactions."""

    def __init__(
        self,
        policy: CashAccountPolicy = DEFAULT_POLICY,
        max_future: relativedelta = relativedelta(years=1),
        typical_amount: Optional[Decimal] = None,
        large_amount_factor: int = DEFAULT_LARGE_AMOUNT_FACTOR,
        max_amount: Decimal = MAX_TRANSACTION_AMOUNT,
    ):
        """Initialize validator.

        Args:
            policy: Cash/bank conventions of the chart of accounts
            max_future: How far past today a transaction date may lie
            typical_amount: Typical transaction size of the business, used
                for the large-amount warning (no warning when None)
            large_amount_factor: Multiple of typical_amount that triggers
                the warning
            max_amount: Largest accepted amount
        """
        self.policy = policy
        self.max_future = max_future
        self.typical_amount = typical_amount
        self.large_amount_factor = large_amount_factor
        self.max_amount = max_amount

    def validate(
        self, candidate: ValidationCandidate, today: Optional[date] = None
    ) -> ValidationResult:
        """Validate a candidate transaction.

        A double-entry candidate with neither account selected yet is
        trivially valid, so live form feedback starts only once the user
        picks an account.

        Args:
            candidate: Transaction being entered
            today: Reference date for the future-date rule

        Returns:
            ValidationResult with errors and warnings
        """
        if (
            candidate.is_double_entry
            and candidate.debit_account_id is None
            and candidate.credit_account_id is None
        ):
            return ValidationResult()

        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        amount = self._check_amount(candidate.amount, errors)
        if amount is not None:
            warnings.extend(self._amount_warnings(amount))

        if candidate.is_double_entry:
            self._check_accounts(candidate, errors, warnings)
        elif _is_blank(candidate.account_label):
            errors.append(_error("account", REQUIRED_FIELD, "Account is required"))

        self._check_date(candidate.date, today or date.today(), errors)

        if _is_blank(candidate.name):
            errors.append(_error("name", REQUIRED_FIELD, "Name is required"))
        if _is_blank(candidate.description):
            errors.append(_error("description", REQUIRED_FIELD, "Description is required"))

        return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))

    def validate_account_ids(
        self, debit_account_id: Optional[int], credit_account_id: Optional[int]
    ) -> ValidationResult:
        """Quick check of the selected account ids only."""
        errors: list[ValidationIssue] = []
        if debit_account_id is None:
            errors.append(
                _error(
                    "debit_account_id",
                    MISSING_ACCOUNT,
                    ERROR_MESSAGES["MISSING_DEBIT_ACCOUNT"],
                )
            )
        if credit_account_id is None:
            errors.append(
                _error(
                    "credit_account_id",
                    MISSING_ACCOUNT,
                    ERROR_MESSAGES["MISSING_CREDIT_ACCOUNT"],
                )
            )
        if debit_account_id is not None and debit_account_id == credit_account_id:
            errors.append(_error("debit_account_id", SAME_ACCOUNT, ERROR_MESSAGES[SAME_ACCOUNT]))
        return ValidationResult(errors=tuple(errors))

    def _check_amount(
        self, raw_amount: Optional[Decimal], errors: list[ValidationIssue]
    ) -> Optional[Decimal]:
        try:
            amount = Decimal(raw_amount) if raw_amount is not None else None
        except (InvalidOperation, TypeError, ValueError):
            amount = None

        if amount is None or not amount.is_finite() or amount <= 0:
            errors.append(_error("amount", INVALID_AMOUNT, ERROR_MESSAGES[INVALID_AMOUNT]))
            return None
        if amount > self.max_amount:
            errors.append(
                _error(
                    "amount",
                    INVALID_AMOUNT,
                    f"Transaction amount cannot exceed {self.max_amount:,}",
                )
            )
            return None
        return amount

    def _amount_warnings(self, amount: Decimal) -> list[ValidationIssue]:
        if not self.typical_amount or self.typical_amount <= 0:
            return []
        if amount > self.typical_amount * self.large_amount_factor:
            return [
                _warning(
                    "amount",
                    LARGE_AMOUNT,
                    f"Amount {amount:,} is unusually large compared to the typical "
                    f"transaction of {self.typical_amount:,}. Please double-check it.",
                )
            ]
        return []

    def _check_accounts(
        self,
        candidate: ValidationCandidate,
        errors: list[ValidationIssue],
        warnings: list[ValidationIssue],
    ) -> None:
        debit_id = candidate.debit_account_id
        credit_id = candidate.credit_account_id

        if debit_id is None or credit_id is None:
            errors.extend(self.validate_account_ids(debit_id, credit_id).errors)
            return

        if debit_id == credit_id:
            errors.append(_error("debit_account_id", SAME_ACCOUNT, ERROR_MESSAGES[SAME_ACCOUNT]))

        debit = candidate.debit_account
        credit = candidate.credit_account
        for field, account in (("debit_account_id", debit), ("credit_account_id", credit)):
            if account is None:
                errors.append(_error(field, ACCOUNT_NOT_FOUND, ERROR_MESSAGES[ACCOUNT_NOT_FOUND]))
            elif not account.is_active:
                warnings.append(
                    _warning(
                        field,
                        INACTIVE_ACCOUNT,
                        f"Account {account.display_name} is inactive",
                    )
                )

        if debit is not None and credit is not None and debit_id != credit_id:
            warnings.extend(self._usage_warnings(debit, credit))

    def _usage_warnings(self, debit: Account, credit: Account) -> list[ValidationIssue]:
        warnings = []
        if not is_valid_combination(debit.account_type, credit.account_type):
            warnings.append(
                _warning(
                    "debit_account_id",
                    UNUSUAL_COMBINATION,
                    f"Unusual combination: debit {debit.account_name} "
                    f"({ACCOUNT_TYPE_LABELS[debit.account_type]}) with credit "
                    f"{credit.account_name} ({ACCOUNT_TYPE_LABELS[credit.account_type]}). "
                    "Check the kind of transaction you are recording.",
                )
            )
        if debit.account_type == AccountType.REVENUE:
            warnings.append(
                _warning(
                    "debit_account_id",
                    UNUSUAL_REVENUE_DEBIT,
                    WARNING_MESSAGES[UNUSUAL_REVENUE_DEBIT],
                )
            )
        if credit.account_type == AccountType.EXPENSE:
            warnings.append(
                _warning(
                    "credit_account_id",
                    UNUSUAL_EXPENSE_CREDIT,
                    WARNING_MESSAGES[UNUSUAL_EXPENSE_CREDIT],
                )
            )
        return warnings

    def _check_date(self, raw_date, today: date, errors: list[ValidationIssue]) -> None:
        try:
            txn_date = parse_date(raw_date, today=today)
        except (ValueError, TypeError):
            errors.append(_error("date", INVALID_DATE, ERROR_MESSAGES[INVALID_DATE]))
            return

        if txn_date > today + self.max_future:
            errors.append(
                _error(
                    "date",
                    INVALID_DATE,
                    f"Transaction date cannot be later than {today + self.max_future}",
                )
            )
