"""Shared domain error messages and error types."""

from typing import Optional

from katalis.domain.entities import ValidationResult


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class TransactionValidationError(ValidationError):
    """A candidate transaction failed validation.

    Carries the full ValidationResult so callers can render each issue.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(issue.message for issue in result.errors))


def business_not_found(business: int | str) -> str:
    """Return message for missing business."""
    if isinstance(business, int):
        return f"Business {business} not found"
    return f"Business '{business}' not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing account by ID."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str, business_id: Optional[int] = None) -> str:
    """Return message for missing account by code."""
    if business_id is None:
        return f"Account '{code}' not found"
    return f"Account '{code}' not found in business {business_id}"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_account_code(code: str, business_id: int) -> str:
    """Return message for duplicate account code."""
    return f"Account code '{code}' already exists in business {business_id}"


def duplicate_business_name(name: str) -> str:
    """Return message for duplicate business name."""
    return f"Business with name '{name}' already exists"


def system_account_locked(code: str) -> str:
    """Return message when a system account would be deactivated."""
    return f"Account '{code}' is a system account and cannot be deactivated"


def account_type_mismatch(code: str, expected: str, given: str) -> str:
    """Return message when account code prefix disagrees with its type."""
    return (
        f"Account code '{code}' implies type {expected}, "
        f"but {given} was given"
    )
