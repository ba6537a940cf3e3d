"""Mapper functions to convert SQLAlchemy models into domain entities.

Posting accounts are joined here, so the engine receives transactions
with their debit and credit accounts already resolved.
"""

from decimal import Decimal
from typing import Optional

from katalis.domain import entities as domain
from katalis.database.models import (
    Account as ORMAccount,
    Business as ORMBusiness,
    Transaction as ORMTransaction,
)


def business_to_domain(orm_business: ORMBusiness) -> domain.Business:
    """Convert SQLAlchemy Business model to domain Business entity."""
    return domain.Business(
        id=orm_business.id,
        name=orm_business.name,
        capital_investment=Decimal(orm_business.capital_investment or 0),
        created_at=orm_business.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    default_category = orm_account.default_category
    return domain.Account(
        id=orm_account.id,
        business_id=orm_account.business_id,
        account_code=orm_account.account_code,
        account_name=orm_account.account_name,
        account_type=domain.AccountType(orm_account.account_type),
        normal_balance=domain.NormalBalance(orm_account.normal_balance),
        parent_account_id=orm_account.parent_account_id,
        default_category=(
            domain.TransactionCategory(default_category) if default_category else None
        ),
        is_system=orm_account.is_system,
        is_active=orm_account.is_active,
        sort_order=orm_account.sort_order,
        description=orm_account.description,
        created_at=orm_account.created_at,
    )


def _optional_account(orm_account: Optional[ORMAccount]) -> Optional[domain.Account]:
    return account_to_domain(orm_account) if orm_account is not None else None


def posting_to_domain(orm_transaction: ORMTransaction) -> domain.Posting:
    """Build the tagged posting of a transaction row."""
    if (
        orm_transaction.is_double_entry
        and orm_transaction.debit_account_id is not None
        and orm_transaction.credit_account_id is not None
    ):
        return domain.DoubleEntryPosting(
            debit_account_id=orm_transaction.debit_account_id,
            credit_account_id=orm_transaction.credit_account_id,
            debit_account=_optional_account(orm_transaction.debit_account),
            credit_account=_optional_account(orm_transaction.credit_account),
        )
    return domain.LegacyPosting(account_label=orm_transaction.account_label or "")


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    category = orm_transaction.category
    return domain.Transaction(
        id=orm_transaction.id,
        business_id=orm_transaction.business_id,
        date=orm_transaction.date,
        category=domain.TransactionCategory(category) if category else None,
        name=orm_transaction.name,
        description=orm_transaction.description,
        amount=Decimal(orm_transaction.amount),
        posting=posting_to_domain(orm_transaction),
        notes=orm_transaction.notes,
        created_by=orm_transaction.created_by,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        deleted_at=orm_transaction.deleted_at,
    )
