"""Shared pytest fixtures for katalis tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from katalis.database.factories import create_sqlite_database
from katalis.domain.account import AccountService
from katalis.domain.business import BusinessService
from katalis.domain.entities import (
    Account,
    DoubleEntryPosting,
    LegacyPosting,
    Transaction,
    TransactionCategory,
)
from katalis.domain.reports import ReportService
from katalis.domain.rules import account_type_for_code, normal_balance_for
from katalis.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def business_service(temp_db):
    """Create a BusinessService with a temporary database."""
    return BusinessService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def sample_business(business_service, account_service):
    """Create a business with the default chart of accounts."""
    business_id = business_service.create_business(
        name="Villa Ubud", capital_investment=Decimal("350000000")
    )
    account_service.seed_default_chart(business_id)
    return business_service.get_business(business_id)


@pytest.fixture
def chart(sample_business, account_service):
    """Accounts of the sample business keyed by code."""
    return {
        acc.account_code: acc
        for acc in account_service.list_accounts(sample_business.id, include_inactive=True)
    }


@pytest.fixture
def make_account():
    """Build Account entities; the id defaults to the numeric code."""

    def _make(
        code: str,
        name: str = "",
        default_category=None,
        parent_account_id=None,
        is_active: bool = True,
        sort_order: int = 0,
        account_id=None,
        business_id: int = 1,
    ) -> Account:
        account_type = account_type_for_code(code)
        if parent_account_id is None and not code.endswith("00"):
            parent_account_id = int(code[:2] + "00")
        return Account(
            id=account_id if account_id is not None else int(code),
            business_id=business_id,
            account_code=code,
            account_name=name or f"Account {code}",
            account_type=account_type,
            normal_balance=normal_balance_for(account_type),
            parent_account_id=parent_account_id,
            default_category=default_category,
            is_active=is_active,
            sort_order=sort_order,
        )

    return _make


@pytest.fixture
def make_transaction():
    """Build double-entry Transaction entities from two Accounts."""
    counter = {"next_id": 1}

    def _make(
        debit: Account,
        credit: Account,
        amount,
        category: TransactionCategory = TransactionCategory.OPEX,
        txn_date: date = date(2024, 1, 15),
        deleted: bool = False,
        name: str = "Test",
        transaction_id=None,
    ) -> Transaction:
        if transaction_id is None:
            transaction_id = counter["next_id"]
            counter["next_id"] += 1
        return Transaction(
            id=transaction_id,
            business_id=1,
            date=txn_date,
            category=category,
            name=name,
            description=name,
            amount=Decimal(amount),
            posting=DoubleEntryPosting(
                debit_account_id=debit.id,
                credit_account_id=credit.id,
                debit_account=debit,
                credit_account=credit,
            ),
            deleted_at=date(2024, 2, 1) if deleted else None,
        )

    return _make


@pytest.fixture
def make_legacy_transaction():
    """Build single-entry Transaction entities with a free-text account."""
    counter = {"next_id": 1000}

    def _make(
        category: TransactionCategory,
        amount,
        txn_date: date = date(2024, 1, 15),
        label: str = "BCA",
    ) -> Transaction:
        transaction_id = counter["next_id"]
        counter["next_id"] += 1
        return Transaction(
            id=transaction_id,
            business_id=1,
            date=txn_date,
            category=category,
            name="Legacy",
            description="Legacy",
            amount=Decimal(amount),
            posting=LegacyPosting(account_label=label),
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
