"""Tests for transaction service."""

from datetime import date
from decimal import Decimal

import pytest

from katalis.domain.entities import (
    DoubleEntryPosting,
    LegacyPosting,
    TransactionCategory,
)
from katalis.domain.errors import (
    ConflictError,
    NotFoundError,
    TransactionValidationError,
    ValidationError,
)
from katalis.domain.validation import INVALID_AMOUNT, SAME_ACCOUNT

TODAY = date(2024, 6, 30)


def _journal(service, business, debit, credit, amount="1000000", **kwargs):
    fields = dict(
        business_id=business.id,
        debit_account_id=debit.id,
        credit_account_id=credit.id,
        amount=Decimal(amount),
        txn_date=date(2024, 6, 1),
        name="Entry",
        description="Entry",
        today=TODAY,
    )
    fields.update(kwargs)
    return service.create_double_entry(**fields)


class TestDoubleEntry:
    """Tests for journal entries."""

    def test_create_detects_category(self, transaction_service, sample_business, chart):
        """Test that the category follows from the accounts."""
        txn_id = _journal(transaction_service, sample_business, chart["1120"], chart["4100"])

        txn = transaction_service.get_transaction(txn_id)
        assert txn.category == TransactionCategory.EARN
        assert txn.amount == Decimal("1000000")
        assert isinstance(txn.posting, DoubleEntryPosting)
        assert txn.debit_account.account_code == "1120"
        assert txn.credit_account.account_code == "4100"
        assert txn.created_at is not None

    def test_explicit_category_wins(self, transaction_service, sample_business, chart):
        """Test that a given category is stored as is."""
        txn_id = _journal(
            transaction_service,
            sample_business,
            chart["5110"],
            chart["1120"],
            category=TransactionCategory.VAR,
        )

        assert transaction_service.get_transaction(txn_id).category == TransactionCategory.VAR

    def test_invalid_amount(self, transaction_service, sample_business, chart):
        """Test that validation errors are raised with the full result."""
        with pytest.raises(TransactionValidationError) as excinfo:
            _journal(transaction_service, sample_business, chart["5110"], chart["1120"], amount="0")

        assert excinfo.value.result.error_codes() == [INVALID_AMOUNT]
        assert transaction_service.list_transactions(sample_business.id) == []

    def test_same_account(self, transaction_service, sample_business, chart):
        """Test debit and credit on one account."""
        with pytest.raises(TransactionValidationError) as excinfo:
            _journal(transaction_service, sample_business, chart["1120"], chart["1120"])

        assert SAME_ACCOUNT in excinfo.value.result.error_codes()

    def test_account_of_other_business(
        self, transaction_service, business_service, account_service, sample_business, chart
    ):
        """Test that accounts of another business are treated as missing."""
        other_id = business_service.create_business("Villa Canggu")
        foreign_id = account_service.create_account(other_id, "4100", "Rent")
        foreign = account_service.get_account(foreign_id)

        with pytest.raises(TransactionValidationError, match="Account not found"):
            _journal(transaction_service, sample_business, chart["1120"], foreign)

    def test_unknown_business(self, transaction_service, chart):
        """Test recording for a business that does not exist."""
        with pytest.raises(NotFoundError):
            transaction_service.create_double_entry(
                999, chart["1120"].id, chart["4100"].id, Decimal("1"), TODAY, "x", "x"
            )

    def test_warnings_do_not_block(self, transaction_service, sample_business, chart, caplog):
        """Test that a sales return is recorded and the warning logged."""
        txn_id = _journal(transaction_service, sample_business, chart["4100"], chart["1120"])

        assert transaction_service.get_transaction(txn_id) is not None
        assert "UNUSUAL_REVENUE_DEBIT" in caplog.text


class TestLegacyAndQuickAdd:
    """Tests for legacy entries and quick add."""

    def test_create_legacy(self, transaction_service, sample_business):
        """Test a single-entry transaction."""
        txn_id = transaction_service.create_legacy(
            sample_business.id,
            account_label="BCA",
            amount=Decimal("2000000"),
            txn_date=date(2024, 6, 1),
            name="Guest B",
            description="Guest B",
            category=TransactionCategory.EARN,
            today=TODAY,
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.posting == LegacyPosting(account_label="BCA")
        assert not txn.is_double_entry
        assert txn.debit_account is None

    def test_legacy_requires_label(self, transaction_service, sample_business):
        """Test that the free-text account is required."""
        with pytest.raises(TransactionValidationError):
            transaction_service.create_legacy(
                sample_business.id, " ", Decimal("1"), TODAY, "x", "x", TransactionCategory.OPEX
            )

    def test_quick_add_expense(self, transaction_service, sample_business, chart):
        """Test paying electricity from the preferred bank."""
        txn_id = transaction_service.quick_add(
            sample_business.id,
            chart["5110"].id,
            Decimal("500000"),
            "PLN",
            date(2024, 6, 3),
            today=TODAY,
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.debit_account.account_code == "5110"
        assert txn.credit_account.account_code == "1120"
        assert txn.category == TransactionCategory.OPEX
        assert txn.description == "Utilities - Electricity"

    def test_quick_add_revenue(self, transaction_service, sample_business, chart):
        """Test receiving rent."""
        txn_id = transaction_service.quick_add(
            sample_business.id,
            chart["4100"].id,
            Decimal("1500000"),
            "Guest A",
            date(2024, 6, 3),
            notes="Two nights",
            today=TODAY,
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.debit_account.account_code == "1120"
        assert txn.credit_account.account_code == "4100"
        assert txn.category == TransactionCategory.EARN
        assert txn.description == "Two nights"
        assert txn.notes == "Two nights"

    def test_quick_add_cash_account_rejected(self, transaction_service, sample_business, chart):
        """Test that a cash account cannot be the selection."""
        with pytest.raises(ValidationError, match="cash/bank account cannot"):
            transaction_service.quick_add(
                sample_business.id, chart["1110"].id, Decimal("1"), "x", TODAY, today=TODAY
            )

    def test_quick_add_without_cash_accounts(
        self, transaction_service, business_service, account_service
    ):
        """Test a chart without any cash/bank account."""
        business_id = business_service.create_business("Bare")
        account_id = account_service.create_account(business_id, "5110", "Electricity")

        with pytest.raises(ValidationError, match="No active cash/bank account"):
            transaction_service.quick_add(
                business_id, account_id, Decimal("1"), "x", TODAY, today=TODAY
            )


class TestMaintenance:
    """Tests for listing, updating and deleting transactions."""

    def test_list_with_date_range(self, transaction_service, sample_business, chart):
        """Test inclusive date filtering, newest first."""
        for day in (1, 15, 30):
            _journal(
                transaction_service,
                sample_business,
                chart["1120"],
                chart["4100"],
                txn_date=date(2024, 6, day),
            )

        txns = transaction_service.list_transactions(
            sample_business.id, start_date=date(2024, 6, 15), end_date=date(2024, 6, 30)
        )

        assert [t.date for t in txns] == [date(2024, 6, 30), date(2024, 6, 15)]

    def test_update_amount(self, transaction_service, sample_business, chart):
        """Test changing the amount."""
        txn_id = _journal(transaction_service, sample_business, chart["1120"], chart["4100"])

        transaction_service.update_transaction(txn_id, amount=Decimal("750000"), today=TODAY)

        assert transaction_service.get_transaction(txn_id).amount == Decimal("750000")

    def test_update_accounts_redetects_category(self, transaction_service, sample_business, chart):
        """Test that changing an account updates the category."""
        txn_id = _journal(transaction_service, sample_business, chart["5110"], chart["1120"])

        transaction_service.update_transaction(
            txn_id, debit_account_id=chart["5210"].id, today=TODAY
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.debit_account.account_code == "5210"
        assert txn.category == TransactionCategory.VAR

    def test_update_is_validated(self, transaction_service, sample_business, chart):
        """Test that an update producing the same account on both sides fails."""
        txn_id = _journal(transaction_service, sample_business, chart["5110"], chart["1120"])

        with pytest.raises(TransactionValidationError):
            transaction_service.update_transaction(
                txn_id, debit_account_id=chart["1120"].id, today=TODAY
            )

    def test_update_legacy_accounts_rejected(self, transaction_service, sample_business, chart):
        """Test that accounts cannot be attached to a legacy transaction."""
        txn_id = transaction_service.create_legacy(
            sample_business.id, "BCA", Decimal("1"), TODAY, "x", "x", TransactionCategory.OPEX
        )

        with pytest.raises(ValidationError, match="legacy"):
            transaction_service.update_transaction(txn_id, debit_account_id=chart["5110"].id)

    def test_delete_and_restore(self, transaction_service, sample_business, chart):
        """Test soft delete and restore."""
        txn_id = _journal(transaction_service, sample_business, chart["1120"], chart["4100"])

        transaction_service.delete_transaction(txn_id)
        assert transaction_service.list_transactions(sample_business.id) == []
        deleted = transaction_service.list_transactions(sample_business.id, include_deleted=True)
        assert deleted[0].is_deleted

        with pytest.raises(ConflictError):
            transaction_service.delete_transaction(txn_id)

        transaction_service.restore_transaction(txn_id)
        assert not transaction_service.get_transaction(txn_id).is_deleted
        with pytest.raises(ConflictError):
            transaction_service.restore_transaction(txn_id)

    def test_delete_missing(self, transaction_service):
        """Test deleting an unknown transaction."""
        with pytest.raises(NotFoundError, match="Transaction 42 not found"):
            transaction_service.delete_transaction(42)


class TestInventoryFlow:
    """Tests for stock purchases, COGS conversion and the matching principle."""

    @pytest.fixture
    def inventory_chart(self, account_service, sample_business, chart):
        inventory_id = account_service.create_account(
            sample_business.id, "1300", "Inventory", default_category=TransactionCategory.VAR
        )
        cogs_id = account_service.create_account(
            sample_business.id, "5250", "COGS", parent_code="5200"
        )
        return {
            **chart,
            "1300": account_service.get_account(inventory_id),
            "5250": account_service.get_account(cogs_id),
        }

    def test_reclassify_stock_to_cogs(self, transaction_service, sample_business, inventory_chart):
        """Test moving a sold purchase from inventory to COGS."""
        txn_id = _journal(
            transaction_service, sample_business, inventory_chart["1300"], inventory_chart["1120"]
        )
        assert transaction_service.get_transaction(txn_id).category == TransactionCategory.VAR

        update = transaction_service.reclassify_stock_to_cogs(txn_id)

        txn = transaction_service.get_transaction(txn_id)
        assert update.new_debit_account_id == inventory_chart["5250"].id
        assert txn.debit_account.account_code == "5250"
        assert txn.credit_account.account_code == "1120"
        assert txn.amount == Decimal("1000000")
        assert txn.category == TransactionCategory.VAR

    def test_reclassify_to_chosen_account(
        self, transaction_service, sample_business, inventory_chart
    ):
        """Test an explicit COGS account."""
        txn_id = _journal(
            transaction_service, sample_business, inventory_chart["1300"], inventory_chart["1120"]
        )

        transaction_service.reclassify_stock_to_cogs(txn_id, inventory_chart["5220"].id)

        assert transaction_service.get_transaction(txn_id).debit_account.account_code == "5220"

    def test_reclassify_requires_stock(self, transaction_service, sample_business, chart):
        """Test that only stock purchases can be converted."""
        txn_id = _journal(transaction_service, sample_business, chart["5110"], chart["1120"])

        with pytest.raises(ValidationError, match="not an inventory purchase"):
            transaction_service.reclassify_stock_to_cogs(txn_id)

    def test_matching_principle_warning(
        self, transaction_service, sample_business, inventory_chart
    ):
        """Test the COGS reminder on a sale."""
        txn_id = _journal(
            transaction_service, sample_business, inventory_chart["1120"], inventory_chart["4100"]
        )

        warning = transaction_service.matching_principle_warning(txn_id)

        assert warning is not None
        assert warning.journal_hint == "Debit: 5250 - COGS | Credit: 1300 - Inventory"

    def test_no_warning_without_inventory(self, transaction_service, sample_business, chart):
        """Test that the default chart keeps no inventory."""
        txn_id = _journal(transaction_service, sample_business, chart["1120"], chart["4100"])

        assert transaction_service.matching_principle_warning(txn_id) is None
