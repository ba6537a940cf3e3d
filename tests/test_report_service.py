"""Tests for report service."""

from datetime import date
from decimal import Decimal

import pytest

from katalis.domain.entities import TransactionCategory
from katalis.domain.errors import NotFoundError

TODAY = date(2024, 12, 31)


@pytest.fixture
def recorded(transaction_service, sample_business, chart):
    """A quarter of bookkeeping for the sample business."""

    def journal(debit, credit, amount, txn_date):
        return transaction_service.create_double_entry(
            business_id=sample_business.id,
            debit_account_id=chart[debit].id,
            credit_account_id=chart[credit].id,
            amount=Decimal(amount),
            txn_date=txn_date,
            name=f"{debit}/{credit}",
            description=f"{debit}/{credit}",
            today=TODAY,
        )

    ids = [
        journal("1120", "3100", "350000000", date(2024, 1, 2)),
        journal("1220", "1120", "45000000", date(2024, 1, 5)),
        journal("1120", "4100", "30000000", date(2024, 2, 1)),
        journal("5110", "1120", "2000000", date(2024, 2, 10)),
        journal("5210", "1120", "3000000", date(2024, 2, 15)),
        journal("5310", "1120", "1000000", date(2024, 3, 31)),
    ]
    return ids


class TestReportService:
    """Tests for ReportService."""

    def test_financial_summary(self, report_service, sample_business, recorded):
        """Test category totals from stored transactions."""
        summary = report_service.financial_summary(sample_business.id)

        assert summary.total_earn == Decimal("30000000")
        assert summary.total_capex == Decimal("45000000")
        assert summary.total_fin == Decimal("350000000")
        assert summary.net_profit == Decimal("-21000000")

    def test_summary_for_period(self, report_service, sample_business, recorded):
        """Test an inclusive date range."""
        summary = report_service.financial_summary(
            sample_business.id, date(2024, 2, 1), date(2024, 2, 15)
        )

        assert summary.total_earn == Decimal("30000000")
        assert summary.total_opex == Decimal("2000000")
        assert summary.total_var == Decimal("3000000")
        assert summary.total_capex == 0

    def test_income_statement(self, report_service, sample_business, recorded):
        """Test metrics alongside the summary."""
        summary, metrics = report_service.income_statement(sample_business.id)

        assert summary.gross_profit == Decimal("27000000")
        assert metrics.operating_income == Decimal("25000000")
        assert metrics.gross_margin == Decimal("90")

    def test_return_on_investment(self, report_service, sample_business, recorded):
        """Test ROI of a period against the first month's capital expenditure."""
        initial_capital, roi = report_service.return_on_investment(
            sample_business.id, date(2024, 2, 1), date(2024, 3, 31)
        )

        assert initial_capital == Decimal("45000000")
        assert round(roi, 2) == Decimal("53.33")

    def test_return_on_investment_without_capex(self, report_service, sample_business):
        """Test that ROI is zero before any capital expenditure."""
        assert report_service.return_on_investment(sample_business.id) == (0, 0)

    def test_deleted_transactions_leave_reports(
        self, report_service, transaction_service, sample_business, recorded
    ):
        """Test that soft-deleted transactions are excluded."""
        transaction_service.delete_transaction(recorded[2])

        assert report_service.financial_summary(sample_business.id).total_earn == 0

    def test_cash_flow_opens_at_capital(self, report_service, sample_business, recorded):
        """Test that the business capital is the opening balance."""
        cash_flow = report_service.cash_flow(sample_business.id)

        assert cash_flow.opening_balance == Decimal("350000000")
        assert cash_flow.operating == Decimal("24000000")
        assert cash_flow.investing == Decimal("-45000000")

    def test_trial_balance(self, report_service, sample_business, recorded):
        """Test that stored double-entry postings balance."""
        tb = report_service.trial_balance(sample_business.id)

        assert tb.is_balanced
        assert tb.total_debits == Decimal("431000000")
        rows = {row.account.account_code: row for row in tb.rows}
        assert rows["1120"].debit_balance == Decimal("380000000")
        assert rows["1120"].credit_balance == Decimal("51000000")

    def test_trial_balance_counts_legacy(
        self, report_service, transaction_service, sample_business, recorded
    ):
        """Test that legacy transactions are reported separately."""
        transaction_service.create_legacy(
            sample_business.id,
            "BCA",
            Decimal("500000"),
            date(2024, 3, 1),
            "Old entry",
            "Old entry",
            TransactionCategory.EARN,
            today=TODAY,
        )

        tb = report_service.trial_balance(sample_business.id)

        assert tb.legacy_count == 1
        assert tb.is_balanced

    def test_balance_sheet(self, report_service, sample_business, recorded):
        """Test the accounting equation on the stored books."""
        bs = report_service.balance_sheet(sample_business.id)

        assert bs.assets.cash == Decimal("329000000")
        assert bs.assets.property_value == Decimal("45000000")
        assert bs.assets.total_assets == Decimal("374000000")
        assert bs.equity.capital == Decimal("350000000")
        assert bs.equity.retained_earnings == Decimal("24000000")
        assert bs.is_balanced

    def test_balance_sheet_as_of(self, report_service, sample_business, recorded):
        """Test a balance sheet at an earlier date."""
        bs = report_service.balance_sheet(sample_business.id, as_of=date(2024, 1, 31))

        assert bs.assets.total_assets == Decimal("350000000")
        assert bs.equity.retained_earnings == 0

    def test_account_ledger(self, report_service, sample_business, recorded):
        """Test the bank ledger."""
        ledger = report_service.account_ledger(sample_business.id, "1120")

        assert len(ledger.entries) == 6
        assert ledger.entries[0].balance == Decimal("350000000")
        assert ledger.closing_balance == Decimal("329000000")

    def test_monthly_breakdown(self, report_service, sample_business, recorded):
        """Test month-by-month totals."""
        months = report_service.monthly_breakdown(sample_business.id)

        assert [m.month for m in months] == ["2024-01", "2024-02", "2024-03"]
        assert months[1].net_profit == Decimal("25000000")

    def test_unknown_business(self, report_service):
        """Test reports for a missing business."""
        with pytest.raises(NotFoundError):
            report_service.financial_summary(999)

    def test_unknown_account(self, report_service, sample_business):
        """Test a ledger for a missing account code."""
        with pytest.raises(NotFoundError, match="'9999' not found"):
            report_service.account_ledger(sample_business.id, "9999")
