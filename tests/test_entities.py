"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from katalis.domain.entities import (
    AccountType,
    AssetSection,
    BalanceSheetData,
    DoubleEntryPosting,
    EquitySection,
    LiabilitySection,
    NormalBalance,
    TrialBalanceRow,
    ValidationIssue,
    ValidationResult,
    account_sort_key,
)
from katalis.domain.rules import (
    CashAccountPolicy,
    account_type_for_code,
    increases_on,
    is_valid_combination,
    normal_balance_for,
)


class TestAccount:
    """Tests for the Account entity."""

    def test_display_name_and_sub_account(self, make_account):
        """Test derived account properties."""
        bank = make_account("1120", "Bank - BCA")
        parent = make_account("1100", "Cash & Bank")

        assert bank.display_name == "1120 - Bank - BCA"
        assert bank.is_sub_account
        assert not parent.is_sub_account

    def test_frozen(self, make_account):
        """Test that entities are immutable."""
        bank = make_account("1120")
        with pytest.raises(FrozenInstanceError):
            bank.account_name = "Other"

    def test_sort_key(self, make_account):
        """Test ordering by sort order, then code."""
        accounts = [
            make_account("1130", sort_order=10),
            make_account("1120", sort_order=10),
            make_account("1110", sort_order=20),
        ]

        assert [a.account_code for a in sorted(accounts, key=account_sort_key)] == [
            "1120",
            "1130",
            "1110",
        ]


class TestPosting:
    """Tests for the posting variants."""

    def test_equality_ignores_joined_accounts(self, make_account):
        """Test that postings compare by account ids."""
        with_accounts = DoubleEntryPosting(
            1120, 4100, make_account("1120"), make_account("4100")
        )

        assert with_accounts == DoubleEntryPosting(1120, 4100)

    def test_transaction_accessors(self, make_account, make_transaction, make_legacy_transaction):
        """Test debit/credit accessors on both posting kinds."""
        txn = make_transaction(make_account("1120"), make_account("4100"), "1")
        legacy = make_legacy_transaction(None, "1")

        assert txn.is_double_entry
        assert txn.debit_account.account_code == "1120"
        assert not legacy.is_double_entry
        assert legacy.credit_account is None


class TestAggregates:
    """Tests for report aggregates."""

    def test_trial_balance_row_net_balance(self, make_account):
        """Test the signed balance by normal side."""
        bank = TrialBalanceRow(make_account("1120"), Decimal("100"), Decimal("30"))
        rent = TrialBalanceRow(make_account("4100"), Decimal("10"), Decimal("100"))

        assert bank.net_balance == Decimal("70")
        assert rent.net_balance == Decimal("90")

    def test_balance_sheet_difference(self):
        """Test the accounting equation check."""
        bs = BalanceSheetData(
            assets=AssetSection(Decimal("100"), Decimal("0"), Decimal("100")),
            liabilities=LiabilitySection(Decimal("20"), Decimal("20")),
            equity=EquitySection(Decimal("70"), Decimal("0"), Decimal("70")),
        )

        assert bs.difference == Decimal("10")
        assert not bs.is_balanced

    def test_validation_result(self):
        """Test validity and issue codes."""
        result = ValidationResult(
            errors=(ValidationIssue("amount", "INVALID_AMOUNT", "bad"),),
            warnings=(ValidationIssue("amount", "LARGE_AMOUNT", "big", "warning"),),
        )

        assert not result.is_valid
        assert result.error_codes() == ["INVALID_AMOUNT"]
        assert result.warning_codes() == ["LARGE_AMOUNT"]
        assert ValidationResult().is_valid


class TestRules:
    """Tests for account classification rules."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("1120", AccountType.ASSET),
            ("2210", AccountType.LIABILITY),
            ("3100", AccountType.EQUITY),
            ("4100", AccountType.REVENUE),
            ("5110", AccountType.EXPENSE),
            ("6000", None),
            ("", None),
            (None, None),
            ("x1", None),
        ],
    )
    def test_account_type_for_code(self, code, expected):
        """Test classification by code prefix."""
        assert account_type_for_code(code) == expected

    def test_normal_balance(self):
        """Test debit-normal and credit-normal types."""
        assert normal_balance_for(AccountType.ASSET) == NormalBalance.DEBIT
        assert normal_balance_for(AccountType.EXPENSE) == NormalBalance.DEBIT
        assert normal_balance_for(AccountType.LIABILITY) == NormalBalance.CREDIT
        assert normal_balance_for(AccountType.EQUITY) == NormalBalance.CREDIT
        assert normal_balance_for(AccountType.REVENUE) == NormalBalance.CREDIT

    def test_increases_on(self):
        """Test the increase side of each type."""
        assert increases_on(AccountType.ASSET, NormalBalance.DEBIT)
        assert not increases_on(AccountType.REVENUE, NormalBalance.DEBIT)

    def test_combinations(self):
        """Test known and unknown account-type pairs."""
        assert is_valid_combination(AccountType.ASSET, AccountType.REVENUE)
        assert is_valid_combination(AccountType.LIABILITY, AccountType.EQUITY)
        assert not is_valid_combination(AccountType.EXPENSE, AccountType.REVENUE)

    def test_cash_policy(self):
        """Test the default cash/bank conventions."""
        policy = CashAccountPolicy()

        assert policy.is_counter_account("1120")
        assert policy.is_counter_account("1132")
        assert not policy.is_counter_account("1133")
        assert policy.is_cash_or_bank("1100")
        assert policy.is_cash_or_bank("1200")
        assert not policy.is_cash_or_bank("1220")
        assert policy.is_cash("1199")
        assert policy.is_fixed_asset("1220")
        assert policy.is_drawings("3300")
        assert not policy.is_counter_account(None)
