"""Tests for transaction guidance and the matching principle warning."""

import pytest

from katalis.domain.entities import AccountType, NormalBalance, TransactionCategory
from katalis.domain.guidance import (
    TRANSACTION_PATTERNS,
    TransactionGuidanceService,
    detect_matching_principle_warning,
    detect_pattern_from_name,
    find_matching_patterns,
    get_pattern_by_id,
    impact_description,
)
from katalis.domain.rules import DEFAULT_POLICY, CashAccountPolicy


@pytest.fixture
def accounts(make_account):
    return [
        make_account("1100", "Cash & Bank"),
        make_account("1120", "Bank - BCA"),
        make_account("1220", "Furniture"),
        make_account("2210", "Loan Payable"),
        make_account("3100", "Owner Capital", parent_account_id=3000),
        make_account("4100", "Rental Income", parent_account_id=4000),
        make_account("4200", "Service Income", parent_account_id=4000),
        make_account("5100", "Operating Expenses"),
        make_account("5110", "Electricity"),
    ]


@pytest.fixture
def guidance(accounts):
    return TransactionGuidanceService(accounts)


class TestPatterns:
    """Test the pattern catalogue."""

    def test_pattern_ids_are_unique(self):
        """Test that every pattern can be looked up by id."""
        ids = [p.id for p in TRANSACTION_PATTERNS]
        assert len(ids) == len(set(ids))
        assert get_pattern_by_id("receive_revenue").name == "Receive Revenue"
        assert get_pattern_by_id("nope") is None

    def test_find_matching_patterns(self):
        """Test lookup by account-type pair."""
        ids = [p.id for p in find_matching_patterns(AccountType.EXPENSE, AccountType.ASSET)]
        assert ids == ["pay_opex", "pay_variable_cost", "pay_tax"]
        assert find_matching_patterns(AccountType.REVENUE, AccountType.EXPENSE) == []

    @pytest.mark.parametrize(
        "name,pattern_id",
        [
            ("Setoran modal awal", "capital_injection"),
            ("Sewa villa Januari", "receive_revenue"),
            ("Pencairan KPR", "receive_loan"),
            ("Bayar listrik", "pay_opex"),
            ("Electricity bill", "pay_opex"),
            ("Cleaning fee", "pay_variable_cost"),
            ("Cicilan bank", "pay_loan"),
            ("Bayar PBB", "pay_tax"),
            ("Prive bulanan", "owner_withdrawal"),
            ("Beli furniture ruang tamu", "buy_asset"),
            ("Buy office computer", "buy_asset"),
        ],
    )
    def test_detect_pattern_from_name(self, name, pattern_id):
        """Test English and Indonesian keywords."""
        assert detect_pattern_from_name(name).id == pattern_id

    def test_keywords_match_whole_words(self):
        """Test that short keywords do not match inside other words."""
        assert detect_pattern_from_name("Airport pickup") is None
        assert detect_pattern_from_name("Beli nasi") is None

    def test_impact_description(self, make_account):
        """Test increase/decrease wording per side."""
        bank = make_account("1120", "Bank")
        rent = make_account("4100", "Rental Income")

        assert impact_description(bank, NormalBalance.DEBIT) == "Bank increases"
        assert impact_description(bank, NormalBalance.CREDIT) == "Bank decreases"
        assert impact_description(rent, NormalBalance.CREDIT) == "Rental Income increases"


class TestGuidanceService:
    """Test guidance for the current form state."""

    def test_name_wins_over_accounts(self, guidance):
        """Test that a recognised name decides the pattern."""
        pattern = guidance.detect_pattern(5110, 1120, "Sewa bulanan")

        assert pattern.id == "receive_revenue"

    def test_short_names_are_ignored(self, guidance):
        """Test that names of two characters or fewer are skipped."""
        assert guidance.detect_pattern(1120, 4100, "ac").id == "receive_revenue"

    def test_pattern_from_accounts(self, guidance):
        """Test detection from the account-type pair."""
        assert guidance.detect_pattern(1120, 2210).id == "receive_loan"
        assert guidance.detect_pattern(1120, None) is None

    def test_suggested_accounts(self, guidance):
        """Test high-confidence codes followed by other accounts of the type."""
        pattern = get_pattern_by_id("receive_revenue")

        credit = guidance.get_suggested_accounts(pattern, "credit")

        assert [(s.account.account_code, s.confidence) for s in credit] == [
            ("4100", "high"),
            ("4200", "medium"),
        ]

    def test_suggestions_are_capped(self, accounts, make_account):
        """Test that at most three other cash accounts follow the default one."""
        extra = [make_account(code) for code in ("1110", "1121", "1130", "1132")]
        guidance = TransactionGuidanceService(accounts + extra)
        pattern = get_pattern_by_id("capital_injection")

        debit = guidance.get_suggested_accounts(pattern, "debit")

        assert [s.confidence for s in debit] == ["high", "medium", "medium", "medium"]
        assert debit[0].account.account_code == "1120"

    def test_parent_code_expands_to_sub_accounts(self, guidance):
        """Test that a parent code suggests its children, never itself."""
        pattern = get_pattern_by_id("pay_opex")

        debit = guidance.get_suggested_accounts(pattern, "debit")
        credit = guidance.get_suggested_accounts(pattern, "credit")

        assert [(s.account.account_code, s.confidence) for s in debit] == [("5110", "high")]
        assert [(s.account.account_code, s.confidence) for s in credit] == [("1120", "high")]

    def test_inactive_accounts_are_not_suggested(self, make_account):
        """Test that inactive cash accounts are skipped."""
        accounts = [
            make_account("1100"),
            make_account("1110", "Cash"),
            make_account("1120", "Bank - BCA", is_active=False),
        ]
        guidance = TransactionGuidanceService(accounts)
        pattern = get_pattern_by_id("receive_loan")

        debit = guidance.get_suggested_accounts(pattern, "debit")

        assert [(s.account.account_code, s.confidence) for s in debit] == [("1110", "high")]

    def test_custom_policy_cash_account(self, make_account):
        """Test that the cash side follows the policy's preferred account."""
        accounts = [make_account(code) for code in ("1100", "1110", "1120", "1130")]
        policy = CashAccountPolicy(preferred_counter_code="1130")
        guidance = TransactionGuidanceService(accounts, policy=policy)
        pattern = get_pattern_by_id("pay_loan")

        credit = guidance.get_suggested_accounts(pattern, "credit")

        assert credit[0].account.account_code == "1130"
        assert credit[0].confidence == "high"
        assert [s.account.account_code for s in credit[1:]] == ["1110", "1120"]

    def test_no_cash_account_no_cash_suggestions(self, make_account):
        """Test a chart without counter accounts."""
        guidance = TransactionGuidanceService([make_account("1100"), make_account("4100")])

        assert guidance.get_suggested_accounts(get_pattern_by_id("receive_revenue"), "debit") == []

    def test_seeded_chart_suggests_postable_accounts(self, chart):
        """Test suggestions against the default chart of accounts."""
        guidance = TransactionGuidanceService(list(chart.values()))

        result = guidance.get_guidance(chart["1120"].id, chart["4100"].id)

        assert result.pattern.id == "receive_revenue"
        suggested = result.suggested_debit_accounts + result.suggested_credit_accounts
        assert suggested
        for suggestion in suggested:
            assert suggestion.account.is_sub_account
            assert suggestion.account.account_code not in DEFAULT_POLICY.control_codes
            assert not DEFAULT_POLICY.is_fixed_asset(suggestion.account.account_code)
        assert result.suggested_debit_accounts[0].account.account_code == "1120"
        assert result.suggested_credit_accounts[0].account.account_code == "4100"

    def test_seeded_chart_opex_suggestions(self, chart):
        """Test that expense suggestions come from the operating expense group."""
        guidance = TransactionGuidanceService(list(chart.values()))

        result = guidance.get_guidance(transaction_name="bayar listrik")

        high = [s.account.account_code for s in result.suggested_debit_accounts if s.confidence == "high"]
        assert high == ["5110", "5111", "5113", "5120", "5130"]
        assert "5100" not in [s.account.account_code for s in result.suggested_debit_accounts]
        assert [s.account.account_code for s in result.suggested_credit_accounts][0] == "1120"

    def test_guidance_with_pattern(self, guidance):
        """Test the explanation of a complete revenue entry."""
        result = guidance.get_guidance(1120, 4100)

        assert result.pattern.id == "receive_revenue"
        assert "Bank - BCA increases" in result.explanation
        assert "Rental Income increases" in result.explanation
        assert "Income statement" in result.explanation
        assert result.warnings == ()

    def test_guidance_lists_examples_without_accounts(self, guidance):
        """Test examples when only the name is known."""
        result = guidance.get_guidance(transaction_name="bayar listrik")

        assert result.pattern.id == "pay_opex"
        assert "Examples:" in result.explanation

    def test_guidance_without_pattern(self, guidance):
        """Test the basic explanation."""
        assert "Select debit and credit" in guidance.get_guidance().explanation
        assert "Select a credit account" in guidance.get_guidance(5110).explanation

    def test_equity_credited_for_revenue_warns(self, guidance):
        """Test a customer payment booked as capital."""
        result = guidance.get_guidance(1120, 3100, "Sewa villa")

        assert result.pattern.id == "receive_revenue"
        assert len(result.warnings) == 1
        assert "revenue account" in result.warnings[0]


class TestMatchingPrinciple:
    """Test the COGS reminder on sales."""

    @pytest.fixture
    def chart_with_inventory(self, accounts, make_account):
        return accounts + [
            make_account("1300", "Inventory", default_category=TransactionCategory.VAR),
            make_account("5250", "COGS"),
        ]

    def test_sale_with_inventory_warns(self, chart_with_inventory, make_transaction):
        """Test a revenue entry when inventory exists."""
        by_code = {a.account_code: a for a in chart_with_inventory}
        sale = make_transaction(
            by_code["1120"], by_code["4100"], "1000000", TransactionCategory.EARN
        )

        warning = detect_matching_principle_warning(sale, chart_with_inventory)

        assert warning is not None
        assert warning.inventory_account.account_code == "1300"
        assert warning.cogs_account.account_code == "5250"
        assert warning.journal_hint == "Debit: 5250 - COGS | Credit: 1300 - Inventory"

    def test_no_inventory_no_warning(self, accounts, make_transaction):
        """Test a service business."""
        by_code = {a.account_code: a for a in accounts}
        sale = make_transaction(by_code["1120"], by_code["4100"], "1000000", TransactionCategory.EARN)

        assert detect_matching_principle_warning(sale, accounts) is None

    def test_only_earn_transactions(self, chart_with_inventory, make_transaction):
        """Test that other categories are ignored."""
        by_code = {a.account_code: a for a in chart_with_inventory}
        loan = make_transaction(by_code["1120"], by_code["2210"], "1000", TransactionCategory.FIN)

        assert detect_matching_principle_warning(loan, chart_with_inventory) is None

    def test_legacy_sale_is_ignored(self, chart_with_inventory, make_legacy_transaction):
        """Test that single-entry sales get no reminder."""
        sale = make_legacy_transaction(TransactionCategory.EARN, "1000")

        assert detect_matching_principle_warning(sale, chart_with_inventory) is None

    def test_hint_without_cogs_account(self, accounts, make_account, make_transaction):
        """Test the generic hint when no expense sub-account exists."""
        chart = [a for a in accounts if a.account_type != AccountType.EXPENSE] + [
            make_account("1300", "Persediaan")
        ]
        by_code = {a.account_code: a for a in chart}
        sale = make_transaction(by_code["1120"], by_code["4100"], "1000", TransactionCategory.EARN)

        warning = detect_matching_principle_warning(sale, chart)

        assert warning.cogs_account is None
        assert warning.journal_hint.startswith("Debit: COGS/expense account")
