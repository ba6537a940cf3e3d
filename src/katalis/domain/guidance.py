"""Transaction guidance.

Common transaction patterns, account suggestions and plain-language
explanations of what a transaction does to the financial statements.
"""

from typing import Optional, Sequence

from katalis.domain.entities import (
    Account,
    AccountSuggestion,
    AccountType,
    MatchingPrincipleWarning,
    NormalBalance,
    Transaction,
    TransactionCategory,
    TransactionGuidance,
    TransactionPattern,
    account_sort_key,
)
from katalis.domain.inventory import find_cogs_account, get_inventory_accounts, is_inventory_account
from katalis.domain.quick_transaction import find_default_cash_account
from katalis.domain.rules import (
    ACCOUNT_TYPE_LABELS,
    DEFAULT_POLICY,
    CashAccountPolicy,
    find_combination,
    increases_on,
)

TRANSACTION_PATTERNS: tuple[TransactionPattern, ...] = (
    # Money in
    TransactionPattern(
        id="capital_injection",
        name="Capital Injection",
        description="Owner adds capital to the business",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.EQUITY,
        cash_side=NormalBalance.DEBIT,
        examples=(
            "Owner's initial capital deposit",
            "Additional capital for expansion",
            "Transfer from the owner's personal account",
        ),
    ),
    TransactionPattern(
        id="receive_revenue",
        name="Receive Revenue",
        description="Payment received from a customer",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.REVENUE,
        suggested_credit_codes=("4100",),
        cash_side=NormalBalance.DEBIT,
        examples=("Monthly rent payment", "Consulting fee", "Product sale"),
    ),
    TransactionPattern(
        id="receive_loan",
        name="Receive Loan",
        description="Loan proceeds from a bank or another party",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.LIABILITY,
        cash_side=NormalBalance.DEBIT,
        examples=("Mortgage disbursement", "Working capital loan", "Investor loan"),
    ),
    # Money out
    TransactionPattern(
        id="pay_opex",
        name="Pay Operating Expense",
        description="Routine operating cost",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5100",),
        cash_side=NormalBalance.CREDIT,
        examples=("Monthly electricity bill", "Staff salaries", "Internet", "Insurance"),
    ),
    TransactionPattern(
        id="pay_variable_cost",
        name="Pay Variable Cost",
        description="Cost that moves with activity",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5200",),
        cash_side=NormalBalance.CREDIT,
        examples=("Cleaning per unit", "Consumable supplies", "Sales commission"),
    ),
    TransactionPattern(
        id="buy_asset",
        name="Buy Fixed Asset",
        description="Purchase of property, equipment or other assets with cash",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("1200",),
        cash_side=NormalBalance.CREDIT,
        examples=("Furniture for the property", "Office computer", "Company vehicle"),
    ),
    TransactionPattern(
        id="pay_loan",
        name="Repay Loan",
        description="Loan installment or settlement of a debt",
        debit_account_type=AccountType.LIABILITY,
        credit_account_type=AccountType.ASSET,
        cash_side=NormalBalance.CREDIT,
        examples=("Mortgage installment", "Supplier debt settlement", "Credit card bill"),
    ),
    TransactionPattern(
        id="pay_tax",
        name="Pay Tax",
        description="Tax paid to the government",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5300",),
        cash_side=NormalBalance.CREDIT,
        examples=("Final income tax", "Property tax", "Rental tax"),
    ),
    TransactionPattern(
        id="owner_withdrawal",
        name="Owner Withdrawal",
        description="Owner takes money out for personal use",
        debit_account_type=AccountType.EQUITY,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("3300",),
        cash_side=NormalBalance.CREDIT,
        examples=("Cash for personal needs", "Transfer to personal account"),
    ),
    # Adjustments
    TransactionPattern(
        id="revenue_return",
        name="Revenue Return",
        description="Revenue reduced by a return or correction",
        debit_account_type=AccountType.REVENUE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("4100",),
        cash_side=NormalBalance.CREDIT,
        examples=("Rent refund", "Over-invoiced correction"),
    ),
    TransactionPattern(
        id="expense_reimbursement",
        name="Expense Reimbursement",
        description="Reimbursement of an expense already paid",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.EXPENSE,
        suggested_credit_codes=("5100",),
        cash_side=NormalBalance.DEBIT,
        examples=("Insurance claim received", "Supplier refund"),
    ),
)

# Keyword lists are checked in order; the first matching pattern wins
_NAME_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("capital_injection", ("modal", "setoran", "investasi pemilik", "capital", "owner investment")),
    ("receive_revenue", ("sewa", "rental", "pendapatan", "pembayaran dari", "revenue", "income")),
    ("receive_loan", ("pinjaman", "kredit", "kpr", "loan")),
    (
        "pay_opex",
        ("listrik", "air", "internet", "gaji", "asuransi", "maintenance", "electricity", "salary"),
    ),
    ("pay_variable_cost", ("cleaning", "supplies", "komisi", "commission")),
    ("pay_loan", ("cicilan", "pelunasan", "bayar hutang", "installment", "repay")),
    ("pay_tax", ("pajak", "pph", "pbb", "tax")),
    ("owner_withdrawal", ("prive", "pribadi", "penarikan", "drawing", "withdrawal")),
)

_ASSET_PURCHASE_VERBS = ("beli", "buy", "purchase")
_ASSET_PURCHASE_OBJECTS = (
    "furniture",
    "komputer",
    "computer",
    "ac",
    "peralatan",
    "equipment",
    "kendaraan",
    "vehicle",
    "motor",
    "mobil",
    "car",
)


def get_pattern_by_id(pattern_id: str) -> Optional[TransactionPattern]:
    for pattern in TRANSACTION_PATTERNS:
        if pattern.id == pattern_id:
            return pattern
    return None


def find_matching_patterns(
    debit_type: AccountType, credit_type: AccountType
) -> list[TransactionPattern]:
    """Patterns whose account types match the given pair."""
    return [
        p
        for p in TRANSACTION_PATTERNS
        if p.debit_account_type == debit_type and p.credit_account_type == credit_type
    ]


def detect_pattern_from_name(name: str) -> Optional[TransactionPattern]:
    """Guess a pattern from keywords in the transaction name."""
    words = name.lower().split()
    text = " ".join(words)

    def has(keyword: str) -> bool:
        if " " in keyword:
            return keyword in text
        return keyword in words

    if any(has(verb) for verb in _ASSET_PURCHASE_VERBS) and any(
        has(obj) for obj in _ASSET_PURCHASE_OBJECTS
    ):
        return get_pattern_by_id("buy_asset")

    for pattern_id, keywords in _NAME_KEYWORDS:
        if any(has(keyword) for keyword in keywords):
            return get_pattern_by_id(pattern_id)
    return None


def impact_description(account: Account, side: NormalBalance) -> str:
    """Describe whether posting on ``side`` raises or lowers the account."""
    if increases_on(account.account_type, side):
        return f"{account.account_name} increases"
    return f"{account.account_name} decreases"


_STATEMENT_IMPACT: dict[tuple[AccountType, AccountType], str] = {
    (AccountType.ASSET, AccountType.ASSET): "Balance sheet: asset mix changes, total assets unchanged.",
    (AccountType.ASSET, AccountType.EQUITY): "Balance sheet: assets up, equity up. Still balanced.",
    (AccountType.ASSET, AccountType.LIABILITY): "Balance sheet: assets up, liabilities up. Still balanced.",
    (AccountType.ASSET, AccountType.REVENUE): "Income statement: revenue up, net profit up, equity up.",
    (AccountType.EXPENSE, AccountType.ASSET): "Income statement: expenses up, net profit down, equity down.",
    (AccountType.LIABILITY, AccountType.ASSET): "Balance sheet: assets down, liabilities down. Still balanced.",
    (AccountType.EQUITY, AccountType.ASSET): "Balance sheet: assets down, equity down. Still balanced.",
}


class TransactionGuidanceService:
    """Suggestions and explanations for a transaction being entered."""

    def __init__(self, accounts: Sequence[Account], policy: CashAccountPolicy = DEFAULT_POLICY):
        """Initialize guidance service.

        Args:
            accounts: Chart of accounts of the business
            policy: Cash/bank conventions
        """
        self.accounts = list(accounts)
        self.policy = policy

    def _find(self, account_id: Optional[int]) -> Optional[Account]:
        if account_id is None:
            return None
        return next((a for a in self.accounts if a.id == account_id), None)

    def detect_pattern(
        self,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        transaction_name: Optional[str] = None,
    ) -> Optional[TransactionPattern]:
        """Detect a pattern from the name first, then from the selected accounts."""
        if transaction_name and len(transaction_name) > 2:
            pattern = detect_pattern_from_name(transaction_name)
            if pattern is not None:
                return pattern

        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)
        if debit is not None and credit is not None:
            matches = find_matching_patterns(debit.account_type, credit.account_type)
            if matches:
                return matches[0]
        return None

    def get_suggested_accounts(
        self, pattern: TransactionPattern, role: str
    ) -> list[AccountSuggestion]:
        """Suggest accounts for the debit or credit side of a pattern.

        Only active sub-accounts are suggested since parent accounts cannot
        be posted to. The cash side of a pattern is filled from the policy's
        counter accounts, with the default cash account first.

        Args:
            pattern: Detected pattern
            role: "debit" or "credit"
        """
        if role == "debit":
            side = NormalBalance.DEBIT
            codes, target_type = pattern.suggested_debit_codes, pattern.debit_account_type
        else:
            side = NormalBalance.CREDIT
            codes, target_type = pattern.suggested_credit_codes, pattern.credit_account_type

        postable = sorted(
            (a for a in self.accounts if a.is_active and a.is_sub_account),
            key=account_sort_key,
        )

        if pattern.cash_side == side:
            return self._cash_suggestions(postable)

        suggestions: list[AccountSuggestion] = []
        for code in codes:
            parent = next((a for a in self.accounts if a.account_code == code), None)
            for account in postable:
                matches_code = account.account_code == code
                under_parent = parent is not None and account.parent_account_id == parent.id
                if matches_code or under_parent:
                    suggestions.append(
                        AccountSuggestion(account, f'Matches "{pattern.name}"', "high")
                    )

        suggested_ids = {s.account.id for s in suggestions}
        extra = [
            a
            for a in postable
            if a.account_type == target_type
            and a.id not in suggested_ids
            and not self.policy.is_cash_or_bank(a.account_code)
        ]
        for account in extra[:3]:
            suggestions.append(
                AccountSuggestion(
                    account,
                    f"Available {ACCOUNT_TYPE_LABELS[target_type]} account",
                    "medium",
                )
            )
        return suggestions

    def _cash_suggestions(self, postable: list[Account]) -> list[AccountSuggestion]:
        default = find_default_cash_account(postable, self.policy)
        if default is None:
            return []
        suggestions = [AccountSuggestion(default, "Default cash/bank account", "high")]
        others = [
            a
            for a in postable
            if a.id != default.id and self.policy.is_counter_account(a.account_code)
        ]
        for account in others[:3]:
            suggestions.append(AccountSuggestion(account, "Cash/bank account", "medium"))
        return suggestions

    def get_guidance(
        self,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        transaction_name: Optional[str] = None,
    ) -> TransactionGuidance:
        """Full guidance for the current form state."""
        pattern = self.detect_pattern(debit_account_id, credit_account_id, transaction_name)
        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)

        if pattern is None:
            return TransactionGuidance(
                pattern=None,
                suggested_debit_accounts=(),
                suggested_credit_accounts=(),
                explanation=self._basic_explanation(debit, credit),
            )

        return TransactionGuidance(
            pattern=pattern,
            suggested_debit_accounts=tuple(self.get_suggested_accounts(pattern, "debit")),
            suggested_credit_accounts=tuple(self.get_suggested_accounts(pattern, "credit")),
            explanation=self._pattern_explanation(pattern, debit, credit),
            warnings=tuple(self._warnings(pattern, debit, credit)),
        )

    def _basic_explanation(
        self, debit: Optional[Account], credit: Optional[Account]
    ) -> str:
        if debit is not None and credit is not None:
            lines = []
            combination = find_combination(debit.account_type, credit.account_type)
            if combination is not None:
                lines.append(f"Transaction type: {combination.description}")
                lines.append("")
            lines.append("This transaction will:")
            lines.append(f"- {impact_description(debit, NormalBalance.DEBIT)}")
            lines.append(f"- {impact_description(credit, NormalBalance.CREDIT)}")
            return "\n".join(lines)
        if debit is not None:
            return (
                f"Debit account selected: {debit.account_name} "
                f"({ACCOUNT_TYPE_LABELS[debit.account_type]}). "
                "Select a credit account to complete the transaction."
            )
        if credit is not None:
            return (
                f"Credit account selected: {credit.account_name} "
                f"({ACCOUNT_TYPE_LABELS[credit.account_type]}). "
                "Select a debit account to complete the transaction."
            )
        return "Select debit and credit accounts to see what the transaction does."

    def _pattern_explanation(
        self,
        pattern: TransactionPattern,
        debit: Optional[Account],
        credit: Optional[Account],
    ) -> str:
        lines = [pattern.name, pattern.description, ""]
        if debit is not None and credit is not None:
            lines.append("Effect:")
            lines.append(f"- {impact_description(debit, NormalBalance.DEBIT)}")
            lines.append(f"- {impact_description(credit, NormalBalance.CREDIT)}")
            impact = _STATEMENT_IMPACT.get(
                (pattern.debit_account_type, pattern.credit_account_type)
            )
            if impact:
                lines.append("")
                lines.append(impact)
        else:
            lines.append("Examples:")
            lines.extend(f"- {example}" for example in pattern.examples[:3])
        return "\n".join(lines)

    def _warnings(
        self,
        pattern: TransactionPattern,
        debit: Optional[Account],
        credit: Optional[Account],
    ) -> list[str]:
        warnings = []
        if (
            pattern.id == "receive_revenue"
            and credit is not None
            and credit.account_type == AccountType.EQUITY
        ):
            warnings.append(
                "An equity account is selected as credit. If this is a payment from "
                "a customer, use a revenue account (4xxx) instead of capital."
            )
        if (
            pattern.id == "pay_opex"
            and debit is not None
            and debit.account_type == AccountType.EQUITY
        ):
            warnings.append(
                "An equity account is selected as debit. That records an owner "
                "withdrawal, not an operating expense."
            )
        return warnings


def detect_matching_principle_warning(
    transaction: Transaction, accounts: Sequence[Account]
) -> Optional[MatchingPrincipleWarning]:
    """Flag a sale that needs a matching COGS entry.

    Only EARN double-entry transactions crediting a revenue account qualify,
    and only when the business keeps an inventory account.
    """
    if transaction.category != TransactionCategory.EARN or not transaction.is_double_entry:
        return None
    credit = transaction.credit_account
    if credit is None or credit.account_type != AccountType.REVENUE:
        return None
    if is_inventory_account(credit):
        return None

    inventory_accounts = get_inventory_accounts(accounts)
    if not inventory_accounts:
        return None
    inventory_account = inventory_accounts[0]
    cogs_account = find_cogs_account(accounts)

    debit_hint = cogs_account.display_name if cogs_account else "COGS/expense account"
    return MatchingPrincipleWarning(
        inventory_account=inventory_account,
        cogs_account=cogs_account,
        title="Additional entry needed?",
        body=(
            "This sale records revenue but inventory has not been reduced. The "
            "matching principle requires recording cost of goods sold in the "
            "same period as the revenue."
        ),
        journal_hint=f"Debit: {debit_hint} | Credit: {inventory_account.display_name}",
    )
