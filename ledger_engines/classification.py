"""
Module: ledger_engines.classification
Responsibility:
    Map each account to its reporting buckets: the trial balance category,
    the financial statement class, whether it counts as cash, and the cash
    flow activity section of a counter-account.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Party type takes precedence over account type.  CUSTOMER, SUPPLIER,
      EMPLOYEE, BANKS and CASH override the generic type where they apply.
    - Every account resolves to exactly one bucket.  Types and party types
      are closed enumerations validated at the repository boundary, so
      there is no catch-all bucket.
    - Balance sheet placement is by closing sign: asset-like accounts in
      credit move to liabilities and liability-like accounts in debit move
      to assets, so nothing is dropped from the identity.

Failure modes:
    - None.  Inputs are already-validated AccountInfo records.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.records import AccountInfo, AccountType, PartyType


class TrialBalanceCategory(str, Enum):
    """Grouping shown on each trial balance row."""

    CUSTOMERS = "CUSTOMERS"
    SUPPLIERS = "SUPPLIERS"
    EMPLOYEES = "EMPLOYEES"
    ASSETS = "ASSETS"
    LIABILITIES = "LIABILITIES"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSES = "EXPENSES"


class StatementClass(str, Enum):
    """Financial statement class of an account."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CashFlowSection(str, Enum):
    """Activity section of a cash movement."""

    OPERATING = "OPERATING"
    INVESTING = "INVESTING"
    FINANCING = "FINANCING"


class BalanceSheetSide(str, Enum):
    """Where a closing balance is presented on the balance sheet."""

    ASSETS = "ASSETS"
    LIABILITIES = "LIABILITIES"
    EQUITY = "EQUITY"


_PARTY_CATEGORY = {
    PartyType.CUSTOMER: TrialBalanceCategory.CUSTOMERS,
    PartyType.SUPPLIER: TrialBalanceCategory.SUPPLIERS,
    PartyType.EMPLOYEE: TrialBalanceCategory.EMPLOYEES,
}

_TYPE_CATEGORY = {
    AccountType.ASSET: TrialBalanceCategory.ASSETS,
    AccountType.BANK: TrialBalanceCategory.ASSETS,
    AccountType.CASH: TrialBalanceCategory.ASSETS,
    AccountType.LIABILITY: TrialBalanceCategory.LIABILITIES,
    AccountType.EQUITY: TrialBalanceCategory.EQUITY,
    AccountType.CAPITAL: TrialBalanceCategory.EQUITY,
    AccountType.INCOME: TrialBalanceCategory.INCOME,
    AccountType.REVENUE: TrialBalanceCategory.INCOME,
    AccountType.EXPENSE: TrialBalanceCategory.EXPENSES,
    AccountType.COST: TrialBalanceCategory.EXPENSES,
}

_PARTY_CLASS = {
    PartyType.CUSTOMER: StatementClass.ASSET,
    PartyType.BANKS: StatementClass.ASSET,
    PartyType.CASH: StatementClass.ASSET,
    PartyType.SUPPLIER: StatementClass.LIABILITY,
    # EMPLOYEE falls through to the account type (advances vs. payables).
}

_TYPE_CLASS = {
    AccountType.ASSET: StatementClass.ASSET,
    AccountType.BANK: StatementClass.ASSET,
    AccountType.CASH: StatementClass.ASSET,
    AccountType.LIABILITY: StatementClass.LIABILITY,
    AccountType.EQUITY: StatementClass.EQUITY,
    AccountType.CAPITAL: StatementClass.EQUITY,
    AccountType.INCOME: StatementClass.INCOME,
    AccountType.REVENUE: StatementClass.INCOME,
    AccountType.EXPENSE: StatementClass.EXPENSE,
    AccountType.COST: StatementClass.EXPENSE,
}

_CASH_PARTIES = frozenset({PartyType.BANKS, PartyType.CASH})
_CASH_TYPES = frozenset({AccountType.BANK, AccountType.CASH})
_OPERATING_PARTIES = frozenset(
    {PartyType.CUSTOMER, PartyType.SUPPLIER, PartyType.EMPLOYEE}
)


class ClassificationResolver:
    """
    Resolves reporting buckets for accounts.

    Contract:
        Pure -- depends only on the account record and the configured
        extra cash codes.
    """

    def __init__(self, cash_account_codes: Iterable[str] = ()) -> None:
        self._cash_codes = frozenset(cash_account_codes)

    def trial_balance_category(self, account: AccountInfo) -> TrialBalanceCategory:
        if account.party_type in _PARTY_CATEGORY:
            return _PARTY_CATEGORY[account.party_type]
        return _TYPE_CATEGORY[account.account_type]

    def statement_class(self, account: AccountInfo) -> StatementClass:
        if account.party_type in _PARTY_CLASS:
            return _PARTY_CLASS[account.party_type]
        return _TYPE_CLASS[account.account_type]

    def is_profit_and_loss(self, account: AccountInfo) -> bool:
        return self.statement_class(account) in (
            StatementClass.INCOME,
            StatementClass.EXPENSE,
        )

    def is_cash(self, account: AccountInfo) -> bool:
        return (
            account.party_type in _CASH_PARTIES
            or account.account_type in _CASH_TYPES
            or account.code in self._cash_codes
        )

    def cash_flow_section(self, counter_account: AccountInfo) -> CashFlowSection:
        """Section of a cash movement, decided by the non-cash counter-account."""
        if counter_account.party_type in _OPERATING_PARTIES:
            return CashFlowSection.OPERATING
        statement_class = _TYPE_CLASS[counter_account.account_type]
        if statement_class in (StatementClass.INCOME, StatementClass.EXPENSE):
            return CashFlowSection.OPERATING
        if statement_class is StatementClass.ASSET:
            return CashFlowSection.INVESTING
        return CashFlowSection.FINANCING

    def balance_sheet_placement(
        self, account: AccountInfo, closing: Decimal
    ) -> tuple[BalanceSheetSide, Decimal] | None:
        """
        Side and presented amount of a balance-sheet account's closing balance.

        Returns None for income and expense accounts, which reach the
        balance sheet only through net profit.
        """
        statement_class = self.statement_class(account)
        if statement_class is StatementClass.EQUITY:
            return BalanceSheetSide.EQUITY, -closing
        if statement_class is StatementClass.ASSET:
            if closing >= ZERO:
                return BalanceSheetSide.ASSETS, closing
            return BalanceSheetSide.LIABILITIES, -closing
        if statement_class is StatementClass.LIABILITY:
            if closing <= ZERO:
                return BalanceSheetSide.LIABILITIES, -closing
            return BalanceSheetSide.ASSETS, closing
        return None
