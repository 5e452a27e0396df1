"""
Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: account
ledger, customer/supplier ageing, ageing summary, trial balance, balance
sheet, cash flow and profit & loss.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``ReportingService`` and returned to callers.  No dependency on kernel
services, database, or engines.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Metadata carries no generation timestamp, so identical inputs render to
  identical output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of reports."""

    LEDGER = "ledger"
    CUSTOMER_AGEING = "customer_ageing"
    SUPPLIER_AGEING = "supplier_ageing"
    AGEING_SUMMARY = "ageing_summary"
    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    PROFIT_AND_LOSS = "profit_and_loss"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Parameters a report was generated for."""

    report_type: ReportType
    company_id: str
    as_of_date: date
    period_start: date | None = None
    period_end: date | None = None
    account_id: str | None = None


# =========================================================================
# Account Ledger
# =========================================================================


@dataclass(frozen=True)
class LedgerLine:
    """A single ledger row; the first row of a report is the opening balance."""

    date: date
    voucher_ref: str
    narration: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerReport:
    metadata: ReportMetadata
    account_code: str
    account_name: str
    lines: tuple[LedgerLine, ...]
    opening_balance: Decimal
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


# =========================================================================
# Ageing
# =========================================================================


@dataclass(frozen=True)
class AgeingLine:
    """An unpaid (or partly paid) bill."""

    bill_ref: str
    date: date
    narration: str
    bill_amount: Decimal
    bill_balance: Decimal
    age_days: int
    bucket: str
    cumulative_balance: Decimal


@dataclass(frozen=True)
class BucketTotal:
    bucket: str
    amount: Decimal


@dataclass(frozen=True)
class AgeingReport:
    """
    Bill-level ageing of one customer or supplier.

    ``unused_credit`` is credit left over after every bill was settled.
    """

    metadata: ReportMetadata
    account_code: str
    account_name: str
    lines: tuple[AgeingLine, ...]
    bucket_totals: tuple[BucketTotal, ...]
    total_outstanding: Decimal
    unused_credit: Decimal


@dataclass(frozen=True)
class AgeingSummaryRow:
    account_id: str
    account_code: str
    account_name: str
    bucket_totals: tuple[BucketTotal, ...]
    total_outstanding: Decimal


@dataclass(frozen=True)
class AgeingSummaryReport:
    """Bucket totals per party for every customer and supplier."""

    metadata: ReportMetadata
    customers: tuple[AgeingSummaryRow, ...]
    suppliers: tuple[AgeingSummaryRow, ...]
    total_receivable: Decimal
    total_payable: Decimal


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLine:
    """Opening, period and closing figures of one account."""

    code: str
    name: str
    bucket: str
    open_debit: Decimal
    open_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    close_debit: Decimal
    close_credit: Decimal


@dataclass(frozen=True)
class TrialBalanceTotals:
    open_debit: Decimal
    open_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    close_debit: Decimal
    close_credit: Decimal


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    rows: tuple[TrialBalanceLine, ...]
    totals: TrialBalanceTotals
    is_balanced: bool  # period debits == period credits


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetLine:
    code: str
    name: str
    amount: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of a date.

    Net profit is included in ``equity`` as a derived line so that
    Assets = Liabilities + Equity within the configured tolerance.
    """

    metadata: ReportMetadata
    assets: tuple[BalanceSheetLine, ...]
    liabilities: tuple[BalanceSheetLine, ...]
    equity: tuple[BalanceSheetLine, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    net_profit: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


# =========================================================================
# Cash Flow (direct method)
# =========================================================================


@dataclass(frozen=True)
class CashFlowLine:
    """Cash moved against one counter-account."""

    code: str
    name: str
    inflow: Decimal
    outflow: Decimal
    net: Decimal


@dataclass(frozen=True)
class CashFlowActivity:
    """One section of the cash flow statement."""

    label: str
    lines: tuple[CashFlowLine, ...]
    total: Decimal


@dataclass(frozen=True)
class CashFlowReport:
    """
    Cash movements over a period by activity.

    ``reconciles`` is True when closing_cash - opening_cash == net_cash_flow.
    """

    metadata: ReportMetadata
    operating: CashFlowActivity
    investing: CashFlowActivity
    financing: CashFlowActivity
    net_cash_flow: Decimal
    opening_cash: Decimal
    closing_cash: Decimal
    reconciles: bool


# =========================================================================
# Profit & Loss
# =========================================================================


@dataclass(frozen=True)
class ProfitAndLossLine:
    code: str
    name: str
    amount: Decimal


@dataclass(frozen=True)
class ProfitAndLossReport:
    metadata: ReportMetadata
    income: tuple[ProfitAndLossLine, ...]
    expenses: tuple[ProfitAndLossLine, ...]
    total_income: Decimal
    total_expense: Decimal
    net_profit: Decimal  # total_income - total_expense
