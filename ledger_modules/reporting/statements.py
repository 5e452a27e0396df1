"""
Pure report transformation functions.

These functions turn engine results, account metadata and posting streams
into report DTOs.  ZERO I/O. ZERO side effects.

All monetary values are Decimal. All inputs/outputs are frozen dataclasses.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access
- No file I/O
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_engines.ageing import AgeingResult
from ledger_engines.classification import (
    BalanceSheetSide,
    CashFlowSection,
    ClassificationResolver,
)
from ledger_engines.ledger import ComposedLedger
from ledger_engines.trial_balance import TrialBalanceResult
from ledger_kernel.domain.amounts import ZERO, is_negligible
from ledger_kernel.domain.dates import DateRange
from ledger_kernel.domain.postings import LedgerPosting, VoucherPosting
from ledger_kernel.domain.records import AccountInfo, VoucherType
from ledger_modules.reporting.models import (
    AgeingLine,
    AgeingReport,
    AgeingSummaryReport,
    AgeingSummaryRow,
    BalanceSheetLine,
    BalanceSheetReport,
    BucketTotal,
    CashFlowActivity,
    CashFlowLine,
    CashFlowReport,
    LedgerLine,
    LedgerReport,
    ProfitAndLossLine,
    ProfitAndLossReport,
    ReportMetadata,
    TrialBalanceLine,
    TrialBalanceReport,
    TrialBalanceTotals,
)

NET_PROFIT_LABEL = "Net Profit"


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def _bucket_totals(result: AgeingResult) -> tuple[BucketTotal, ...]:
    return tuple(
        BucketTotal(bucket=name, amount=amount)
        for name, amount in result.total_by_bucket().items()
    )


# =========================================================================
# 1. ACCOUNT LEDGER
# =========================================================================


def build_ledger(
    composed: ComposedLedger,
    account: AccountInfo,
    metadata: ReportMetadata,
) -> LedgerReport:
    lines = tuple(
        LedgerLine(
            date=row.row_date,
            voucher_ref=row.reference,
            narration=row.narration,
            debit=row.debit,
            credit=row.credit,
            balance=row.balance,
        )
        for row in composed.rows
    )
    return LedgerReport(
        metadata=metadata,
        account_code=account.code,
        account_name=account.name,
        lines=lines,
        opening_balance=composed.opening_balance,
        total_debit=composed.total_debit,
        total_credit=composed.total_credit,
        closing_balance=composed.closing_balance,
    )


# =========================================================================
# 2. AGEING
# =========================================================================


def build_ageing(
    result: AgeingResult,
    account: AccountInfo,
    metadata: ReportMetadata,
) -> AgeingReport:
    lines = tuple(
        AgeingLine(
            bill_ref=row.reference,
            date=row.bill_date,
            narration=row.narration,
            bill_amount=row.bill_amount,
            bill_balance=row.bill_balance,
            age_days=row.age_days,
            bucket=row.bucket,
            cumulative_balance=row.cumulative_balance,
        )
        for row in result.rows
    )
    return AgeingReport(
        metadata=metadata,
        account_code=account.code,
        account_name=account.name,
        lines=lines,
        bucket_totals=_bucket_totals(result),
        total_outstanding=result.total_outstanding,
        unused_credit=result.unused_credit,
    )


def _summary_row(account: AccountInfo, result: AgeingResult) -> AgeingSummaryRow:
    return AgeingSummaryRow(
        account_id=account.id,
        account_code=account.code,
        account_name=account.name,
        bucket_totals=_bucket_totals(result),
        total_outstanding=result.total_outstanding,
    )


def build_ageing_summary(
    customers: Sequence[tuple[AccountInfo, AgeingResult]],
    suppliers: Sequence[tuple[AccountInfo, AgeingResult]],
    metadata: ReportMetadata,
) -> AgeingSummaryReport:
    """Bucket totals per party; parties with nothing outstanding are left out."""
    customer_rows = tuple(
        _summary_row(a, r) for a, r in customers if r.total_outstanding > ZERO
    )
    supplier_rows = tuple(
        _summary_row(a, r) for a, r in suppliers if r.total_outstanding > ZERO
    )
    return AgeingSummaryReport(
        metadata=metadata,
        customers=customer_rows,
        suppliers=supplier_rows,
        total_receivable=_sum(r.total_outstanding for r in customer_rows),
        total_payable=_sum(r.total_outstanding for r in supplier_rows),
    )


# =========================================================================
# 3. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    result: TrialBalanceResult,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    rows = tuple(
        TrialBalanceLine(
            code=row.code,
            name=row.name,
            bucket=row.category.value,
            open_debit=row.open_debit,
            open_credit=row.open_credit,
            period_debit=row.period_debit,
            period_credit=row.period_credit,
            close_debit=row.close_debit,
            close_credit=row.close_credit,
        )
        for row in result.rows
    )
    t = result.totals
    return TrialBalanceReport(
        metadata=metadata,
        rows=rows,
        totals=TrialBalanceTotals(
            open_debit=t.open_debit,
            open_credit=t.open_credit,
            period_debit=t.period_debit,
            period_credit=t.period_credit,
            close_debit=t.close_debit,
            close_credit=t.close_credit,
        ),
        is_balanced=t.is_balanced,
    )


# =========================================================================
# 4. BALANCE SHEET
# =========================================================================


def compute_net_profit(
    accounts: Iterable[AccountInfo],
    balances: Mapping[str, Decimal],
    resolver: ClassificationResolver,
) -> Decimal:
    """
    Net profit from the closing balances of every income and expense account.

    Income is credit-normal, so profit = -(sum of signed balances).
    """
    return ZERO - _sum(
        balances.get(a.id, ZERO) for a in accounts if resolver.is_profit_and_loss(a)
    )


def build_balance_sheet(
    accounts: Sequence[AccountInfo],
    balances: Mapping[str, Decimal],
    resolver: ClassificationResolver,
    metadata: ReportMetadata,
    tolerance: Decimal,
) -> BalanceSheetReport:
    """
    Build a balance sheet from closing balances.

    Classification logic:
    1. Party type, then account type, gives the statement class
    2. Asset-like balances in credit are shown as liabilities, and
       liability-like balances in debit as assets
    3. Equity balances are shown credit-positive
    4. Net profit of all income/expense accounts is a derived equity line
    5. Verify A = L + E within ``tolerance``
    """
    sides: dict[BalanceSheetSide, list[BalanceSheetLine]] = {
        BalanceSheetSide.ASSETS: [],
        BalanceSheetSide.LIABILITIES: [],
        BalanceSheetSide.EQUITY: [],
    }
    for account in sorted(accounts, key=lambda a: a.code):
        closing = balances.get(account.id, ZERO)
        if is_negligible(closing):
            continue
        placement = resolver.balance_sheet_placement(account, closing)
        if placement is None:
            continue
        side, amount = placement
        sides[side].append(
            BalanceSheetLine(code=account.code, name=account.name, amount=amount)
        )

    net_profit = compute_net_profit(accounts, balances, resolver)
    equity = sides[BalanceSheetSide.EQUITY]
    equity.append(BalanceSheetLine(code="", name=NET_PROFIT_LABEL, amount=net_profit))

    total_assets = _sum(line.amount for line in sides[BalanceSheetSide.ASSETS])
    total_liabilities = _sum(
        line.amount for line in sides[BalanceSheetSide.LIABILITIES]
    )
    total_equity = _sum(line.amount for line in equity)
    total_l_and_e = total_liabilities + total_equity

    return BalanceSheetReport(
        metadata=metadata,
        assets=tuple(sides[BalanceSheetSide.ASSETS]),
        liabilities=tuple(sides[BalanceSheetSide.LIABILITIES]),
        equity=tuple(equity),
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        net_profit=net_profit,
        total_liabilities_and_equity=total_l_and_e,
        is_balanced=abs(total_assets - total_l_and_e) <= tolerance,
    )


# =========================================================================
# 5. PROFIT & LOSS
# =========================================================================


def period_nets(
    postings: Iterable[LedgerPosting],
    period: DateRange,
    exclude_voucher_types: frozenset[VoucherType] = frozenset({VoucherType.YEAR_END}),
) -> dict[str, Decimal]:
    """Signed movement per account within ``period``, skipping closing vouchers."""
    nets: dict[str, Decimal] = {}
    for posting in postings:
        if not period.contains(posting.posting_date):
            continue
        if (
            isinstance(posting, VoucherPosting)
            and posting.voucher_type in exclude_voucher_types
        ):
            continue
        nets[posting.account_id] = nets.get(posting.account_id, ZERO) + posting.amount
    return nets


def build_profit_and_loss(
    accounts: Sequence[AccountInfo],
    nets: Mapping[str, Decimal],
    resolver: ClassificationResolver,
    metadata: ReportMetadata,
) -> ProfitAndLossReport:
    """
    Income and expense lines for a period.

    An income account in debit is shown as an expense, and an expense
    account in credit as income, mirroring balance-sheet reclassification.
    """
    income: list[ProfitAndLossLine] = []
    expenses: list[ProfitAndLossLine] = []
    for account in sorted(accounts, key=lambda a: a.code):
        if not resolver.is_profit_and_loss(account):
            continue
        net = nets.get(account.id, ZERO)
        if is_negligible(net):
            continue
        if net < ZERO:
            income.append(ProfitAndLossLine(account.code, account.name, -net))
        else:
            expenses.append(ProfitAndLossLine(account.code, account.name, net))

    total_income = _sum(line.amount for line in income)
    total_expense = _sum(line.amount for line in expenses)
    return ProfitAndLossReport(
        metadata=metadata,
        income=tuple(income),
        expenses=tuple(expenses),
        total_income=total_income,
        total_expense=total_expense,
        net_profit=total_income - total_expense,
    )


# =========================================================================
# 6. CASH FLOW
# =========================================================================


_SECTION_LABELS = {
    CashFlowSection.OPERATING: "Operating Activities",
    CashFlowSection.INVESTING: "Investing Activities",
    CashFlowSection.FINANCING: "Financing Activities",
}


def cash_balance(
    accounts: Iterable[AccountInfo],
    balances: Mapping[str, Decimal],
    resolver: ClassificationResolver,
) -> Decimal:
    return _sum(balances.get(a.id, ZERO) for a in accounts if resolver.is_cash(a))


def build_cash_flow(
    accounts: Sequence[AccountInfo],
    postings: Iterable[LedgerPosting],
    period: DateRange,
    resolver: ClassificationResolver,
    metadata: ReportMetadata,
    opening_cash: Decimal,
    closing_cash: Decimal,
) -> CashFlowReport:
    """
    Direct-method cash flow from a DOUBLE_ENTRY stream.

    For each voucher in the period that touches both cash and non-cash
    accounts, every non-cash posting is a cash movement of the opposite
    sign (crediting a customer brings cash in).  The counter-account
    decides the section.  Vouchers moving cash between cash accounts only
    are transfers and are ignored.
    """
    by_id = {a.id: a for a in accounts}
    by_voucher: dict[str, list[VoucherPosting]] = {}
    for posting in postings:
        if isinstance(posting, VoucherPosting) and period.contains(posting.posting_date):
            by_voucher.setdefault(posting.voucher_id, []).append(posting)

    flows: dict[str, tuple[Decimal, Decimal]] = {}
    for voucher_postings in by_voucher.values():
        cash = [p for p in voucher_postings if resolver.is_cash(by_id[p.account_id])]
        if not cash:
            continue
        for posting in voucher_postings:
            if resolver.is_cash(by_id[posting.account_id]):
                continue
            effect = -posting.amount
            inflow, outflow = flows.get(posting.account_id, (ZERO, ZERO))
            if effect > ZERO:
                inflow += effect
            else:
                outflow -= effect
            flows[posting.account_id] = (inflow, outflow)

    section_lines: dict[CashFlowSection, list[CashFlowLine]] = {s: [] for s in CashFlowSection}
    for account in sorted(accounts, key=lambda a: a.code):
        if account.id not in flows:
            continue
        inflow, outflow = flows[account.id]
        section_lines[resolver.cash_flow_section(account)].append(
            CashFlowLine(
                code=account.code,
                name=account.name,
                inflow=inflow,
                outflow=outflow,
                net=inflow - outflow,
            )
        )

    activities = {
        section: CashFlowActivity(
            label=_SECTION_LABELS[section],
            lines=tuple(lines),
            total=_sum(line.net for line in lines),
        )
        for section, lines in section_lines.items()
    }
    net_cash_flow = _sum(a.total for a in activities.values())
    return CashFlowReport(
        metadata=metadata,
        operating=activities[CashFlowSection.OPERATING],
        investing=activities[CashFlowSection.INVESTING],
        financing=activities[CashFlowSection.FINANCING],
        net_cash_flow=net_cash_flow,
        opening_cash=opening_cash,
        closing_cash=closing_cash,
        reconciles=(closing_cash - opening_cash == net_cash_flow),
    )


# =========================================================================
# 7. RENDERER (dict/JSON output)
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
