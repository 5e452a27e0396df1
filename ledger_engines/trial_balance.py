"""
Module: ledger_engines.trial_balance
Responsibility:
    Aggregate per-account opening, period and closing debit/credit totals
    over a date range and check the double-entry invariant.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - opening = balance as of the day before ``start`` plus any account
      opening dated inside the range.
    - period debit/credit = sum of positive / negated negative postings
      dated within the range, account openings excluded.
    - closing = opening + period debit - period credit.
    - Opening and closing are each shown on one side only (whichever is
      positive).
    - Accounts with a zero opening and no period postings are skipped
      unless ``include_zero_balances`` is set.
    - total period debit == total period credit whenever every voucher in
      the stream is balanced.  A difference signals bad upstream data.

Failure modes:
    - None.  Postings for accounts missing from ``accounts`` are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.amounts import ZERO, split_sides
from ledger_kernel.domain.dates import DateRange
from ledger_kernel.domain.postings import LedgerPosting
from ledger_kernel.domain.records import AccountInfo
from ledger_kernel.logging_config import get_logger
from ledger_engines.balance import BalanceCalculator
from ledger_engines.classification import (
    ClassificationResolver,
    TrialBalanceCategory,
)
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.trial_balance")


@dataclass(frozen=True)
class TrialBalanceRow:
    """Opening, period and closing figures of one account."""

    account_id: str
    code: str
    name: str
    category: TrialBalanceCategory
    open_debit: Decimal
    open_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    close_debit: Decimal
    close_credit: Decimal

    @property
    def opening_net(self) -> Decimal:
        return self.open_debit - self.open_credit

    @property
    def closing_net(self) -> Decimal:
        return self.close_debit - self.close_credit


@dataclass(frozen=True)
class TrialBalanceTotals:
    open_debit: Decimal
    open_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    close_debit: Decimal
    close_credit: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.period_debit == self.period_credit


@dataclass(frozen=True)
class TrialBalanceResult:
    period: DateRange
    rows: tuple[TrialBalanceRow, ...]
    totals: TrialBalanceTotals


def _totals(rows: Sequence[TrialBalanceRow]) -> TrialBalanceTotals:
    return TrialBalanceTotals(
        open_debit=sum((r.open_debit for r in rows), ZERO),
        open_credit=sum((r.open_credit for r in rows), ZERO),
        period_debit=sum((r.period_debit for r in rows), ZERO),
        period_credit=sum((r.period_credit for r in rows), ZERO),
        close_debit=sum((r.close_debit for r in rows), ZERO),
        close_credit=sum((r.close_credit for r in rows), ZERO),
    )


class TrialBalanceAggregator:
    """
    Builds trial balance rows from a DOUBLE_ENTRY posting stream.

    Contract:
        Pure.  Row order is by account name then code.
    """

    def __init__(
        self,
        resolver: ClassificationResolver | None = None,
        calculator: BalanceCalculator | None = None,
    ) -> None:
        self._resolver = resolver or ClassificationResolver()
        self._calculator = calculator or BalanceCalculator()

    @traced_engine("trial_balance", "1.0", fingerprint_fields=("period", "include_zero_balances"))
    def aggregate(
        self,
        postings: Iterable[LedgerPosting],
        *,
        accounts: Sequence[AccountInfo],
        period: DateRange,
        include_zero_balances: bool = False,
    ) -> TrialBalanceResult:
        stream = tuple(postings)
        openings = self._calculator.opening_balances(stream, period=period)
        movements = self._calculator.movements(stream, period=period)

        rows: list[TrialBalanceRow] = []
        for account in accounts:
            opening = openings.get(account.id, ZERO)
            moved = account.id in movements
            period_debit, period_credit = movements.get(account.id, (ZERO, ZERO))
            if not include_zero_balances and opening == ZERO and not moved:
                continue
            closing = opening + period_debit - period_credit
            open_debit, open_credit = split_sides(opening)
            close_debit, close_credit = split_sides(closing)
            rows.append(
                TrialBalanceRow(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    category=self._resolver.trial_balance_category(account),
                    open_debit=open_debit,
                    open_credit=open_credit,
                    period_debit=period_debit,
                    period_credit=period_credit,
                    close_debit=close_debit,
                    close_credit=close_credit,
                )
            )

        rows.sort(key=lambda r: (r.name, r.code))
        totals = _totals(rows)

        if not totals.is_balanced:
            logger.warning(
                "trial_balance_out_of_balance",
                extra={
                    "period_debit": str(totals.period_debit),
                    "period_credit": str(totals.period_credit),
                    "difference": str(totals.period_debit - totals.period_credit),
                },
            )
        logger.info(
            "trial_balance_aggregated",
            extra={
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "row_count": len(rows),
                "is_balanced": totals.is_balanced,
            },
        )
        return TrialBalanceResult(period=period, rows=tuple(rows), totals=totals)
