"""
Module: ledger_engines.ledger
Responsibility:
    Compose the ledger of one account over a date range: a brought-forward
    opening row followed by every posting in the range with a running
    balance.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The first row is always the brought-forward balance as of the day
      before ``start``, labelled "OPENING BALANCE B/F".
    - Rows are ordered by (date, seq); seq is the repository creation order,
      so repeated calls give identical rows.
    - The running balance of the last row equals the account balance as of
      ``end`` computed over the same stream.
    - Mirror vouchers are not handled here; the DOCUMENT stream already
      excludes them where the party document stands in for them.

Failure modes:
    - None beyond DateRange validation done by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.amounts import ZERO, split_sides
from ledger_kernel.domain.dates import DateRange
from ledger_kernel.domain.postings import (
    OPENING_REFERENCE,
    LedgerPosting,
    PostingKind,
)
from ledger_kernel.logging_config import get_logger
from ledger_engines.balance import BalanceCalculator
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.ledger")

BROUGHT_FORWARD_NARRATION = "OPENING BALANCE B/F"


@dataclass(frozen=True)
class LedgerRow:
    """One line of an account ledger."""

    row_date: date
    reference: str
    narration: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    kind: PostingKind


@dataclass(frozen=True)
class ComposedLedger:
    """
    Ledger rows of one account.

    Guarantees:
        - ``rows[0]`` is the brought-forward row.
        - ``closing_balance == rows[-1].balance``.
    """

    account_id: str
    period: DateRange
    rows: tuple[LedgerRow, ...]

    @property
    def opening_balance(self) -> Decimal:
        return self.rows[0].balance

    @property
    def closing_balance(self) -> Decimal:
        return self.rows[-1].balance

    @property
    def total_debit(self) -> Decimal:
        return sum((r.debit for r in self.rows[1:]), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((r.credit for r in self.rows[1:]), ZERO)


class LedgerComposer:
    """
    Builds account ledgers from a posting stream.

    Contract:
        Pure -- the stream is passed in.
    Non-goals:
        - Does not filter by company; the stream is already company-scoped.
    """

    def __init__(self, calculator: BalanceCalculator | None = None) -> None:
        self._calculator = calculator or BalanceCalculator()

    @traced_engine("ledger", "1.0", fingerprint_fields=("account_id", "period"))
    def compose(
        self,
        postings: Iterable[LedgerPosting],
        *,
        account_id: str,
        period: DateRange,
    ) -> ComposedLedger:
        stream = tuple(postings)
        brought_forward = self._calculator.balance(
            stream, account_id=account_id, as_of=period.day_before_start
        )
        in_range = [
            p for p in stream
            if p.account_id == account_id and period.contains(p.posting_date)
        ]

        in_range.sort(key=lambda p: p.sort_key)

        debit, credit = split_sides(brought_forward)
        rows = [
            LedgerRow(
                row_date=period.start,
                reference=OPENING_REFERENCE,
                narration=BROUGHT_FORWARD_NARRATION,
                debit=debit,
                credit=credit,
                balance=brought_forward,
                kind=PostingKind.OPENING,
            )
        ]

        running = brought_forward
        for posting in in_range:
            running += posting.amount
            debit, credit = split_sides(posting.amount)
            rows.append(
                LedgerRow(
                    row_date=posting.posting_date,
                    reference=posting.reference,
                    narration=posting.narration,
                    debit=debit,
                    credit=credit,
                    balance=running,
                    kind=posting.kind,
                )
            )

        logger.info(
            "ledger_composed",
            extra={
                "account_id": account_id,
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "row_count": len(rows),
                "closing_balance": str(running),
            },
        )
        return ComposedLedger(account_id=account_id, period=period, rows=tuple(rows))
