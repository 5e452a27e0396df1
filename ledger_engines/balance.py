"""
Module: ledger_engines.balance
Responsibility:
    Compute signed account balances as of a date, and period movements,
    from a posting stream.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - balance(A, T) = sum of A's postings dated on/before T.  The opening
      balance is itself a posting dated ``open_date``, so it counts only
      from that date on.
    - balance(A, T) == balance(A, T - 1) + sum of A's postings dated T.
    - Opening postings are brought forward, never period movement, even
      when ``open_date`` falls inside the period.
    - Decimal-only arithmetic; summation starts from Decimal("0").
    - An account with no postings has balance zero (its opening net, when
      that is zero).

Failure modes:
    - None.  Unknown account ids simply have no postings.

Usage:
    from ledger_engines.balance import BalanceCalculator

    calc = BalanceCalculator()
    calc.balance(stream, account_id="acc-1", as_of=date(2024, 1, 31))
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.dates import DateRange
from ledger_kernel.domain.postings import LedgerPosting, PostingKind
from ledger_kernel.logging_config import get_logger
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.balance")


class BalanceCalculator:
    """
    Balance queries over a posting stream.

    Contract:
        Pure functions -- the stream is passed in, nothing is read.
    Guarantees:
        - Results depend only on postings, never on their order.
    """

    @traced_engine("balance", "1.0", fingerprint_fields=("account_id", "as_of"))
    def balance(
        self,
        postings: Iterable[LedgerPosting],
        *,
        account_id: str,
        as_of: date,
    ) -> Decimal:
        """Signed balance of one account as of ``as_of`` (inclusive)."""
        total = ZERO
        for posting in postings:
            if posting.account_id == account_id and posting.posting_date <= as_of:
                total += posting.amount
        logger.debug(
            "balance_computed",
            extra={
                "account_id": account_id,
                "as_of": as_of.isoformat(),
                "balance": str(total),
            },
        )
        return total

    def balances(
        self,
        postings: Iterable[LedgerPosting],
        *,
        as_of: date,
    ) -> dict[str, Decimal]:
        """Signed balance of every account that has postings on/before ``as_of``."""
        totals: dict[str, Decimal] = {}
        for posting in postings:
            if posting.posting_date <= as_of:
                totals[posting.account_id] = (
                    totals.get(posting.account_id, ZERO) + posting.amount
                )
        return totals

    def opening_balances(
        self,
        postings: Iterable[LedgerPosting],
        *,
        period: DateRange,
    ) -> dict[str, Decimal]:
        """
        Brought-forward balance of every account for ``period``.

        Balance as of the day before ``period.start`` plus any opening
        balance dated inside the period.  An account opening is never
        period movement.
        """
        postings = tuple(postings)
        totals = self.balances(postings, as_of=period.day_before_start)
        for posting in postings:
            if posting.kind is PostingKind.OPENING and period.contains(posting.posting_date):
                totals[posting.account_id] = (
                    totals.get(posting.account_id, ZERO) + posting.amount
                )
        return totals

    def movements(
        self,
        postings: Iterable[LedgerPosting],
        *,
        period: DateRange,
    ) -> dict[str, tuple[Decimal, Decimal]]:
        """Per account (debits, credits) within ``period``; both non-negative.

        Opening postings are left out; see ``opening_balances``.
        """
        result: dict[str, tuple[Decimal, Decimal]] = {}
        for posting in postings:
            if posting.kind is PostingKind.OPENING:
                continue
            if not period.contains(posting.posting_date):
                continue
            debits, credits = result.get(posting.account_id, (ZERO, ZERO))
            if posting.amount > ZERO:
                debits += posting.amount
            else:
                credits -= posting.amount
            result[posting.account_id] = (debits, credits)
        return result
