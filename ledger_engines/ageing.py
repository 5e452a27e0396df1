"""
Module: ledger_engines.ageing
Responsibility:
    Allocate a party's available credits against its outstanding bills
    oldest-first (FIFO) and report the unpaid remainder of each bill with
    its age and day bucket.  Used for customer (receivable) and supplier
    (payable) ageing.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Oldest-bill-first exhaustion: a bill is reduced until it is settled
      or the credit pool is empty; the next bill is touched only after that.
      A settled bill is never reopened within the same allocation.
    - Value conservation: sum(bill amounts) - credit applied ==
      sum(emitted balances).  No emitted balance is negative; credit beyond
      the total billed stays unused.
    - Bills sharing a date keep their creation order (seq).
    - Age is whole days: (as_of - bill_date).days.
    - The allocation is recomputed from scratch for each as-of date.

Failure modes:
    - ValueError when an age does not fall into any configured bucket.

Usage:
    from ledger_engines.ageing import AgeingAllocator, PartySide

    allocator = AgeingAllocator()
    result = allocator.age_party(
        stream, account_id="cust-1", side=PartySide.RECEIVABLE,
        as_of=date(2024, 2, 1),
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.postings import LedgerPosting, PostingKind
from ledger_kernel.logging_config import get_logger
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.ageing")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an ageing bucket.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded (e.g., 90+)

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days


DEFAULT_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("0-30", 0, 30),
    AgeBucket("31-60", 31, 60),
    AgeBucket("61-90", 61, 90),
    AgeBucket("90+", 91, None),
)


class PartySide(str, Enum):
    """Which side of the party relationship is being aged."""

    RECEIVABLE = "receivable"  # customer: bills are sales invoices
    PAYABLE = "payable"  # supplier: bills are purchase invoices


_BILL_KIND = {
    PartySide.RECEIVABLE: PostingKind.SALES_INVOICE,
    PartySide.PAYABLE: PostingKind.PURCHASE_INVOICE,
}

_NARRATION_PREFIX = {
    PartySide.RECEIVABLE: "BILL",
    PartySide.PAYABLE: "PURCHASE",
}


@dataclass(frozen=True)
class Bill:
    """An outstanding document to be settled, with a positive amount."""

    reference: str
    bill_date: date
    amount: Decimal
    seq: int = 0


@dataclass(frozen=True)
class AgeingRow:
    """A bill with an unpaid remainder after allocation."""

    reference: str
    bill_date: date
    narration: str
    bill_amount: Decimal
    bill_balance: Decimal
    age_days: int
    bucket: str
    cumulative_balance: Decimal


@dataclass(frozen=True)
class AgeingResult:
    """
    Outcome of one FIFO allocation.

    Guarantees:
        - total_billed - credit_applied == total_outstanding.
        - credit_applied + unused_credit == credit_available.
    """

    account_id: str
    side: PartySide
    as_of: date
    rows: tuple[AgeingRow, ...]
    total_billed: Decimal
    credit_available: Decimal
    credit_applied: Decimal
    unused_credit: Decimal
    buckets: tuple[AgeBucket, ...]

    @property
    def total_outstanding(self) -> Decimal:
        return sum((r.bill_balance for r in self.rows), ZERO)

    def total_by_bucket(self) -> dict[str, Decimal]:
        """Outstanding per bucket name, in bucket order, zero-filled."""
        totals = {b.name: ZERO for b in self.buckets}
        for row in self.rows:
            totals[row.bucket] += row.bill_balance
        return totals


class AgeingAllocator:
    """
    FIFO credit allocation over bills.

    Contract:
        Pure functions -- no I/O, all data passed as parameters.
    Non-goals:
        - Opening balances are not aged; only documents are bills.
    """

    def calculate_age(self, bill_date: date, as_of: date) -> int:
        return (as_of - bill_date).days

    def classify(
        self, age_days: int, buckets: Sequence[AgeBucket] = DEFAULT_BUCKETS
    ) -> AgeBucket:
        for bucket in buckets:
            if bucket.contains(age_days):
                return bucket
        raise ValueError(f"No bucket found for age {age_days} days")

    @traced_engine("ageing", "1.0", fingerprint_fields=("account_id", "as_of", "credit_pool"))
    def allocate(
        self,
        bills: Sequence[Bill],
        *,
        account_id: str,
        side: PartySide,
        credit_pool: Decimal,
        as_of: date,
        buckets: Sequence[AgeBucket] = DEFAULT_BUCKETS,
    ) -> AgeingResult:
        """
        Apply ``credit_pool`` to ``bills`` oldest first.

        Args:
            bills: Bills dated on/before ``as_of``; any order.
            account_id: Party account (for the result and logs).
            side: Receivable or payable; sets the narration prefix.
            credit_pool: Non-negative credit available for settlement.
            as_of: Ageing date.
            buckets: Day ranges for classification.

        Returns:
            AgeingResult whose rows are the bills left unpaid.
        """
        ordered = sorted(bills, key=lambda b: (b.bill_date, b.seq))
        available = credit_pool
        running = ZERO
        total_billed = ZERO
        rows: list[AgeingRow] = []

        for bill in ordered:
            total_billed += bill.amount
            balance = bill.amount
            if available >= balance:
                available -= balance
                balance = ZERO
            else:
                balance -= available
                available = ZERO

            if balance > ZERO:
                age = self.calculate_age(bill.bill_date, as_of)
                running += balance
                rows.append(
                    AgeingRow(
                        reference=bill.reference,
                        bill_date=bill.bill_date,
                        narration=f"{_NARRATION_PREFIX[side]} # {bill.reference}",
                        bill_amount=bill.amount,
                        bill_balance=balance,
                        age_days=age,
                        bucket=self.classify(age, buckets).name,
                        cumulative_balance=running,
                    )
                )

        result = AgeingResult(
            account_id=account_id,
            side=side,
            as_of=as_of,
            rows=tuple(rows),
            total_billed=total_billed,
            credit_available=credit_pool,
            credit_applied=credit_pool - available,
            unused_credit=available,
            buckets=tuple(buckets),
        )
        logger.info(
            "ageing_allocation_completed",
            extra={
                "account_id": account_id,
                "side": side.value,
                "as_of": as_of.isoformat(),
                "bill_count": len(ordered),
                "open_bill_count": len(rows),
                "total_outstanding": str(running),
                "unused_credit": str(available),
            },
        )
        return result

    def age_party(
        self,
        postings: Iterable[LedgerPosting],
        *,
        account_id: str,
        side: PartySide,
        as_of: date,
        buckets: Sequence[AgeBucket] = DEFAULT_BUCKETS,
    ) -> AgeingResult:
        """
        Age one party account from a DOCUMENT posting stream.

        Bills are the party's invoice postings (sales invoices for a
        receivable, purchase invoices for a payable).  The credit pool is
        every other posting on the opposite side: credits (receipts,
        returns, journal credits) for a receivable, debits (payments,
        journal debits) for a payable.  Opening balances are left out.
        """
        bill_kind = _BILL_KIND[side]
        bills: list[Bill] = []
        pool = ZERO
        for posting in postings:
            if posting.account_id != account_id or posting.posting_date > as_of:
                continue
            if posting.kind is PostingKind.OPENING:
                continue
            # Payables are credit-normal; flip so bills are positive.
            amount = posting.amount if side is PartySide.RECEIVABLE else -posting.amount
            if posting.kind is bill_kind:
                bills.append(
                    Bill(
                        reference=posting.reference,
                        bill_date=posting.posting_date,
                        amount=amount,
                        seq=posting.seq,
                    )
                )
            elif amount < ZERO:
                pool -= amount

        return self.allocate(
            bills,
            account_id=account_id,
            side=side,
            credit_pool=pool,
            as_of=as_of,
            buckets=buckets,
        )
