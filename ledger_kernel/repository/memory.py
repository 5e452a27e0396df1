"""
InMemoryEntryRepository -- dict-backed EntryRepository.

Responsibility:
    A complete, thread-safe repository for tests and for callers that
    embed the engine over records they already hold in memory.

Invariants enforced:
    - Atomicity: ``unit_of_work()`` snapshots all state on entry and
      restores it if the block raises, so a failed multi-record write
      leaves nothing behind.  Counter increments are rolled back too.
    - Numbering: per-(company, prefix) counters are incremented under the
      repository lock inside the unit of work; existing numbers are skipped,
      never reused.
    - ``seq`` is one monotonic counter shared by every record kind.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from ledger_kernel.domain.records import (
    AccountInfo,
    FinancialYearInfo,
    PartyDocumentInfo,
    PurchaseInvoiceInfo,
    SaleReturnInfo,
    SalesInvoiceInfo,
    VoucherDraft,
    VoucherInfo,
)
from ledger_kernel.exceptions import (
    InvalidRecordError,
    SequenceConflictError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.repository.base import (
    EntryRepository,
    check_closed_year_update,
    format_voucher_no,
)

logger = get_logger("repository.memory")


class InMemoryEntryRepository(EntryRepository):
    """
    Dict-backed repository.

    Non-goals:
        - No persistence across process restarts.
    """

    MAX_NUMBERING_ATTEMPTS = 5

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._accounts: dict[str, dict[str, AccountInfo]] = {}
        self._vouchers: dict[str, list[VoucherInfo]] = {}
        self._documents: dict[str, list[PartyDocumentInfo]] = {}
        self._years: dict[str, dict[str, FinancialYearInfo]] = {}
        self._counters: dict[tuple[str, str], int] = {}
        self._seq = 0

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _snapshot(self) -> tuple:
        return (
            {k: dict(v) for k, v in self._accounts.items()},
            {k: list(v) for k, v in self._vouchers.items()},
            {k: list(v) for k, v in self._documents.items()},
            {k: dict(v) for k, v in self._years.items()},
            dict(self._counters),
            self._seq,
        )

    def _restore(self, snapshot: tuple) -> None:
        (
            self._accounts,
            self._vouchers,
            self._documents,
            self._years,
            self._counters,
            self._seq,
        ) = snapshot

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            snapshot = self._snapshot() if outermost else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._restore(snapshot)
                    logger.warning("unit_of_work_rolled_back")
                raise
            finally:
                self._depth -= 1

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account(self, company_id: str, account_id: str) -> AccountInfo | None:
        with self._lock:
            return self._accounts.get(company_id, {}).get(account_id)

    def list_accounts(self, company_id: str) -> list[AccountInfo]:
        with self._lock:
            return sorted(self._accounts.get(company_id, {}).values(), key=lambda a: a.seq)

    def list_vouchers(
        self, company_id: str, end_date: date | None = None
    ) -> list[VoucherInfo]:
        with self._lock:
            vouchers = self._vouchers.get(company_id, [])
            return [
                v for v in vouchers if end_date is None or v.voucher_date <= end_date
            ]

    def _list_documents_of(
        self, company_id: str, end_date: date | None, kind: type
    ) -> list:
        with self._lock:
            return [
                d
                for d in self._documents.get(company_id, [])
                if type(d) is kind and (end_date is None or d.doc_date <= end_date)
            ]

    def list_sales_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[SalesInvoiceInfo]:
        return self._list_documents_of(company_id, end_date, SalesInvoiceInfo)

    def list_purchase_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[PurchaseInvoiceInfo]:
        return self._list_documents_of(company_id, end_date, PurchaseInvoiceInfo)

    def list_sale_returns(
        self, company_id: str, end_date: date | None = None
    ) -> list[SaleReturnInfo]:
        return self._list_documents_of(company_id, end_date, SaleReturnInfo)

    def list_financial_years(self, company_id: str) -> list[FinancialYearInfo]:
        with self._lock:
            return sorted(
                self._years.get(company_id, {}).values(), key=lambda y: y.start_date
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_account(self, account: AccountInfo) -> AccountInfo:
        with self.unit_of_work():
            accounts = self._accounts.setdefault(account.company_id, {})
            if account.id in accounts:
                raise InvalidRecordError("account", f"duplicate id {account.id}")
            if any(a.code == account.code for a in accounts.values()):
                raise InvalidRecordError("account", f"duplicate code {account.code}")
            stored = dataclasses.replace(account, seq=self._next_seq())
            accounts[stored.id] = stored
            return stored

    def add_document(self, document: PartyDocumentInfo) -> PartyDocumentInfo:
        with self.unit_of_work():
            documents = self._documents.setdefault(document.company_id, [])
            if any(
                type(d) is type(document) and d.number == document.number
                for d in documents
            ):
                raise InvalidRecordError(
                    document.label.lower(), f"duplicate number {document.number}"
                )
            stored = dataclasses.replace(document, seq=self._next_seq())
            documents.append(stored)
            return stored

    def _voucher_no_taken(self, company_id: str, voucher_no: str) -> bool:
        return any(v.voucher_no == voucher_no for v in self._vouchers.get(company_id, []))

    def _store_voucher(self, voucher: VoucherInfo) -> VoucherInfo:
        entries = tuple(
            dataclasses.replace(e, seq=self._next_seq()) for e in voucher.entries
        )
        stored = dataclasses.replace(voucher, entries=entries, seq=self._next_seq())
        self._vouchers.setdefault(voucher.company_id, []).append(stored)
        return stored

    def add_voucher(self, voucher: VoucherInfo) -> VoucherInfo:
        with self.unit_of_work():
            if self._voucher_no_taken(voucher.company_id, voucher.voucher_no):
                raise InvalidRecordError(
                    "voucher", f"duplicate number {voucher.voucher_no}"
                )
            return self._store_voucher(voucher)

    def create_voucher(self, draft: VoucherDraft, prefix: str) -> VoucherInfo:
        with self.unit_of_work():
            key = (draft.company_id, prefix)
            for _ in range(self.MAX_NUMBERING_ATTEMPTS):
                self._counters[key] = self._counters.get(key, 0) + 1
                voucher_no = format_voucher_no(prefix, self._counters[key])
                if not self._voucher_no_taken(draft.company_id, voucher_no):
                    break
                logger.debug(
                    "voucher_number_taken",
                    extra={"company_id": draft.company_id, "voucher_no": voucher_no},
                )
            else:
                raise SequenceConflictError(
                    draft.company_id, prefix, self.MAX_NUMBERING_ATTEMPTS
                )

            voucher = VoucherInfo(
                company_id=draft.company_id,
                id=f"voucher-{self._seq + 1}",
                voucher_no=voucher_no,
                voucher_date=draft.voucher_date,
                voucher_type=draft.voucher_type,
                entries=draft.entries,
                narration=draft.narration,
            )
            return self._store_voucher(voucher)

    def save_financial_year(self, year: FinancialYearInfo) -> FinancialYearInfo:
        with self.unit_of_work():
            years = self._years.setdefault(year.company_id, {})
            existing = years.get(year.id)
            if existing is None:
                stored = dataclasses.replace(year, seq=self._next_seq())
            else:
                check_closed_year_update(existing, year)
                stored = dataclasses.replace(year, seq=existing.seq)
            years[stored.id] = stored
            return stored
