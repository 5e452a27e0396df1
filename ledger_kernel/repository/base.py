"""
EntryRepository -- the data-access boundary of the ledger engine.

Responsibility:
    Supplies company-scoped typed records (accounts, vouchers with entries,
    sales invoices, purchase invoices, sale returns, financial years) and
    performs the few writes the engine needs: atomic numbered voucher
    creation and financial year state changes.

Architecture position:
    Kernel > Repository.  Injected into ReportingService, VoucherWriter,
    FinancialYearService and PeriodCloser.  There is no process-wide
    default instance; callers construct one per process or per request.

Invariants enforced:
    - Every read is filtered by ``company_id``.
    - ``create_voucher`` allocates the voucher number inside the same unit
      of work that persists the voucher and all of its entries.
    - ``unit_of_work()`` groups several writes so that they all succeed or
      all fail.
    - A closed financial year is never reopened or closed again by
      ``save_financial_year``; only its ``is_active`` flag may change.
    - ``get_financial_year(..., for_update=True)`` locks the year row until
      the unit of work ends, so a close decided on that read cannot race
      another close.

Failure modes:
    - SequenceConflictError when a unique voucher number cannot be found
      within the retry budget.
    - InvalidRecordError on a duplicate identifier or voucher number passed
      to the ``add_*`` methods.
    - FinancialYearAlreadyClosedError when saving an open state, or a
      second close, over a closed year.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
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
from ledger_kernel.exceptions import FinancialYearAlreadyClosedError


class EntryRepository(ABC):
    """
    Abstract repository of ledger records.

    Contract:
        Implementations return immutable domain records, never ORM rows.
        List methods return records ordered by ``seq`` (creation order)
        unless stated otherwise.

    Non-goals:
        - No update or delete of posted vouchers.  Corrections are new
          offsetting vouchers.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    def get_account(self, company_id: str, account_id: str) -> AccountInfo | None:
        ...

    @abstractmethod
    def list_accounts(self, company_id: str) -> list[AccountInfo]:
        ...

    @abstractmethod
    def list_vouchers(
        self, company_id: str, end_date: date | None = None
    ) -> list[VoucherInfo]:
        """Vouchers dated on/before ``end_date`` (all when None)."""
        ...

    @abstractmethod
    def list_sales_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[SalesInvoiceInfo]:
        ...

    @abstractmethod
    def list_purchase_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[PurchaseInvoiceInfo]:
        ...

    @abstractmethod
    def list_sale_returns(
        self, company_id: str, end_date: date | None = None
    ) -> list[SaleReturnInfo]:
        ...

    @abstractmethod
    def list_financial_years(self, company_id: str) -> list[FinancialYearInfo]:
        ...

    def get_financial_year(
        self, company_id: str, financial_year_id: str, *, for_update: bool = False
    ) -> FinancialYearInfo | None:
        """
        One financial year, or None.

        With ``for_update`` the year stays locked against concurrent
        writers until the enclosing unit of work ends.
        """
        for year in self.list_financial_years(company_id):
            if year.id == financial_year_id:
                return year
        return None

    def list_documents(
        self, company_id: str, end_date: date | None = None
    ) -> list[PartyDocumentInfo]:
        """All party documents of the company, ordered by ``seq``."""
        documents: list[PartyDocumentInfo] = [
            *self.list_sales_invoices(company_id, end_date),
            *self.list_purchase_invoices(company_id, end_date),
            *self.list_sale_returns(company_id, end_date),
        ]
        documents.sort(key=lambda d: d.seq)
        return documents

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    def add_account(self, account: AccountInfo) -> AccountInfo:
        """Store an account; the returned record carries its assigned ``seq``."""
        ...

    @abstractmethod
    def add_document(self, document: PartyDocumentInfo) -> PartyDocumentInfo:
        """Store a sales invoice, purchase invoice or sale return."""
        ...

    @abstractmethod
    def add_voucher(self, voucher: VoucherInfo) -> VoucherInfo:
        """Store a voucher that already carries its number (imports, mirrors)."""
        ...

    @abstractmethod
    def create_voucher(self, draft: VoucherDraft, prefix: str) -> VoucherInfo:
        """
        Number and store a voucher with all its entries atomically.

        The number is ``f"{prefix}-{n}"`` where ``n`` comes from a per-company,
        per-prefix counter allocated in the same unit of work.
        """
        ...

    @abstractmethod
    def save_financial_year(self, year: FinancialYearInfo) -> FinancialYearInfo:
        """Insert or update a financial year."""
        ...

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Context manager: all writes inside commit together or not at all."""
        ...


def format_voucher_no(prefix: str, number: int) -> str:
    return f"{prefix}-{number}"



def check_closed_year_update(
    existing: FinancialYearInfo, incoming: FinancialYearInfo
) -> None:
    """
    Reject every write to a closed year except a change of its
    ``is_active`` flag.

    Raises:
        FinancialYearAlreadyClosedError: on a reopen or a second close.
    """
    if not existing.is_closed:
        return
    toggled = dataclasses.replace(existing, is_active=not existing.is_active)
    if dataclasses.replace(incoming, seq=existing.seq) != toggled:
        raise FinancialYearAlreadyClosedError(existing.id, existing.year)
