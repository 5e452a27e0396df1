"""
SqlEntryRepository -- SQLAlchemy 2.0 implementation of EntryRepository.

Responsibility:
    Read company-scoped ledger records from the ORM tables and perform
    atomic voucher creation and financial year updates.

Architecture position:
    Kernel > Repository.  Wraps a caller-supplied Session; the caller owns
    the outer transaction (typically ``session_scope()``).

Invariants enforced:
    - Every query filters on ``company_id``.
    - Voucher numbers come from SequenceService (locked counter row).
      ``uq_voucher_company_no`` rejects any duplicate; on IntegrityError the
      insert is rolled back to its savepoint and retried with the next
      counter value, up to MAX_NUMBERING_ATTEMPTS.
    - ``unit_of_work()`` is a SAVEPOINT: the voucher header and all entries
      are flushed inside it, so a failure leaves no partial voucher.
    - ``get_financial_year(..., for_update=True)`` is SELECT ... FOR UPDATE;
      a concurrent close blocks until the first one commits and then sees
      the year closed.

Failure modes:
    - SequenceConflictError after MAX_NUMBERING_ATTEMPTS collisions.
    - FinancialYearAlreadyClosedError when reopening or re-closing a closed
      year.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

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
from ledger_kernel.models import (
    Account,
    FinancialYear,
    PurchaseInvoice,
    SaleReturn,
    SalesInvoice,
    Voucher,
    VoucherEntry,
)
from ledger_kernel.repository.base import (
    EntryRepository,
    check_closed_year_update,
    format_voucher_no,
)
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("repository.sql")


class SqlEntryRepository(EntryRepository):
    """
    Repository over the ledger ORM tables.

    Non-goals:
        - Does NOT commit.  Transaction boundaries belong to the caller.
    """

    MAX_NUMBERING_ATTEMPTS = 5

    def __init__(self, session: Session):
        self._session = session
        self._sequences = SequenceService(session)

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        savepoint = self._session.begin_nested()
        try:
            yield
            self._session.flush()
        except BaseException:
            savepoint.rollback()
            logger.warning("unit_of_work_rolled_back")
            raise
        else:
            savepoint.commit()

    def _next_seq(self, company_id: str) -> int:
        return self._sequences.next_value(company_id, SequenceService.RECORD)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account(self, company_id: str, account_id: str) -> AccountInfo | None:
        row = self._session.execute(
            select(Account).where(
                Account.company_id == company_id, Account.id == account_id
            )
        ).scalar_one_or_none()
        return row.to_dto() if row else None

    def list_accounts(self, company_id: str) -> list[AccountInfo]:
        rows = self._session.execute(
            select(Account)
            .where(Account.company_id == company_id)
            .order_by(Account.seq)
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_vouchers(
        self, company_id: str, end_date: date | None = None
    ) -> list[VoucherInfo]:
        stmt = select(Voucher).where(Voucher.company_id == company_id)
        if end_date is not None:
            stmt = stmt.where(Voucher.voucher_date <= end_date)
        rows = self._session.execute(stmt.order_by(Voucher.seq)).scalars()
        return [row.to_dto() for row in rows]

    def list_sales_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[SalesInvoiceInfo]:
        stmt = select(SalesInvoice).where(SalesInvoice.company_id == company_id)
        if end_date is not None:
            stmt = stmt.where(SalesInvoice.invoice_date <= end_date)
        rows = self._session.execute(stmt.order_by(SalesInvoice.seq)).scalars()
        return [row.to_dto() for row in rows]

    def list_purchase_invoices(
        self, company_id: str, end_date: date | None = None
    ) -> list[PurchaseInvoiceInfo]:
        stmt = select(PurchaseInvoice).where(PurchaseInvoice.company_id == company_id)
        if end_date is not None:
            stmt = stmt.where(PurchaseInvoice.invoice_date <= end_date)
        rows = self._session.execute(stmt.order_by(PurchaseInvoice.seq)).scalars()
        return [row.to_dto() for row in rows]

    def list_sale_returns(
        self, company_id: str, end_date: date | None = None
    ) -> list[SaleReturnInfo]:
        stmt = select(SaleReturn).where(SaleReturn.company_id == company_id)
        if end_date is not None:
            stmt = stmt.where(SaleReturn.return_date <= end_date)
        rows = self._session.execute(stmt.order_by(SaleReturn.seq)).scalars()
        return [row.to_dto() for row in rows]

    def list_financial_years(self, company_id: str) -> list[FinancialYearInfo]:
        rows = self._session.execute(
            select(FinancialYear)
            .where(FinancialYear.company_id == company_id)
            .order_by(FinancialYear.start_date)
        ).scalars()
        return [row.to_dto() for row in rows]

    def get_financial_year(
        self, company_id: str, financial_year_id: str, *, for_update: bool = False
    ) -> FinancialYearInfo | None:
        stmt = select(FinancialYear).where(
            FinancialYear.company_id == company_id,
            FinancialYear.id == financial_year_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = self._session.execute(stmt).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_account(self, account: AccountInfo) -> AccountInfo:
        try:
            with self.unit_of_work():
                row = Account.from_dto(account)
                row.seq = self._next_seq(account.company_id)
                self._session.add(row)
        except IntegrityError:
            raise InvalidRecordError(
                "account", f"duplicate id or code {account.code}"
            ) from None
        return row.to_dto()

    def add_document(self, document: PartyDocumentInfo) -> PartyDocumentInfo:
        common = dict(
            id=document.id,
            company_id=document.company_id,
            total=document.total,
        )
        if isinstance(document, SalesInvoiceInfo):
            row = SalesInvoice(
                invoice_no=document.number,
                invoice_date=document.doc_date,
                customer_id=document.account_id,
                **common,
            )
        elif isinstance(document, PurchaseInvoiceInfo):
            row = PurchaseInvoice(
                invoice_no=document.number,
                invoice_date=document.doc_date,
                supplier_id=document.account_id,
                **common,
            )
        elif isinstance(document, SaleReturnInfo):
            row = SaleReturn(
                return_no=document.number,
                return_date=document.doc_date,
                customer_id=document.account_id,
                **common,
            )
        else:
            raise InvalidRecordError(
                "document", f"unsupported document {type(document).__name__}"
            )
        try:
            with self.unit_of_work():
                row.seq = self._next_seq(document.company_id)
                self._session.add(row)
        except IntegrityError:
            raise InvalidRecordError(
                document.label.lower(), f"duplicate number {document.number}"
            ) from None
        return row.to_dto()

    def _insert_voucher(
        self,
        company_id: str,
        voucher_no: str,
        voucher_date: date,
        voucher_type: str,
        narration: str,
        entries,
        voucher_id: str | None = None,
    ) -> Voucher:
        row = Voucher(
            company_id=company_id,
            voucher_no=voucher_no,
            voucher_date=voucher_date,
            voucher_type=voucher_type,
            narration=narration,
            seq=self._next_seq(company_id),
        )
        if voucher_id:
            row.id = voucher_id
        for entry in entries:
            row.entries.append(
                VoucherEntry(
                    account_id=entry.account_id,
                    amount=entry.amount,
                    narration=entry.narration,
                    seq=self._next_seq(company_id),
                )
            )
        self._session.add(row)
        self._session.flush()
        return row

    def add_voucher(self, voucher: VoucherInfo) -> VoucherInfo:
        try:
            with self.unit_of_work():
                row = self._insert_voucher(
                    voucher.company_id,
                    voucher.voucher_no,
                    voucher.voucher_date,
                    voucher.voucher_type.value,
                    voucher.narration,
                    voucher.entries,
                    voucher_id=voucher.id,
                )
        except IntegrityError:
            raise InvalidRecordError(
                "voucher", f"duplicate number {voucher.voucher_no}"
            ) from None
        return row.to_dto()

    def create_voucher(self, draft: VoucherDraft, prefix: str) -> VoucherInfo:
        sequence_name = SequenceService.voucher_sequence(prefix)
        for attempt in range(1, self.MAX_NUMBERING_ATTEMPTS + 1):
            number = self._sequences.next_value(draft.company_id, sequence_name)
            voucher_no = format_voucher_no(prefix, number)
            try:
                with self.unit_of_work():
                    row = self._insert_voucher(
                        draft.company_id,
                        voucher_no,
                        draft.voucher_date,
                        draft.voucher_type.value,
                        draft.narration,
                        draft.entries,
                    )
            except IntegrityError:
                logger.warning(
                    "voucher_number_conflict_retry",
                    extra={
                        "company_id": draft.company_id,
                        "voucher_no": voucher_no,
                        "attempt": attempt,
                    },
                )
                continue
            return row.to_dto()

        raise SequenceConflictError(
            draft.company_id, sequence_name, self.MAX_NUMBERING_ATTEMPTS
        )

    def save_financial_year(self, year: FinancialYearInfo) -> FinancialYearInfo:
        with self.unit_of_work():
            row = self._session.execute(
                select(FinancialYear)
                .where(
                    FinancialYear.company_id == year.company_id,
                    FinancialYear.id == year.id,
                )
                .with_for_update()
            ).scalar_one_or_none()
            if row is None:
                row = FinancialYear(
                    id=year.id,
                    company_id=year.company_id,
                    year=year.year,
                    seq=self._next_seq(year.company_id),
                )
                self._session.add(row)
            else:
                check_closed_year_update(row.to_dto(), year)
            row.start_date = year.start_date
            row.end_date = year.end_date
            row.is_active = year.is_active
            row.is_closed = year.is_closed
            row.closed_at = year.closed_at
            row.closed_by = year.closed_by
        return row.to_dto()
