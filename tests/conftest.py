"""
Pytest fixtures for the ledger engine test suite.

Provides:
- Structured logging configured once per session, with captured output
- A deterministic clock
- An in-memory repository and a LedgerBuilder for seeding records
- A SQLite-backed session for SqlEntryRepository tests

Companies:
- COMPANY is the tenant every builder writes to by default.
- OTHER_COMPANY exists to prove isolation.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from ledger_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.records import (
    AccountInfo,
    PurchaseInvoiceInfo,
    SaleReturnInfo,
    SalesInvoiceInfo,
    VoucherEntryInfo,
    VoucherInfo,
    VoucherType,
)
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.repository.memory import InMemoryEntryRepository
from ledger_modules.reporting.config import DEFAULT_VOUCHER_PREFIXES

COMPANY = "acme"
OTHER_COMPANY = "globex"
TEST_ACTOR_ID = "actor-1"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, writer):
            writer.post_voucher(...)
            logs = captured_logs()
            assert any(r["message"] == "voucher_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-12-31 12:00 UTC."""
    return DeterministicClock(datetime(2024, 12, 31, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Record builders
# =============================================================================


class LedgerBuilder:
    """
    Seeds a repository with accounts, vouchers and party documents.

    Vouchers take ``(account, amount)`` pairs; positive amounts are debits.
    Documents optionally carry their mirror voucher, numbered with the
    reserved ``SI-``/``PI-``/``SR-`` prefix the way invoicing writes it.
    """

    def __init__(self, repository, company_id: str = COMPANY):
        self.repository = repository
        self.company_id = company_id
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def account(
        self,
        code: str,
        name: str | None = None,
        account_type: str = "ASSET",
        party_type: str | None = None,
        open_debit: Decimal | int | str = 0,
        open_credit: Decimal | int | str = 0,
        open_date: date | None = None,
    ) -> AccountInfo:
        return self.repository.add_account(
            AccountInfo(
                company_id=self.company_id,
                id=f"{self.company_id}-{code}",
                code=code,
                name=name or code,
                account_type=account_type,
                party_type=party_type,
                open_debit=open_debit,
                open_credit=open_credit,
                open_date=open_date,
            )
        )

    def voucher(
        self,
        voucher_date: date,
        *lines: tuple[AccountInfo, Decimal | int | str],
        voucher_type: VoucherType = VoucherType.JOURNAL,
        voucher_no: str | None = None,
        narration: str = "",
    ) -> VoucherInfo:
        n = self._next()
        return self.repository.add_voucher(
            VoucherInfo(
                company_id=self.company_id,
                id=f"{self.company_id}-v{n}",
                voucher_no=voucher_no or f"{DEFAULT_VOUCHER_PREFIXES[voucher_type]}-{n}",
                voucher_date=voucher_date,
                voucher_type=voucher_type,
                entries=tuple(
                    VoucherEntryInfo(account_id=account.id, amount=amount)
                    for account, amount in lines
                ),
                narration=narration,
            )
        )

    def sales_invoice(
        self,
        number: str,
        doc_date: date,
        customer: AccountInfo,
        total: Decimal | int | str,
        income: AccountInfo | None = None,
    ) -> SalesInvoiceInfo:
        invoice = self.repository.add_document(
            SalesInvoiceInfo(
                company_id=self.company_id,
                id=f"{self.company_id}-si-{number}",
                number=number,
                doc_date=doc_date,
                account_id=customer.id,
                total=total,
            )
        )
        if income is not None:
            self.voucher(
                doc_date,
                (customer, invoice.total),
                (income, -invoice.total),
                voucher_type=VoucherType.SALES,
                voucher_no=f"SI-{number}",
            )
        return invoice

    def purchase_invoice(
        self,
        number: str,
        doc_date: date,
        supplier: AccountInfo,
        total: Decimal | int | str,
        expense: AccountInfo | None = None,
    ) -> PurchaseInvoiceInfo:
        invoice = self.repository.add_document(
            PurchaseInvoiceInfo(
                company_id=self.company_id,
                id=f"{self.company_id}-pi-{number}",
                number=number,
                doc_date=doc_date,
                account_id=supplier.id,
                total=total,
            )
        )
        if expense is not None:
            self.voucher(
                doc_date,
                (expense, invoice.total),
                (supplier, -invoice.total),
                voucher_type=VoucherType.PURCHASE,
                voucher_no=f"PI-{number}",
            )
        return invoice

    def sale_return(
        self,
        number: str,
        doc_date: date,
        customer: AccountInfo,
        total: Decimal | int | str,
        income: AccountInfo | None = None,
    ) -> SaleReturnInfo:
        sale_return = self.repository.add_document(
            SaleReturnInfo(
                company_id=self.company_id,
                id=f"{self.company_id}-sr-{number}",
                number=number,
                doc_date=doc_date,
                account_id=customer.id,
                total=total,
            )
        )
        if income is not None:
            self.voucher(
                doc_date,
                (income, sale_return.total),
                (customer, -sale_return.total),
                voucher_type=VoucherType.SALE_RETURN,
                voucher_no=f"SR-{number}",
            )
        return sale_return


@pytest.fixture
def repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def ledger(repository) -> LedgerBuilder:
    """Builder writing to COMPANY in the in-memory repository."""
    return LedgerBuilder(repository)


@pytest.fixture
def other_ledger(repository) -> LedgerBuilder:
    """Builder writing to OTHER_COMPANY in the same repository."""
    return LedgerBuilder(repository, OTHER_COMPANY)


@pytest.fixture
def chart(ledger) -> dict[str, AccountInfo]:
    """
    A small chart of accounts for COMPANY.

    Openings have no open date and balance: cash 1000 Dr, capital 1000 Cr.
    """
    return {
        "cash": ledger.account("1000", "Cash", "CASH", open_debit=1000),
        "bank": ledger.account("1010", "Bank", "BANK", party_type="BANKS"),
        "customer": ledger.account("1100", "Customer A", "ASSET", party_type="CUSTOMER"),
        "equipment": ledger.account("1500", "Equipment", "ASSET"),
        "supplier": ledger.account("2000", "Supplier B", "LIABILITY", party_type="SUPPLIER"),
        "loan": ledger.account("2500", "Bank Loan", "LIABILITY"),
        "capital": ledger.account("3000", "Capital", "CAPITAL", open_credit=1000),
        "sales": ledger.account("4000", "Sales", "INCOME"),
        "rent": ledger.account("5000", "Rent", "EXPENSE"),
        "purchases": ledger.account("5100", "Purchases", "COST"),
    }


# =============================================================================
# SQL session
# =============================================================================


@pytest.fixture
def sql_session():
    """Session on a fresh in-memory SQLite database with all tables."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        reset_engine()
