"""
Pure domain layer.

This module contains typed records and value helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock abstraction)
- I/O

All domain objects are immutable and deterministic.
"""

from ledger_kernel.domain.amounts import ZERO, split_sides, to_decimal
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dates import DateRange, as_calendar_date, parse_report_date
from ledger_kernel.domain.postings import (
    InvoicePosting,
    LedgerPosting,
    OpeningPosting,
    PostingKind,
    ReturnPosting,
    StreamMode,
    VoucherPosting,
    build_posting_stream,
    postings_for_account,
)
from ledger_kernel.domain.records import (
    AccountInfo,
    AccountType,
    FinancialYearInfo,
    PartyDocumentInfo,
    PartyType,
    PurchaseInvoiceInfo,
    SaleReturnInfo,
    SalesInvoiceInfo,
    VoucherDraft,
    VoucherEntryInfo,
    VoucherInfo,
    VoucherType,
)

__all__ = [
    # Values
    "ZERO",
    "split_sides",
    "to_decimal",
    "DateRange",
    "as_calendar_date",
    "parse_report_date",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Records
    "AccountInfo",
    "AccountType",
    "FinancialYearInfo",
    "PartyDocumentInfo",
    "PartyType",
    "PurchaseInvoiceInfo",
    "SaleReturnInfo",
    "SalesInvoiceInfo",
    "VoucherDraft",
    "VoucherEntryInfo",
    "VoucherInfo",
    "VoucherType",
    # Postings
    "InvoicePosting",
    "LedgerPosting",
    "OpeningPosting",
    "PostingKind",
    "ReturnPosting",
    "StreamMode",
    "VoucherPosting",
    "build_posting_stream",
    "postings_for_account",
]
