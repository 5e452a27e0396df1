"""
Typed ledger records.

Responsibility:
    Immutable records exchanged between the repository boundary and the
    pure engines: accounts, vouchers with their entries, party documents
    (sales invoices, purchase invoices, sale returns) and financial years.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  Repositories build these from
    storage rows; engines and services consume them.

Invariants enforced:
    - Every record carries a ``company_id``; engines refuse to mix companies.
    - Account type and party type are closed enumerations.  Free-text values
      are normalised through ``parse()`` and unknown values are rejected,
      so no account silently falls into an unclassified bucket.
    - Monetary fields are Decimal; timestamps are truncated to calendar days.
    - ``seq`` is the creation order assigned by the repository and is the
      stable tie-break for records sharing a date.

Failure modes:
    - InvalidRecordError on a missing identifier, unknown enumeration value
      or non-numeric amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from ledger_kernel.domain.amounts import ZERO, to_decimal
from ledger_kernel.domain.dates import as_calendar_date
from ledger_kernel.exceptions import InvalidRecordError


def _require(record_type: str, **values: object) -> None:
    for name, value in values.items():
        if value is None or value == "":
            raise InvalidRecordError(record_type, f"{name} is required")


class AccountType(str, Enum):
    """Chart-of-accounts type of an account."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    CAPITAL = "CAPITAL"
    INCOME = "INCOME"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    COST = "COST"
    BANK = "BANK"
    CASH = "CASH"

    @classmethod
    def parse(cls, value: str | AccountType) -> AccountType:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidRecordError("account", f"unknown account type {value!r}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvalidRecordError(
                "account", f"unknown account type {value!r}"
            ) from None


class PartyType(str, Enum):
    """Counterparty role of an account; overrides the type for classification."""

    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"
    BANKS = "BANKS"
    CASH = "CASH"
    EMPLOYEE = "EMPLOYEE"

    @classmethod
    def parse(cls, value: str | PartyType | None) -> PartyType | None:
        if value is None or isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidRecordError("account", f"unknown party type {value!r}")
        text = value.strip().upper()
        if not text:
            return None
        text = _PARTY_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise InvalidRecordError(
                "account", f"unknown party type {value!r}"
            ) from None


# Spellings found in legacy data.
_PARTY_ALIASES = {
    "EMPLOYES": "EMPLOYEE",
    "EMPLOYEES": "EMPLOYEE",
    "BANK": "BANKS",
}


class VoucherType(str, Enum):
    """Voucher header types."""

    CPV = "CPV"  # cash payment
    CRV = "CRV"  # cash receipt
    CONTRA = "CONTRA"
    JOURNAL = "JOURNAL"
    EXPENSE = "EXPENSE"
    YEAR_END = "YEAR_END"
    # Mirrors of party documents
    SALES = "SALES"
    PURCHASE = "PURCHASE"
    SALE_RETURN = "SALE_RETURN"


@dataclass(frozen=True)
class AccountInfo:
    """
    Account with its opening balance.

    Guarantees:
        - ``opening_net == open_debit - open_credit``.
        - ``open_date`` is None when the opening balance applies from the
          beginning of records.
    """

    company_id: str
    id: str
    code: str
    name: str
    account_type: AccountType
    party_type: PartyType | None = None
    open_debit: Decimal = ZERO
    open_credit: Decimal = ZERO
    open_date: date | None = None
    seq: int = 0

    def __post_init__(self) -> None:
        _require("account", company_id=self.company_id, id=self.id, code=self.code)
        object.__setattr__(self, "account_type", AccountType.parse(self.account_type))
        object.__setattr__(self, "party_type", PartyType.parse(self.party_type))
        object.__setattr__(
            self, "open_debit", to_decimal(self.open_debit, "open_debit")
        )
        object.__setattr__(
            self, "open_credit", to_decimal(self.open_credit, "open_credit")
        )
        if self.open_date is not None:
            object.__setattr__(self, "open_date", as_calendar_date(self.open_date))

    @property
    def opening_net(self) -> Decimal:
        return self.open_debit - self.open_credit


@dataclass(frozen=True)
class VoucherEntryInfo:
    """A signed movement on one account; positive is a debit."""

    account_id: str
    amount: Decimal
    narration: str = ""
    id: str = ""
    seq: int = 0

    def __post_init__(self) -> None:
        _require("voucher entry", account_id=self.account_id)
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class VoucherInfo:
    """
    Voucher header with its entries.

    Non-goals:
        - Does not enforce that entries sum to zero; stored vouchers from
          legacy data may not.  Write-time enforcement lives in the
          VoucherWriter.
    """

    company_id: str
    id: str
    voucher_no: str
    voucher_date: date
    voucher_type: VoucherType
    entries: tuple[VoucherEntryInfo, ...]
    narration: str = ""
    seq: int = 0

    def __post_init__(self) -> None:
        _require(
            "voucher",
            company_id=self.company_id,
            id=self.id,
            voucher_no=self.voucher_no,
            voucher_date=self.voucher_date,
        )
        object.__setattr__(self, "voucher_date", as_calendar_date(self.voucher_date))
        object.__setattr__(self, "entries", tuple(self.entries))
        if not isinstance(self.voucher_type, VoucherType):
            try:
                object.__setattr__(
                    self, "voucher_type", VoucherType(str(self.voucher_type).upper())
                )
            except ValueError:
                raise InvalidRecordError(
                    "voucher", f"unknown voucher type {self.voucher_type!r}"
                ) from None

    @property
    def total(self) -> Decimal:
        return sum((e.amount for e in self.entries), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total == ZERO


@dataclass(frozen=True)
class VoucherDraft:
    """An unnumbered voucher awaiting an atomic write."""

    company_id: str
    voucher_date: date
    voucher_type: VoucherType
    entries: tuple[VoucherEntryInfo, ...]
    narration: str = ""

    def __post_init__(self) -> None:
        _require("voucher", company_id=self.company_id, voucher_date=self.voucher_date)
        object.__setattr__(self, "voucher_date", as_calendar_date(self.voucher_date))
        object.__setattr__(self, "entries", tuple(self.entries))


@dataclass(frozen=True)
class PartyDocumentInfo:
    """
    Base for documents that act as postings against a party account.

    Subclasses fix the sign applied to ``total`` and the ledger label.
    """

    sign: ClassVar[int] = 1
    label: ClassVar[str] = "Document"

    company_id: str
    id: str
    number: str
    doc_date: date
    account_id: str
    total: Decimal
    seq: int = 0

    def __post_init__(self) -> None:
        _require(
            self.label.lower(),
            company_id=self.company_id,
            id=self.id,
            number=self.number,
            doc_date=self.doc_date,
            account_id=self.account_id,
        )
        object.__setattr__(self, "doc_date", as_calendar_date(self.doc_date))
        object.__setattr__(self, "total", to_decimal(self.total, "total"))

    @property
    def signed_amount(self) -> Decimal:
        return self.total * self.sign


@dataclass(frozen=True)
class SalesInvoiceInfo(PartyDocumentInfo):
    """Debits the customer account."""

    sign: ClassVar[int] = 1
    label: ClassVar[str] = "Sales Invoice"


@dataclass(frozen=True)
class PurchaseInvoiceInfo(PartyDocumentInfo):
    """Credits the supplier account."""

    sign: ClassVar[int] = -1
    label: ClassVar[str] = "Purchase Invoice"


@dataclass(frozen=True)
class SaleReturnInfo(PartyDocumentInfo):
    """Credits the customer account."""

    sign: ClassVar[int] = -1
    label: ClassVar[str] = "Sale Return"


@dataclass(frozen=True)
class FinancialYearInfo:
    """
    Company-scoped financial year.

    Lifecycle: open -> closed.  Closing is terminal.
    """

    company_id: str
    id: str
    year: int
    start_date: date
    end_date: date
    is_active: bool = True
    is_closed: bool = False
    closed_at: datetime | None = None
    closed_by: str | None = None
    seq: int = 0

    def __post_init__(self) -> None:
        _require(
            "financial year",
            company_id=self.company_id,
            id=self.id,
            start_date=self.start_date,
            end_date=self.end_date,
        )
        object.__setattr__(self, "start_date", as_calendar_date(self.start_date))
        object.__setattr__(self, "end_date", as_calendar_date(self.end_date))

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, other: FinancialYearInfo) -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date
