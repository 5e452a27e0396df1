"""
Ledger posting stream.

Responsibility:
    Unify every source of account movement behind one posting abstraction
    so that balances, ledgers, ageing and trial balances iterate a single
    chronologically ordered stream instead of merging tables themselves.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Posting variants:
    OpeningPosting  -- an account's opening net, dated ``open_date``
                       (or the beginning of records when it has none).
    VoucherPosting  -- net of one voucher's entries on one account.
    InvoicePosting  -- a sales invoice (debit customer) or purchase invoice
                       (credit supplier).
    ReturnPosting   -- a sale return (credit customer).

Stream modes:
    Invoices and returns are usually accompanied by a system-generated
    mirror voucher (numbered with a reserved prefix such as ``SI-``) that
    carries the same movement as proper double entry.

    DOUBLE_ENTRY -- openings plus every voucher posting, mirrors included.
                    Party documents are ignored.  Every voucher nets to zero,
                    so the whole stream nets to the sum of opening balances.
    DOCUMENT     -- openings, voucher postings, and party documents.  Mirror
                    voucher postings on CUSTOMER or SUPPLIER accounts are
                    dropped because the document itself stands in for them.
                    Mirror postings on other accounts (sales, purchases,
                    stock) are kept.

    Exclusion is by transaction kind (mirror prefix plus party account),
    never by matching amounts.

Invariants enforced:
    - Stream order is ``(posting_date, seq, account code)``; seq is the
      repository creation order, so identical inputs give identical order.
    - A stream never mixes companies.  A record from another company, or a
      voucher entry against an account unknown to the company, raises
      InvalidRecordError.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.records import (
    AccountInfo,
    PartyDocumentInfo,
    PartyType,
    PurchaseInvoiceInfo,
    SaleReturnInfo,
    SalesInvoiceInfo,
    VoucherInfo,
    VoucherType,
)
from ledger_kernel.exceptions import InvalidRecordError

OPENING_REFERENCE = "---"
OPENING_NARRATION = "OPENING BALANCE"

_MIRROR_EXCLUDED_PARTIES = frozenset({PartyType.CUSTOMER, PartyType.SUPPLIER})


class StreamMode(str, Enum):
    """Which sources make up a posting stream."""

    DOUBLE_ENTRY = "double_entry"
    DOCUMENT = "document"


class PostingKind(str, Enum):
    OPENING = "opening"
    VOUCHER = "voucher"
    SALES_INVOICE = "sales_invoice"
    PURCHASE_INVOICE = "purchase_invoice"
    SALE_RETURN = "sale_return"


@dataclass(frozen=True)
class LedgerPosting:
    """A signed movement on one account.  Positive amounts are debits."""

    company_id: str
    account_id: str
    posting_date: date
    amount: Decimal
    reference: str
    narration: str
    seq: int
    kind: PostingKind

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.posting_date, self.seq)


@dataclass(frozen=True)
class OpeningPosting(LedgerPosting):
    pass


@dataclass(frozen=True)
class VoucherPosting(LedgerPosting):
    voucher_id: str = ""
    voucher_type: VoucherType = VoucherType.JOURNAL
    is_mirror: bool = False


@dataclass(frozen=True)
class InvoicePosting(LedgerPosting):
    document_id: str = ""


@dataclass(frozen=True)
class ReturnPosting(LedgerPosting):
    document_id: str = ""


def is_mirror_voucher(voucher_no: str, mirror_prefixes: Sequence[str]) -> bool:
    """True when the voucher number carries a reserved document prefix."""
    return any(voucher_no.startswith(prefix) for prefix in mirror_prefixes)


def opening_posting(account: AccountInfo) -> OpeningPosting | None:
    """The opening balance as a posting, or None when it nets to zero."""
    net = account.opening_net
    if net == ZERO:
        return None
    return OpeningPosting(
        company_id=account.company_id,
        account_id=account.id,
        posting_date=account.open_date or date.min,
        amount=net,
        reference=OPENING_REFERENCE,
        narration=OPENING_NARRATION,
        seq=account.seq,
        kind=PostingKind.OPENING,
    )


def voucher_postings(
    voucher: VoucherInfo,
    mirror_prefixes: Sequence[str] = (),
) -> list[VoucherPosting]:
    """
    One posting per account touched by the voucher, netting repeated lines.

    Accounts appear in the order of their first entry.
    """
    nets: dict[str, Decimal] = {}
    narrations: dict[str, list[str]] = {}
    for entry in voucher.entries:
        nets[entry.account_id] = nets.get(entry.account_id, ZERO) + entry.amount
        narrations.setdefault(entry.account_id, []).append(entry.narration)

    mirror = is_mirror_voucher(voucher.voucher_no, mirror_prefixes)
    postings = []
    for account_id, net in nets.items():
        lines = narrations[account_id]
        if len(lines) == 1 and lines[0]:
            narration = lines[0]
        else:
            narration = voucher.narration or "Voucher Entry"
        postings.append(
            VoucherPosting(
                company_id=voucher.company_id,
                account_id=account_id,
                posting_date=voucher.voucher_date,
                amount=net,
                reference=voucher.voucher_no,
                narration=narration,
                seq=voucher.seq,
                kind=PostingKind.VOUCHER,
                voucher_id=voucher.id,
                voucher_type=voucher.voucher_type,
                is_mirror=mirror,
            )
        )
    return postings


def document_posting(document: PartyDocumentInfo) -> InvoicePosting | ReturnPosting:
    """Posting for a sales invoice, purchase invoice or sale return."""
    common = dict(
        company_id=document.company_id,
        account_id=document.account_id,
        posting_date=document.doc_date,
        amount=document.signed_amount,
        reference=document.number,
        narration=document.label,
        seq=document.seq,
        document_id=document.id,
    )
    if isinstance(document, SaleReturnInfo):
        return ReturnPosting(kind=PostingKind.SALE_RETURN, **common)
    if isinstance(document, PurchaseInvoiceInfo):
        return InvoicePosting(kind=PostingKind.PURCHASE_INVOICE, **common)
    if isinstance(document, SalesInvoiceInfo):
        return InvoicePosting(kind=PostingKind.SALES_INVOICE, **common)
    raise InvalidRecordError("document", f"unsupported document {type(document).__name__}")


def _check_company(company_id: str, record_company: str, record_type: str, record_id: str) -> None:
    if record_company != company_id:
        raise InvalidRecordError(
            record_type, f"{record_id} belongs to company {record_company}, not {company_id}"
        )


def build_posting_stream(
    company_id: str,
    accounts: Iterable[AccountInfo],
    vouchers: Iterable[VoucherInfo],
    documents: Iterable[PartyDocumentInfo] = (),
    mode: StreamMode = StreamMode.DOCUMENT,
    mirror_prefixes: Sequence[str] = (),
) -> tuple[LedgerPosting, ...]:
    """
    Assemble the ordered posting stream of one company.

    Args:
        company_id: Tenant whose records are being combined.
        accounts: The company's accounts (openings come from here).
        vouchers: The company's vouchers with entries.
        documents: Sales invoices, purchase invoices and sale returns.
            Ignored in DOUBLE_ENTRY mode.
        mode: StreamMode selecting the sources.
        mirror_prefixes: Voucher number prefixes of document mirrors.

    Returns:
        Postings sorted by ``(posting_date, seq)`` then account code.

    Raises:
        InvalidRecordError: A record belongs to another company, or a voucher
            entry references an account the company does not own.
    """
    by_id: dict[str, AccountInfo] = {}
    for account in accounts:
        _check_company(company_id, account.company_id, "account", account.id)
        by_id[account.id] = account

    postings: list[LedgerPosting] = []
    for account in by_id.values():
        opening = opening_posting(account)
        if opening is not None:
            postings.append(opening)

    for voucher in vouchers:
        _check_company(company_id, voucher.company_id, "voucher", voucher.id)
        for posting in voucher_postings(voucher, mirror_prefixes):
            account = by_id.get(posting.account_id)
            if account is None:
                raise InvalidRecordError(
                    "voucher",
                    f"{voucher.voucher_no} references unknown account {posting.account_id}",
                )
            if (
                mode is StreamMode.DOCUMENT
                and posting.is_mirror
                and account.party_type in _MIRROR_EXCLUDED_PARTIES
            ):
                continue
            postings.append(posting)

    if mode is StreamMode.DOCUMENT:
        for document in documents:
            _check_company(company_id, document.company_id, document.label.lower(), document.id)
            if document.account_id not in by_id:
                raise InvalidRecordError(
                    document.label.lower(),
                    f"{document.number} references unknown account {document.account_id}",
                )
            postings.append(document_posting(document))

    postings.sort(key=lambda p: (p.posting_date, p.seq, by_id[p.account_id].code))
    return tuple(postings)


def postings_for_account(
    stream: Iterable[LedgerPosting],
    account_id: str,
) -> tuple[LedgerPosting, ...]:
    """Filter a stream to one account, preserving order."""
    return tuple(p for p in stream if p.account_id == account_id)
