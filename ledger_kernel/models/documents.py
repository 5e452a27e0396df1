"""
Module: ledger_kernel.models.documents
Responsibility: ORM persistence for the party documents that behave as
    postings: sales invoices, purchase invoices and sale returns.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Only the columns the ledger engine reads are modelled (number, date, party
account, total).  Line items belong to the invoicing application.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.records import (
    PurchaseInvoiceInfo,
    SaleReturnInfo,
    SalesInvoiceInfo,
)


class SalesInvoice(TrackedBase):
    __tablename__ = "sales_invoices"

    __table_args__ = (
        UniqueConstraint("company_id", "invoice_no", name="uq_sales_invoice_no"),
        Index("idx_sales_invoice_customer", "company_id", "customer_id"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    invoice_no: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    def to_dto(self) -> SalesInvoiceInfo:
        return SalesInvoiceInfo(
            company_id=self.company_id,
            id=self.id,
            number=self.invoice_no,
            doc_date=self.invoice_date,
            account_id=self.customer_id,
            total=self.total,
            seq=self.seq,
        )


class PurchaseInvoice(TrackedBase):
    __tablename__ = "purchase_invoices"

    __table_args__ = (
        UniqueConstraint("company_id", "invoice_no", name="uq_purchase_invoice_no"),
        Index("idx_purchase_invoice_supplier", "company_id", "supplier_id"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    invoice_no: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    supplier_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    def to_dto(self) -> PurchaseInvoiceInfo:
        return PurchaseInvoiceInfo(
            company_id=self.company_id,
            id=self.id,
            number=self.invoice_no,
            doc_date=self.invoice_date,
            account_id=self.supplier_id,
            total=self.total,
            seq=self.seq,
        )


class SaleReturn(TrackedBase):
    __tablename__ = "sale_returns"

    __table_args__ = (
        UniqueConstraint("company_id", "return_no", name="uq_sale_return_no"),
        Index("idx_sale_return_customer", "company_id", "customer_id"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    return_no: Mapped[str] = mapped_column(String(50), nullable=False)
    return_date: Mapped[date] = mapped_column(Date, nullable=False)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    def to_dto(self) -> SaleReturnInfo:
        return SaleReturnInfo(
            company_id=self.company_id,
            id=self.id,
            number=self.return_no,
            doc_date=self.return_date,
            account_id=self.customer_id,
            total=self.total,
            seq=self.seq,
        )
