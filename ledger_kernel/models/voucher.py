"""
Module: ledger_kernel.models.voucher
Responsibility: ORM persistence for voucher headers and their signed entries.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Voucher number is unique within a company (uq_voucher_company_no).
      This constraint backs the retry-on-conflict numbering loop.
    - A voucher and its entries are inserted in one transaction
      (cascade="all, delete-orphan" on the relationship).
    - Entries are never updated in place; corrections are new vouchers.

Failure modes:
    - IntegrityError on a duplicate voucher number.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.records import VoucherEntryInfo, VoucherInfo


class Voucher(TrackedBase):
    """
    Voucher header.

    Non-goals:
        - Does not check that entries sum to zero; the VoucherWriter does.
    """

    __tablename__ = "vouchers"

    __table_args__ = (
        UniqueConstraint("company_id", "voucher_no", name="uq_voucher_company_no"),
        Index("idx_voucher_company_date", "company_id", "voucher_date"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    voucher_no: Mapped[str] = mapped_column(String(50), nullable=False)
    voucher_date: Mapped[date] = mapped_column(Date, nullable=False)
    voucher_type: Mapped[str] = mapped_column(String(20), nullable=False)
    narration: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    entries: Mapped[list["VoucherEntry"]] = relationship(
        back_populates="voucher",
        cascade="all, delete-orphan",
        order_by="VoucherEntry.seq",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Voucher {self.voucher_no} {self.voucher_date}>"

    def to_dto(self) -> VoucherInfo:
        """Convert ORM model to frozen domain record."""
        return VoucherInfo(
            company_id=self.company_id,
            id=self.id,
            voucher_no=self.voucher_no,
            voucher_date=self.voucher_date,
            voucher_type=self.voucher_type,
            narration=self.narration,
            entries=tuple(e.to_dto() for e in self.entries),
            seq=self.seq,
        )


class VoucherEntry(TrackedBase):
    """Signed movement on one account.  Positive amounts are debits."""

    __tablename__ = "voucher_entries"

    __table_args__ = (
        Index("idx_voucher_entry_voucher", "voucher_id"),
        Index("idx_voucher_entry_account", "account_id"),
    )

    voucher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vouchers.id"), nullable=False
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    narration: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    voucher: Mapped[Voucher] = relationship(back_populates="entries")

    def to_dto(self) -> VoucherEntryInfo:
        return VoucherEntryInfo(
            account_id=self.account_id,
            amount=self.amount,
            narration=self.narration,
            id=self.id,
            seq=self.seq,
        )
