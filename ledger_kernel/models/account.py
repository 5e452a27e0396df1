"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts, including each
    account's opening balance.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Account code is unique within a company (uq_account_company_code).
    - Opening balance is stored as the pair (open_debit, open_credit).
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.records import AccountInfo


class Account(TrackedBase):
    """Chart of accounts row, scoped to one company."""

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_company", "company_id"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # ASSET / LIABILITY / EQUITY / CAPITAL / INCOME / REVENUE / EXPENSE / COST / BANK / CASH
    account_type: Mapped[str] = mapped_column(String(20), nullable=False)
    party_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    open_debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )
    open_credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )
    open_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    def to_dto(self) -> AccountInfo:
        """Convert ORM model to frozen domain record."""
        return AccountInfo(
            company_id=self.company_id,
            id=self.id,
            code=self.code,
            name=self.name,
            account_type=self.account_type,
            party_type=self.party_type,
            open_debit=self.open_debit,
            open_credit=self.open_credit,
            open_date=self.open_date,
            seq=self.seq,
        )

    @classmethod
    def from_dto(cls, dto: AccountInfo) -> "Account":
        """Create ORM model from domain record."""
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            code=dto.code,
            name=dto.name,
            account_type=dto.account_type.value,
            party_type=dto.party_type.value if dto.party_type else None,
            open_debit=dto.open_debit,
            open_credit=dto.open_credit,
            open_date=dto.open_date,
            seq=dto.seq,
        )
