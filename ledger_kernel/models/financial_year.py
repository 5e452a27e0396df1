"""
Module: ledger_kernel.models.financial_year
Responsibility: ORM persistence for the financial year lifecycle.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - One row per (company_id, year) (uq_financial_year_company_year).
    - is_closed is a one-way flag: OPEN -> CLOSED.  The repository never
      writes is_closed=False on a closed row.
"""

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.records import FinancialYearInfo


def _utc(moment: datetime | None) -> datetime | None:
    # SQLite drops the offset; stored values are UTC.
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class FinancialYear(TrackedBase):
    """Company-scoped financial year."""

    __tablename__ = "financial_years"

    __table_args__ = (
        UniqueConstraint("company_id", "year", name="uq_financial_year_company_year"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    seq: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<FinancialYear {self.year}: {state}>"

    def to_dto(self) -> FinancialYearInfo:
        return FinancialYearInfo(
            company_id=self.company_id,
            id=self.id,
            year=self.year,
            start_date=self.start_date,
            end_date=self.end_date,
            is_active=self.is_active,
            is_closed=self.is_closed,
            closed_at=_utc(self.closed_at),
            closed_by=self.closed_by,
            seq=self.seq,
        )
