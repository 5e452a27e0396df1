"""
FinancialYearService -- financial year lifecycle and posting-date validation.

Responsibility:
    Opens company-scoped financial years and validates that a posting date
    does not fall inside a closed year before a voucher is written.

Architecture position:
    Services -- imperative shell over an injected EntryRepository.
    Called by VoucherWriter before every voucher write, and by callers
    that administer financial years.

Invariants enforced:
    - start_date <= end_date.
    - Years of one company never overlap and never share a year number.
    - Opening a year makes it the company's only active year.
    - No posting is accepted into a closed year (ClosedPeriodError).
    - Returns frozen ``FinancialYearInfo`` records, never storage rows.

Failure modes:
    - InvalidFinancialYearError: bad range, overlap or duplicate year.
    - ClosedPeriodError: posting date inside a closed year.
    - FinancialYearNotFoundError: unknown year id.

Audit relevance:
    Year creation is logged with company, year and range.  Rejected
    postings into closed years are logged at WARNING level.
"""

from __future__ import annotations

import dataclasses
from datetime import date

from ledger_kernel.db.base import new_id
from ledger_kernel.domain.records import FinancialYearInfo
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    FinancialYearNotFoundError,
    InvalidFinancialYearError,
    MissingCompanyError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.repository.base import EntryRepository

logger = get_logger("services.financial_years")


class FinancialYearService:
    """
    Service for financial year lifecycle.

    Contract:
        Lifecycle methods write through the repository's unit of work.
        Validation methods raise typed exceptions.

    Non-goals:
        - Does NOT close years; closing posts a voucher and lives in
          PeriodCloser.
        - A closed year is never reopened.
    """

    def __init__(self, repository: EntryRepository):
        self._repository = repository

    def open_year(
        self,
        company_id: str,
        year: int,
        start_date: date,
        end_date: date,
        year_id: str | None = None,
    ) -> FinancialYearInfo:
        """
        Create a financial year and make it the active one.

        Args:
            company_id: Tenant.
            year: Year number, unique within the company.
            start_date: First day (inclusive).
            end_date: Last day (inclusive).
            year_id: Optional identifier; generated when omitted.

        Returns:
            The stored FinancialYearInfo.

        Raises:
            InvalidFinancialYearError: If start_date > end_date, the range
                overlaps another year of the company, or the year number
                is taken.
        """
        if not company_id:
            raise MissingCompanyError("open_year")
        if start_date > end_date:
            raise InvalidFinancialYearError(
                year, f"start_date ({start_date}) cannot be after end_date ({end_date})"
            )

        new_year = FinancialYearInfo(
            company_id=company_id,
            id=year_id or new_id(),
            year=year,
            start_date=start_date,
            end_date=end_date,
            is_active=True,
        )

        with self._repository.unit_of_work():
            existing = self._repository.list_financial_years(company_id)
            for other in existing:
                if other.year == year:
                    raise InvalidFinancialYearError(year, "year already exists")
                if other.overlaps(new_year):
                    raise InvalidFinancialYearError(
                        year,
                        f"range {start_date}..{end_date} overlaps year {other.year}",
                    )
            for other in existing:
                if other.is_active:
                    self._repository.save_financial_year(
                        dataclasses.replace(other, is_active=False)
                    )
            stored = self._repository.save_financial_year(new_year)

        logger.info(
            "financial_year_opened",
            extra={
                "company_id": company_id,
                "year": year,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return stored

    def get_year(
        self, company_id: str, financial_year_id: str, *, for_update: bool = False
    ) -> FinancialYearInfo:
        """Look up a year; ``for_update`` locks it for the current unit of work."""
        year = self._repository.get_financial_year(
            company_id, financial_year_id, for_update=for_update
        )
        if year is None:
            raise FinancialYearNotFoundError(company_id, financial_year_id)
        return year

    def active_year(self, company_id: str) -> FinancialYearInfo | None:
        for year in self._repository.list_financial_years(company_id):
            if year.is_active:
                return year
        return None

    def year_for_date(self, company_id: str, day: date) -> FinancialYearInfo | None:
        for year in self._repository.list_financial_years(company_id):
            if year.contains(day):
                return year
        return None

    def ensure_open_period(self, company_id: str, day: date) -> None:
        """
        Reject postings dated inside a closed financial year.

        Dates outside every year are accepted.

        Raises:
            ClosedPeriodError: If the covering year is closed.
        """
        year = self.year_for_date(company_id, day)
        if year is not None and year.is_closed:
            logger.warning(
                "posting_rejected_closed_period",
                extra={
                    "company_id": company_id,
                    "year": year.year,
                    "posting_date": str(day),
                },
            )
            raise ClosedPeriodError(year.year, day)
