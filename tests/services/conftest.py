"""
Service-layer test fixtures.

Provides VoucherWriter, FinancialYearService and PeriodCloser wired to the
in-memory repository, plus the 2024 financial year for the test company.
"""

from datetime import date

import pytest

from ledger_services.financial_years import FinancialYearService
from ledger_services.period_closer import PeriodCloser
from ledger_services.voucher_writer import VoucherWriter


@pytest.fixture
def years(repository) -> FinancialYearService:
    return FinancialYearService(repository)


@pytest.fixture
def writer(repository, years) -> VoucherWriter:
    return VoucherWriter(repository, years=years)


@pytest.fixture
def closer(repository, deterministic_clock, writer) -> PeriodCloser:
    return PeriodCloser(repository, clock=deterministic_clock, writer=writer)


@pytest.fixture
def year_2024(years):
    """Open financial year 2024 for the test company."""
    return years.open_year(
        "acme", 2024, date(2024, 1, 1), date(2024, 12, 31), year_id="fy-2024"
    )
