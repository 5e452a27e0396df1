"""
Reporting-specific test fixtures.

Provides:
- ReportingConfig and ReportingService instances over the in-memory repository
- A trading scenario with sales, purchases, receipts and payments
"""

from datetime import date

import pytest

from ledger_kernel.domain.records import VoucherType
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.service import ReportingService


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Standard reporting configuration for tests."""
    return ReportingConfig.with_defaults()


@pytest.fixture
def reporting_service(
    repository,
    deterministic_clock,
    reporting_config,
) -> ReportingService:
    """ReportingService wired to the in-memory repository."""
    return ReportingService(
        repository=repository,
        clock=deterministic_clock,
        config=reporting_config,
    )


@pytest.fixture
def trading_year(ledger, chart):
    """
    One quarter of trading on the standard chart.

    Jan  5  bank loan of 2000 received into the bank
    Jan 10  sale of 1500 on invoice S-1
    Jan 20  purchase of 600 on invoice P-1
    Feb  1  customer pays 1000 into the bank
    Feb 15  rent of 200 paid in cash
    Mar  1  equipment of 900 bought from the bank
    Mar 10  supplier paid 600 from the bank
    """
    ledger.voucher(
        date(2024, 1, 5),
        (chart["bank"], "2000"),
        (chart["loan"], "-2000"),
        voucher_type=VoucherType.CRV,
        narration="Loan drawdown",
    )
    ledger.sales_invoice("S-1", date(2024, 1, 10), chart["customer"], "1500", income=chart["sales"])
    ledger.purchase_invoice("P-1", date(2024, 1, 20), chart["supplier"], "600", expense=chart["purchases"])
    ledger.voucher(
        date(2024, 2, 1),
        (chart["bank"], "1000"),
        (chart["customer"], "-1000"),
        voucher_type=VoucherType.CRV,
    )
    ledger.voucher(
        date(2024, 2, 15),
        (chart["rent"], "200"),
        (chart["cash"], "-200"),
        voucher_type=VoucherType.CPV,
    )
    ledger.voucher(
        date(2024, 3, 1),
        (chart["equipment"], "900"),
        (chart["bank"], "-900"),
        voucher_type=VoucherType.CPV,
    )
    ledger.voucher(
        date(2024, 3, 10),
        (chart["supplier"], "600"),
        (chart["bank"], "-600"),
        voucher_type=VoucherType.CPV,
    )
    return chart
