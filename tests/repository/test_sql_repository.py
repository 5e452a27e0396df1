"""
SqlEntryRepository and SequenceService over SQLite.

Covers:
- Sequence allocation per company and per name
- Voucher writing, reporting and year-end close end to end on the ORM
- Money columns keep their value through Numeric(38, 9)
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.records import VoucherEntryInfo, VoucherType
from ledger_kernel.exceptions import ClosedPeriodError, FinancialYearAlreadyClosedError
from ledger_kernel.services.sequence_service import SequenceService
from ledger_modules.reporting.service import ReportingService
from ledger_services.financial_years import FinancialYearService
from ledger_services.period_closer import PeriodCloser
from ledger_services.voucher_writer import VoucherWriter


class TestSequenceService:
    def test_strictly_increasing(self, sql_session):
        sequences = SequenceService(sql_session)
        values = [sequences.next_value("acme", "voucher:JV") for _ in range(4)]
        assert values == [1, 2, 3, 4]
        assert sequences.current_value("acme", "voucher:JV") == 4

    def test_independent_per_company_and_name(self, sql_session):
        sequences = SequenceService(sql_session)
        sequences.next_value("acme", "voucher:JV")
        sequences.next_value("acme", "voucher:JV")
        assert sequences.next_value("globex", "voucher:JV") == 1
        assert sequences.next_value("acme", "voucher:CPV") == 1
        assert sequences.current_value("acme", "record") is None

    def test_rollback_returns_value(self, sql_session):
        sequences = SequenceService(sql_session)
        sequences.next_value("acme", "record")
        savepoint = sql_session.begin_nested()
        sequences.next_value("acme", "record")
        savepoint.rollback()
        assert sequences.next_value("acme", "record") == 2


class TestEndToEnd:
    @pytest.fixture
    def clock(self):
        return DeterministicClock(datetime(2024, 12, 31, tzinfo=timezone.utc))

    @pytest.fixture
    def repository(self, sql_repository):
        return sql_repository

    @pytest.fixture
    def books(self, ledger):
        chart = {
            "cash": ledger.account("1000", "Cash", "CASH", open_debit=1000),
            "customer": ledger.account("1100", "Customer A", "ASSET", party_type="CUSTOMER"),
            "capital": ledger.account("3000", "Capital", "CAPITAL", open_credit=1000),
            "sales": ledger.account("4000", "Sales", "INCOME"),
            "rent": ledger.account("5000", "Rent", "EXPENSE"),
        }
        ledger.sales_invoice("S-1", date(2024, 3, 1), chart["customer"], "800.25", income=chart["sales"])
        return chart

    def test_posting_and_reporting(self, sql_repository, clock, books):
        writer = VoucherWriter(sql_repository)
        voucher = writer.post_voucher(
            "acme",
            date(2024, 4, 1),
            VoucherType.CRV,
            [
                VoucherEntryInfo(books["cash"].id, "500.25"),
                VoucherEntryInfo(books["customer"].id, "-500.25"),
            ],
        )
        assert voucher.voucher_no == "CRV-1"

        reports = ReportingService(sql_repository, clock)
        assert reports.account_balance("acme", books["customer"].id, "2024-12-31") == Decimal("300")
        assert reports.account_balance("acme", books["cash"].id, "2024-12-31") == Decimal("1500.25")

        ageing = reports.customer_ageing("acme", books["customer"].id, "2024-04-30")
        assert [line.bill_balance for line in ageing.lines] == [Decimal("300")]
        assert ageing.lines[0].age_days == 60

        trial = reports.trial_balance("acme", "2024-01-01", "2024-12-31")
        assert trial.is_balanced

    def test_year_end_close(self, sql_repository, clock, books):
        FinancialYearService(sql_repository).open_year(
            "acme", 2024, date(2024, 1, 1), date(2024, 12, 31), year_id="fy-2024"
        )
        closer = PeriodCloser(sql_repository, clock=clock)

        result = closer.close_year("acme", "fy-2024", actor_id="actor-1")
        assert result.net_profit == Decimal("800.25")
        assert result.voucher.voucher_no == "CLOSE-1"
        assert result.year.is_closed

        stored = sql_repository.get_financial_year("acme", "fy-2024")
        assert stored.is_closed
        assert stored.closed_by == "actor-1"
        assert stored.closed_at is not None

        with pytest.raises(FinancialYearAlreadyClosedError):
            closer.close_year("acme", "fy-2024")
        closing = [
            v
            for v in sql_repository.list_vouchers("acme")
            if v.voucher_type is VoucherType.YEAR_END
        ]
        assert len(closing) == 1

        with pytest.raises(ClosedPeriodError):
            VoucherWriter(sql_repository).post_voucher(
                "acme",
                date(2024, 6, 1),
                VoucherType.JOURNAL,
                [
                    VoucherEntryInfo(books["rent"].id, "1"),
                    VoucherEntryInfo(books["cash"].id, "-1"),
                ],
            )
