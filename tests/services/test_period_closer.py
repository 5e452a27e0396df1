"""
Tests for PeriodCloser.

Covers:
- Closing entries move income and expense balances into capital
- Profit credits capital, a loss debits it
- Closing is atomic and happens once
- Reports after the close
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from ledger_kernel.domain.records import VoucherType
from ledger_kernel.exceptions import (
    CapitalAccountNotFoundError,
    FinancialYearAlreadyClosedError,
    FinancialYearNotFoundError,
    InvalidFinancialYearError,
)
from ledger_kernel.repository.memory import InMemoryEntryRepository
from ledger_modules.reporting.service import ReportingService
from ledger_services.period_closer import CLOSING_NARRATION, PeriodCloser


@pytest.fixture
def trading(ledger, chart, year_2024):
    """Sales of 1500, purchases of 600 and rent of 200 during 2024."""
    ledger.sales_invoice("S-1", date(2024, 1, 10), chart["customer"], "1500", income=chart["sales"])
    ledger.purchase_invoice("P-1", date(2024, 1, 20), chart["supplier"], "600", expense=chart["purchases"])
    ledger.voucher(
        date(2024, 2, 15),
        (chart["rent"], "200"),
        (chart["cash"], "-200"),
        voucher_type=VoucherType.CPV,
    )
    return chart


class TestClosingEntries:
    def test_profit_credits_capital(self, closer, trading):
        entries, net_profit = closer.closing_entries("acme", date(2024, 12, 31))

        amounts = {e.account_id: e.amount for e in entries}
        assert amounts == {
            trading["sales"].id: Decimal("1500"),
            trading["rent"].id: Decimal("-200"),
            trading["purchases"].id: Decimal("-600"),
            trading["capital"].id: Decimal("-700"),
        }
        assert sum(amounts.values()) == 0
        assert net_profit == Decimal("700")
        assert all(e.narration == CLOSING_NARRATION for e in entries)

    def test_loss_debits_capital(self, closer, ledger, chart, year_2024):
        ledger.voucher(date(2024, 3, 1), (chart["rent"], "300"), (chart["cash"], "-300"))
        entries, net_profit = closer.closing_entries("acme", date(2024, 12, 31))

        amounts = {e.account_id: e.amount for e in entries}
        assert amounts[chart["capital"].id] == Decimal("300")
        assert net_profit == Decimal("-300")

    def test_nothing_to_close(self, closer, chart):
        entries, net_profit = closer.closing_entries("acme", date(2024, 12, 31))
        assert entries == []
        assert net_profit == Decimal("0")

    def test_missing_capital_account(self, deterministic_clock):
        repository = InMemoryEntryRepository()
        closer = PeriodCloser(repository, clock=deterministic_clock)
        with pytest.raises(CapitalAccountNotFoundError):
            closer.closing_entries("acme", date(2024, 12, 31))


class TestCloseYear:
    def test_close_year(self, closer, repository, trading, year_2024, captured_logs):
        result = closer.close_year("acme", year_2024.id, actor_id="actor-1")

        assert result.net_profit == Decimal("700")
        assert result.closing_date == date(2024, 12, 31)
        assert result.voucher.voucher_type is VoucherType.YEAR_END
        assert result.voucher.voucher_no == "CLOSE-1"
        assert result.voucher.narration == CLOSING_NARRATION
        assert result.voucher.is_balanced

        year = result.year
        assert year.is_closed
        assert year.closed_by == "actor-1"
        assert year.closed_at == datetime(2024, 12, 31, 12, 0, tzinfo=timezone.utc)
        assert repository.get_financial_year("acme", year_2024.id).is_closed

        closed = [r for r in captured_logs() if r["message"] == "period_closed"]
        assert len(closed) == 1
        assert closed[0]["voucher_no"] == "CLOSE-1"
        assert closed[0]["net_profit"] == "700"

    def test_profit_and_loss_accounts_zeroed(
        self, closer, repository, deterministic_clock, trading, year_2024
    ):
        closer.close_year("acme", year_2024.id)
        reports = ReportingService(repository, deterministic_clock)

        for key in ("sales", "rent", "purchases"):
            assert reports.account_balance("acme", trading[key].id, "2024-12-31") == 0
        assert reports.account_balance(
            "acme", trading["capital"].id, "2024-12-31"
        ) == Decimal("-1700")

        sheet = reports.balance_sheet("acme", "2024-12-31")
        assert sheet.net_profit == Decimal("0")
        assert sheet.is_balanced

    def test_closed_year_still_reports_result(
        self, closer, repository, deterministic_clock, trading, year_2024
    ):
        closer.close_year("acme", year_2024.id)
        pnl = ReportingService(repository, deterministic_clock).profit_and_loss(
            "acme", "2024-01-01", "2024-12-31"
        )
        assert pnl.net_profit == Decimal("700")

    def test_second_close_rejected(self, closer, repository, trading, year_2024, captured_logs):
        closer.close_year("acme", year_2024.id)
        vouchers_after_first = repository.list_vouchers("acme")

        with pytest.raises(FinancialYearAlreadyClosedError):
            closer.close_year("acme", year_2024.id)

        assert repository.list_vouchers("acme") == vouchers_after_first
        closing = [
            v for v in vouchers_after_first if v.voucher_type is VoucherType.YEAR_END
        ]
        assert len(closing) == 1
        messages = [r["message"] for r in captured_logs()]
        assert "period_close_rejected_already_closed" in messages

    def test_nothing_to_close_still_closes(self, closer, chart, year_2024):
        result = closer.close_year("acme", year_2024.id)
        assert result.voucher is None
        assert result.year.is_closed

    def test_closing_date_outside_year(self, closer, repository, trading, year_2024):
        with pytest.raises(InvalidFinancialYearError):
            closer.close_year("acme", year_2024.id, closing_date=date(2025, 1, 1))
        assert not repository.get_financial_year("acme", year_2024.id).is_closed

    def test_unknown_year(self, closer, chart):
        with pytest.raises(FinancialYearNotFoundError):
            closer.close_year("acme", "fy-missing")

    def test_failure_writes_nothing(self, deterministic_clock, year_2024, repository, ledger):
        sales = ledger.account("4000", "Sales", "INCOME")
        cash = ledger.account("1000", "Cash", "CASH")
        ledger.voucher(date(2024, 3, 1), (cash, "50"), (sales, "-50"))
        closer = PeriodCloser(repository, clock=deterministic_clock)

        with pytest.raises(CapitalAccountNotFoundError):
            closer.close_year("acme", year_2024.id)

        assert not repository.get_financial_year("acme", year_2024.id).is_closed
        assert len(repository.list_vouchers("acme")) == 1


class _StaleYearRepository(InMemoryEntryRepository):
    """Serves each financial year as first read, like a reader that missed a concurrent commit."""

    def __init__(self):
        super().__init__()
        self.lock_flags = []
        self._first_reads = {}

    def get_financial_year(self, company_id, financial_year_id, *, for_update=False):
        self.lock_flags.append(for_update)
        key = (company_id, financial_year_id)
        if key not in self._first_reads:
            self._first_reads[key] = super().get_financial_year(company_id, financial_year_id)
        return self._first_reads[key]


class TestConcurrentClose:
    """A close that decided on an outdated read must not close the year twice."""

    @pytest.fixture
    def repository(self):
        return _StaleYearRepository()

    def test_year_read_with_lock(self, closer, repository, chart, year_2024):
        closer.close_year("acme", year_2024.id)
        assert repository.lock_flags == [True]

    def test_second_close_on_outdated_read_rejected(
        self, closer, repository, chart, year_2024, deterministic_clock
    ):
        first = closer.close_year("acme", year_2024.id, actor_id="actor-1")
        deterministic_clock.advance(seconds=60)

        with pytest.raises(FinancialYearAlreadyClosedError):
            closer.close_year("acme", year_2024.id, actor_id="actor-2")

        (stored,) = repository.list_financial_years("acme")
        assert stored.closed_by == "actor-1"
        assert stored.closed_at == first.year.closed_at

    def test_next_year_opens_after_close(self, closer, years, repository, chart, year_2024):
        closer.close_year("acme", year_2024.id)
        years.open_year("acme", 2025, date(2025, 1, 1), date(2025, 12, 31))

        by_year = {y.year: y for y in repository.list_financial_years("acme")}
        assert by_year[2024].is_closed and not by_year[2024].is_active
        assert by_year[2025].is_active
