"""
Tests for VoucherWriter.

Covers:
- Balanced vouchers are numbered per type prefix and stored whole
- Structural rejections write nothing
- Postings into a closed financial year are rejected
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from ledger_kernel.domain.records import VoucherEntryInfo, VoucherType
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    CrossCompanyPostingError,
    EmptyVoucherError,
    MissingCompanyError,
    UnbalancedVoucherError,
)
from ledger_modules.reporting.config import ReportingConfig
from ledger_services.voucher_writer import VoucherWriter


def _entries(*pairs):
    return [VoucherEntryInfo(account.id, amount) for account, amount in pairs]


class TestPostVoucher:
    def test_posts_balanced_voucher(self, writer, repository, chart):
        voucher = writer.post_voucher(
            "acme",
            date(2024, 2, 15),
            VoucherType.CPV,
            _entries((chart["rent"], "200"), (chart["cash"], "-200")),
            narration="February rent",
        )

        assert voucher.voucher_no == "CPV-1"
        assert voucher.voucher_type is VoucherType.CPV
        assert voucher.narration == "February rent"
        assert [e.amount for e in voucher.entries] == [Decimal("200"), Decimal("-200")]
        assert repository.list_vouchers("acme") == [voucher]

    def test_numbers_increase_per_prefix(self, writer, chart):
        entries = _entries((chart["rent"], "10"), (chart["cash"], "-10"))
        first = writer.post_voucher("acme", date(2024, 1, 1), VoucherType.JOURNAL, entries)
        second = writer.post_voucher("acme", date(2024, 1, 2), VoucherType.JOURNAL, entries)
        receipt = writer.post_voucher("acme", date(2024, 1, 3), "CRV", entries)

        assert [first.voucher_no, second.voucher_no] == ["JV-1", "JV-2"]
        assert receipt.voucher_no == "CRV-1"

    def test_custom_prefix(self, repository, chart):
        config = ReportingConfig(voucher_prefixes={VoucherType.JOURNAL: "GJ"})
        writer = VoucherWriter(repository, config)
        voucher = writer.post_voucher(
            "acme",
            date(2024, 1, 1),
            VoucherType.JOURNAL,
            _entries((chart["rent"], "10"), (chart["cash"], "-10")),
        )
        assert voucher.voucher_no == "GJ-1"

    def test_timestamp_is_truncated_to_date(self, writer, chart):
        voucher = writer.post_voucher(
            "acme",
            datetime(2024, 5, 6, 17, 30),
            VoucherType.JOURNAL,
            _entries((chart["rent"], "10"), (chart["cash"], "-10")),
        )
        assert voucher.voucher_date == date(2024, 5, 6)

    def test_logs_posting(self, writer, chart, captured_logs):
        writer.post_voucher(
            "acme",
            date(2024, 1, 1),
            VoucherType.JOURNAL,
            _entries((chart["rent"], "75.50"), (chart["cash"], "-75.50")),
            actor_id="actor-1",
        )
        posted = [r for r in captured_logs() if r["message"] == "voucher_posted"]
        assert len(posted) == 1
        assert posted[0]["voucher_no"] == "JV-1"
        assert posted[0]["total_debit"] == "75.50"
        assert posted[0]["company_id"] == "acme"
        assert posted[0]["actor_id"] == "actor-1"


class TestRejections:
    def test_missing_company(self, writer, chart):
        with pytest.raises(MissingCompanyError):
            writer.post_voucher(
                "",
                date(2024, 1, 1),
                VoucherType.JOURNAL,
                _entries((chart["rent"], "10"), (chart["cash"], "-10")),
            )

    def test_single_entry(self, writer, repository, chart):
        with pytest.raises(EmptyVoucherError):
            writer.post_voucher(
                "acme", date(2024, 1, 1), VoucherType.JOURNAL, _entries((chart["rent"], "10")),
            )
        assert repository.list_vouchers("acme") == []

    def test_zero_amount(self, writer, chart):
        with pytest.raises(EmptyVoucherError):
            writer.post_voucher(
                "acme",
                date(2024, 1, 1),
                VoucherType.JOURNAL,
                _entries((chart["rent"], "0"), (chart["cash"], "0")),
            )

    def test_unbalanced(self, writer, repository, chart):
        with pytest.raises(UnbalancedVoucherError) as exc_info:
            writer.post_voucher(
                "acme",
                date(2024, 1, 1),
                VoucherType.JOURNAL,
                _entries((chart["rent"], "100"), (chart["cash"], "-99.99")),
            )
        assert exc_info.value.total_debit == "100"
        assert exc_info.value.total_credit == "99.99"
        assert repository.list_vouchers("acme") == []

    def test_account_of_other_company(self, writer, repository, chart, other_ledger):
        foreign = other_ledger.account("1000", "Cash", "CASH")
        with pytest.raises(CrossCompanyPostingError) as exc_info:
            writer.post_voucher(
                "acme",
                date(2024, 1, 1),
                VoucherType.JOURNAL,
                _entries((chart["rent"], "10"), (foreign, "-10")),
            )
        assert exc_info.value.account_id == foreign.id
        assert repository.list_vouchers("acme") == []


class TestClosedPeriod:
    def test_posting_into_closed_year_rejected(
        self, writer, closer, repository, chart, year_2024, captured_logs
    ):
        closer.close_year("acme", year_2024.id)
        before = len(repository.list_vouchers("acme"))

        with pytest.raises(ClosedPeriodError) as exc_info:
            writer.post_voucher(
                "acme",
                date(2024, 6, 1),
                VoucherType.JOURNAL,
                _entries((chart["rent"], "10"), (chart["cash"], "-10")),
            )

        assert exc_info.value.year == 2024
        assert exc_info.value.posting_date == "2024-06-01"
        assert len(repository.list_vouchers("acme")) == before
        messages = [r["message"] for r in captured_logs()]
        assert "posting_rejected_closed_period" in messages

    def test_posting_after_closed_year_accepted(self, writer, closer, chart, year_2024):
        closer.close_year("acme", year_2024.id)
        voucher = writer.post_voucher(
            "acme",
            date(2025, 1, 2),
            VoucherType.JOURNAL,
            _entries((chart["rent"], "10"), (chart["cash"], "-10")),
        )
        assert voucher.voucher_date == date(2025, 1, 2)
