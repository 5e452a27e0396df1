"""
Tests for reporting configuration.

Verifies config validation, defaults, and factory methods.
NO database required.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
import yaml

from ledger_engines.ageing import DEFAULT_BUCKETS, AgeBucket
from ledger_kernel.domain.records import VoucherType
from ledger_kernel.exceptions import InvalidDateError
from ledger_modules.reporting.config import DEFAULT_VOUCHER_PREFIXES, ReportingConfig


class TestReportingConfig:
    """Tests for ReportingConfig."""

    def test_defaults(self):
        config = ReportingConfig.with_defaults()
        assert config.default_start_date == date(2000, 1, 1)
        assert config.mirror_voucher_prefixes == ("SI-", "PI-", "SR-")
        assert config.ageing_buckets == DEFAULT_BUCKETS
        assert config.balance_tolerance == Decimal("1")
        assert config.include_zero_balances is False
        assert config.cash_account_codes == ()

    def test_prefixes(self):
        config = ReportingConfig()
        assert config.closing_voucher_prefix == "CLOSE"
        assert config.prefix_for(VoucherType.JOURNAL) == "JV"
        assert config.prefix_for(VoucherType.CPV) == "CPV"

    def test_custom_prefix_merges_with_defaults(self):
        config = ReportingConfig(voucher_prefixes={"journal": "GJ"})
        assert config.prefix_for(VoucherType.JOURNAL) == "GJ"
        assert config.prefix_for(VoucherType.CRV) == DEFAULT_VOUCHER_PREFIXES[VoucherType.CRV]

    def test_empty_buckets_rejected(self):
        with pytest.raises(ValueError, match="ageing_buckets"):
            ReportingConfig(ageing_buckets=())

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError, match="balance_tolerance"):
            ReportingConfig(balance_tolerance=Decimal("-0.01"))


class TestFromDict:
    def test_scalars(self):
        config = ReportingConfig.from_dict({
            "default_start_date": "1995-07-01",
            "balance_tolerance": "0.5",
            "include_zero_balances": True,
            "cash_account_codes": ["1050"],
        })
        assert config.default_start_date == date(1995, 7, 1)
        assert config.balance_tolerance == Decimal("0.5")
        assert config.include_zero_balances is True
        assert config.cash_account_codes == ("1050",)

    def test_buckets(self):
        config = ReportingConfig.from_dict({
            "ageing_buckets": [
                {"name": "current", "min_days": 0, "max_days": 45},
                {"name": "overdue", "min_days": 46, "max_days": None},
            ],
        })
        assert config.ageing_buckets == (
            AgeBucket("current", 0, 45),
            AgeBucket("overdue", 46, None),
        )

    def test_closing_voucher_prefix(self):
        config = ReportingConfig.from_dict({"closing_voucher_prefix": "YE"})
        assert config.closing_voucher_prefix == "YE"
        assert config.prefix_for(VoucherType.JOURNAL) == "JV"

    def test_bad_start_date(self):
        with pytest.raises(InvalidDateError):
            ReportingConfig.from_dict({"default_start_date": "yesterday-ish"})


class TestFromYaml:
    def test_load(self, tmp_path):
        path = tmp_path / "reporting.yaml"
        path.write_text(yaml.safe_dump({
            "default_start_date": "2010-01-01",
            "mirror_voucher_prefixes": ["SINV-", "PINV-"],
            "voucher_prefixes": {"CPV": "PAY"},
            "closing_voucher_prefix": "YEC",
        }))

        config = ReportingConfig.from_yaml(path)
        assert config.default_start_date == date(2010, 1, 1)
        assert config.mirror_voucher_prefixes == ("SINV-", "PINV-")
        assert config.prefix_for(VoucherType.CPV) == "PAY"
        assert config.closing_voucher_prefix == "YEC"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ReportingConfig.from_yaml(path) == ReportingConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ReportingConfig.from_yaml(tmp_path / "missing.yaml")
