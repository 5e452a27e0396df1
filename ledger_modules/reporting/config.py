"""
Reporting Configuration Schema.

Defines the reporting defaults (beginning of records, ageing buckets,
balance-sheet tolerance), the reserved prefixes of system-generated
invoice mirror vouchers, voucher numbering prefixes and extra cash
account codes.  Loadable from a dict or a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

import yaml

from ledger_engines.ageing import DEFAULT_BUCKETS, AgeBucket
from ledger_kernel.domain.amounts import to_decimal
from ledger_kernel.domain.dates import parse_report_date
from ledger_kernel.domain.records import VoucherType
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


DEFAULT_VOUCHER_PREFIXES: dict[VoucherType, str] = {
    VoucherType.CPV: "CPV",
    VoucherType.CRV: "CRV",
    VoucherType.CONTRA: "CONTRA",
    VoucherType.JOURNAL: "JV",
    VoucherType.EXPENSE: "EXP",
    VoucherType.YEAR_END: "CLOSE",
    VoucherType.SALES: "SI",
    VoucherType.PURCHASE: "PI",
    VoucherType.SALE_RETURN: "SR",
}


def _voucher_type(key: VoucherType | str) -> VoucherType:
    if isinstance(key, VoucherType):
        return key
    return VoucherType(key.strip().upper())


@dataclass
class ReportingConfig:
    """
    Configuration schema for reporting and voucher numbering.

    Controls report defaults, mirror-voucher exclusion and numbering.
    """

    # "Beginning of records" when a report has no start date
    default_start_date: date = date(2000, 1, 1)

    # Voucher-number prefixes of invoice mirror vouchers
    mirror_voucher_prefixes: tuple[str, ...] = ("SI-", "PI-", "SR-")

    ageing_buckets: tuple[AgeBucket, ...] = DEFAULT_BUCKETS

    # Allowed |assets - (liabilities + equity)| on the balance sheet
    balance_tolerance: Decimal = Decimal("1")

    include_zero_balances: bool = False

    voucher_prefixes: dict[VoucherType, str] = field(
        default_factory=lambda: dict(DEFAULT_VOUCHER_PREFIXES),
    )

    # Codes treated as cash besides BANKS/CASH parties and BANK/CASH types
    cash_account_codes: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.ageing_buckets:
            raise ValueError("ageing_buckets cannot be empty")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")
        self.mirror_voucher_prefixes = tuple(self.mirror_voucher_prefixes)
        self.ageing_buckets = tuple(self.ageing_buckets)
        self.cash_account_codes = tuple(self.cash_account_codes)
        self.voucher_prefixes = {
            **DEFAULT_VOUCHER_PREFIXES,
            **{_voucher_type(k): v for k, v in self.voucher_prefixes.items()},
        }

    @property
    def closing_voucher_prefix(self) -> str:
        return self.voucher_prefixes[VoucherType.YEAR_END]

    def prefix_for(self, voucher_type: VoucherType) -> str:
        return self.voucher_prefixes[voucher_type]

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "default_start_date" in data:
            data["default_start_date"] = parse_report_date(
                data["default_start_date"], "default_start_date",
            )
        if "ageing_buckets" in data:
            data["ageing_buckets"] = tuple(
                b if isinstance(b, AgeBucket) else AgeBucket(**b)
                for b in data["ageing_buckets"]
            )
        if "balance_tolerance" in data:
            data["balance_tolerance"] = to_decimal(
                data["balance_tolerance"], "balance_tolerance",
            )
        if "closing_voucher_prefix" in data:
            prefixes = dict(data.get("voucher_prefixes") or {})
            prefixes[VoucherType.YEAR_END] = data.pop("closing_voucher_prefix")
            data["voucher_prefixes"] = prefixes
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """
        Load config from a YAML mapping.

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        logger.info("reporting_config_loading_from_yaml", extra={"path": str(path)})
        return cls.from_dict(data)
