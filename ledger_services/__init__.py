"""
ledger_services -- Package init and public API.

Responsibility:
    Write-side services that compose the pure engines with an injected
    EntryRepository: voucher posting, financial year lifecycle and the
    year-end close.  This is the only layer that writes vouchers or reads
    wall-clock time for audit fields.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        ledger_services/ -> ledger_engines/  (allowed)
        ledger_services/ -> ledger_kernel/   (allowed)
        ledger_engines/  -> ledger_services/ (FORBIDDEN)
        ledger_kernel/   -> ledger_services/ (FORBIDDEN)

Invariants enforced:
    - Layer isolation: ledger_kernel and ledger_engines never import from
      this package.

Audit relevance:
    - Every voucher write and every year close is logged with its actor.
"""

from ledger_kernel.logging_config import get_logger

logger = get_logger("services")

from ledger_services.financial_years import FinancialYearService
from ledger_services.period_closer import ClosingResult, PeriodCloser
from ledger_services.voucher_writer import VoucherWriter

__all__ = [
    "ClosingResult",
    "FinancialYearService",
    "PeriodCloser",
    "VoucherWriter",
]
