"""
Reporting Module (``ledger_modules.reporting``).

Responsibility
--------------
Read-only module that generates reports from the ledger: account ledger
with running balance, customer and supplier ageing, ageing summary, trial
balance, balance sheet, cash flow and profit & loss.

Architecture position
---------------------
**Modules layer** -- read-only service.  Reporting never writes vouchers;
all statement generation is implemented as pure functions over the
posting stream.

Invariants enforced
-------------------
* No vouchers are created by this module (read-only guarantee).
* Reports derive entirely from stored records (no stored balances).

Failure modes
-------------
* Usage errors are raised before any read.
* Unexpected failures surface as ``ReportGenerationError``.

Audit relevance
---------------
Report generation is deterministic and reproducible from the stored
records; rendering the same report twice gives byte-identical JSON.
"""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AgeingLine,
    AgeingReport,
    AgeingSummaryReport,
    AgeingSummaryRow,
    BalanceSheetLine,
    BalanceSheetReport,
    BucketTotal,
    CashFlowActivity,
    CashFlowLine,
    CashFlowReport,
    LedgerLine,
    LedgerReport,
    ProfitAndLossLine,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceLine,
    TrialBalanceReport,
    TrialBalanceTotals,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Models
    "ReportType",
    "ReportMetadata",
    "LedgerLine",
    "LedgerReport",
    "AgeingLine",
    "AgeingReport",
    "AgeingSummaryReport",
    "AgeingSummaryRow",
    "BucketTotal",
    "TrialBalanceLine",
    "TrialBalanceReport",
    "TrialBalanceTotals",
    "BalanceSheetLine",
    "BalanceSheetReport",
    "CashFlowActivity",
    "CashFlowLine",
    "CashFlowReport",
    "ProfitAndLossLine",
    "ProfitAndLossReport",
    # Rendering
    "render_to_dict",
]
