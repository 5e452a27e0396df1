"""
Module: ledger_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (ledger_services, ledger_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel.domain and ledger_kernel.logging_config
    (and sibling engine modules).
    MUST NOT import ledger_services or ledger_modules.

Invariants enforced:
    - Purity: engines never read the clock.  As-of dates and ranges are
      passed in explicitly by the caller.
    - Decimal-only arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``ledger_engines.tracer``), emitting LEDGER_ENGINE_TRACE log records.

Usage:
    from ledger_engines.balance import BalanceCalculator
    from ledger_engines.ledger import LedgerComposer
    from ledger_engines.ageing import AgeingAllocator
    from ledger_engines.trial_balance import TrialBalanceAggregator
    from ledger_engines.classification import ClassificationResolver
"""

from ledger_kernel.logging_config import get_logger

logger = get_logger("engines")

from ledger_engines.ageing import (
    DEFAULT_BUCKETS,
    AgeBucket,
    AgeingAllocator,
    AgeingResult,
    AgeingRow,
    Bill,
    PartySide,
)
from ledger_engines.balance import BalanceCalculator
from ledger_engines.classification import (
    BalanceSheetSide,
    CashFlowSection,
    ClassificationResolver,
    StatementClass,
    TrialBalanceCategory,
)
from ledger_engines.ledger import (
    BROUGHT_FORWARD_NARRATION,
    ComposedLedger,
    LedgerComposer,
    LedgerRow,
)
from ledger_engines.tracer import compute_input_fingerprint, traced_engine
from ledger_engines.trial_balance import (
    TrialBalanceAggregator,
    TrialBalanceResult,
    TrialBalanceRow,
    TrialBalanceTotals,
)

__all__ = [
    # Ageing
    "AgeBucket",
    "AgeingAllocator",
    "AgeingResult",
    "AgeingRow",
    "Bill",
    "DEFAULT_BUCKETS",
    "PartySide",
    # Balance
    "BalanceCalculator",
    # Classification
    "BalanceSheetSide",
    "CashFlowSection",
    "ClassificationResolver",
    "StatementClass",
    "TrialBalanceCategory",
    # Ledger
    "BROUGHT_FORWARD_NARRATION",
    "ComposedLedger",
    "LedgerComposer",
    "LedgerRow",
    # Trial balance
    "TrialBalanceAggregator",
    "TrialBalanceResult",
    "TrialBalanceRow",
    "TrialBalanceTotals",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
