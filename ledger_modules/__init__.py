"""
Ledger Modules.

Thin orchestration layers over the Ledger Kernel and Engines.

Modules:
- Reporting: account ledger, ageing, trial balance, balance sheet,
  cash flow, profit & loss

Actual processing logic lives in the kernel and engines.
"""

from ledger_modules import reporting

__all__ = ["reporting"]
