"""Entry repositories: the data-access boundary of the ledger engine."""

from ledger_kernel.repository.base import EntryRepository, format_voucher_no
from ledger_kernel.repository.memory import InMemoryEntryRepository

__all__ = [
    "EntryRepository",
    "InMemoryEntryRepository",
    "format_voucher_no",
]
