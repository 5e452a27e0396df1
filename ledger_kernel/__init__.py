"""
Ledger Kernel

Multi-tenant double-entry bookkeeping core:
- Typed account, voucher and party-document records
- A single posting stream over vouchers, invoices and returns
- Repository interface with in-memory and SQLAlchemy implementations
- Atomic voucher numbering
- Structured logging and typed errors
"""

__version__ = "0.1.0"
