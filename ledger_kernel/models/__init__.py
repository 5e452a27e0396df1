"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.documents import PurchaseInvoice, SaleReturn, SalesInvoice
from ledger_kernel.models.financial_year import FinancialYear
from ledger_kernel.models.voucher import Voucher, VoucherEntry

__all__ = [
    "Account",
    "FinancialYear",
    "PurchaseInvoice",
    "SaleReturn",
    "SalesInvoice",
    "Voucher",
    "VoucherEntry",
]
