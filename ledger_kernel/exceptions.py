"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the reporting engine (HTTP handlers, CLI wrappers, batch jobs)
must map failures to user-facing outcomes without parsing message text.
Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (company_id, account_id, dates, amounts)

Example - handling a report request:
    try:
        report = reporting.trial_balance(company_id, start, end)
    except UsageError as e:
        return api_response(status=400, code=e.code)
    except ReportGenerationError as e:
        return api_response(status=500, code=e.code)  # generic message only

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- UsageError                  -- bad call, nothing computed
    |   +-- MissingCompanyError
    |   +-- MissingAccountIdError
    |   +-- InvalidDateError
    |   +-- InvalidDateRangeError
    |
    +-- DataError                   -- required reference data absent
    |   +-- AccountNotFoundError
    |   +-- CapitalAccountNotFoundError
    |   +-- InvalidRecordError
    |
    +-- PostingError                -- voucher rejected at write time
    |   +-- EmptyVoucherError
    |   +-- UnbalancedVoucherError
    |   +-- CrossCompanyPostingError
    |
    +-- PeriodError
    |   +-- FinancialYearNotFoundError
    |   +-- FinancialYearAlreadyClosedError
    |   +-- ClosedPeriodError
    |   +-- InvalidFinancialYearError
    |
    +-- ConcurrencyError
    |   +-- SequenceConflictError
    |
    +-- ReportGenerationError       -- unexpected failure inside a report

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|-----------------------------------
Usage        | MISSING_COMPANY               | No tenant identifier supplied
             | MISSING_ACCOUNT_ID            | Per-account report without account
             | INVALID_DATE                  | Date string not ISO YYYY-MM-DD
             | INVALID_DATE_RANGE            | from > to
-------------|-------------------------------|-----------------------------------
Data         | ACCOUNT_NOT_FOUND             | Account absent in this company
             | CAPITAL_ACCOUNT_NOT_FOUND     | Year-end close without CAPITAL acct
             | INVALID_RECORD                | Repository record failed validation
-------------|-------------------------------|-----------------------------------
Posting      | EMPTY_VOUCHER                 | Fewer than two entries / zero amount
             | UNBALANCED_VOUCHER            | Entry amounts do not sum to zero
             | CROSS_COMPANY_POSTING         | Entry account owned by other tenant
-------------|-------------------------------|-----------------------------------
Period       | FINANCIAL_YEAR_NOT_FOUND      | Year id unknown for company
             | FINANCIAL_YEAR_ALREADY_CLOSED | Second close attempt
             | CLOSED_PERIOD                 | Posting dated inside a closed year
             | INVALID_FINANCIAL_YEAR        | start > end or overlapping years
-------------|-------------------------------|-----------------------------------
Concurrency  | SEQUENCE_CONFLICT             | Numbering retries exhausted
-------------|-------------------------------|-----------------------------------
Report       | REPORT_GENERATION_FAILED      | Unexpected error while aggregating

===============================================================================
PROPAGATION
===============================================================================

Nothing in the kernel, engines or services retries.  Report reads are
idempotent and may be retried by the caller.  A period close must never be
retried blindly: a second attempt is rejected with
FinancialYearAlreadyClosedError by the state check, not by retry suppression.
"""

from datetime import date
from decimal import Decimal


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Usage errors


class UsageError(LedgerKernelError):
    """Base exception for invalid invocations."""

    code: str = "USAGE_ERROR"


class MissingCompanyError(UsageError):
    """No company (tenant) identifier was supplied."""

    code: str = "MISSING_COMPANY"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Company required for {operation}")


class MissingAccountIdError(UsageError):
    """A per-account report was requested without an account identifier."""

    code: str = "MISSING_ACCOUNT_ID"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Account required for {operation}")


class InvalidDateError(UsageError):
    """A date argument could not be parsed."""

    code: str = "INVALID_DATE"

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = str(value)
        super().__init__(f"Invalid date for {field_name}: {value!r}")


class InvalidDateRangeError(UsageError):
    """Start date falls after end date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date.isoformat()
        self.end_date = end_date.isoformat()
        super().__init__(
            f"start_date ({start_date}) cannot be after end_date ({end_date})"
        )


# Data errors


class DataError(LedgerKernelError):
    """Base exception for missing or malformed reference data."""

    code: str = "DATA_ERROR"


class AccountNotFoundError(DataError):
    """Account does not exist within the company."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, company_id: str, account_id: str):
        self.company_id = company_id
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found for company {company_id}")


class CapitalAccountNotFoundError(DataError):
    """Year-end close requires a CAPITAL-type account."""

    code: str = "CAPITAL_ACCOUNT_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Capital account missing for company {company_id}")


class InvalidRecordError(DataError):
    """A record handed to the engine failed validation."""

    code: str = "INVALID_RECORD"

    def __init__(self, record_type: str, reason: str):
        self.record_type = record_type
        self.reason = reason
        super().__init__(f"Invalid {record_type}: {reason}")


# Posting errors


class PostingError(LedgerKernelError):
    """Base exception for rejected voucher writes."""

    code: str = "POSTING_ERROR"


class EmptyVoucherError(PostingError):
    """Voucher has too few entries or a zero-amount entry."""

    code: str = "EMPTY_VOUCHER"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Voucher rejected: {reason}")


class UnbalancedVoucherError(PostingError):
    """Signed entry amounts do not sum to zero."""

    code: str = "UNBALANCED_VOUCHER"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = str(total_debit)
        self.total_credit = str(total_credit)
        super().__init__(
            f"Voucher not balanced: debits={total_debit}, credits={total_credit}"
        )


class CrossCompanyPostingError(PostingError):
    """An entry references an account owned by another company."""

    code: str = "CROSS_COMPANY_POSTING"

    def __init__(self, company_id: str, account_id: str):
        self.company_id = company_id
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} does not belong to company {company_id}"
        )


# Period errors


class PeriodError(LedgerKernelError):
    """Base exception for financial year errors."""

    code: str = "PERIOD_ERROR"


class FinancialYearNotFoundError(PeriodError):
    """Financial year does not exist within the company."""

    code: str = "FINANCIAL_YEAR_NOT_FOUND"

    def __init__(self, company_id: str, financial_year_id: str):
        self.company_id = company_id
        self.financial_year_id = financial_year_id
        super().__init__(
            f"Financial year {financial_year_id} not found for company {company_id}"
        )


class FinancialYearAlreadyClosedError(PeriodError):
    """Closing is terminal; a second close is rejected."""

    code: str = "FINANCIAL_YEAR_ALREADY_CLOSED"

    def __init__(self, financial_year_id: str, year: int):
        self.financial_year_id = financial_year_id
        self.year = year
        super().__init__(f"Financial year {year} is already closed")


class ClosedPeriodError(PeriodError):
    """Posting dated inside a closed financial year."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, year: int, posting_date: date):
        self.year = year
        self.posting_date = posting_date.isoformat()
        super().__init__(
            f"Financial period {year} is closed for the selected date {posting_date}"
        )


class InvalidFinancialYearError(PeriodError):
    """Financial year dates are inverted or overlap another year."""

    code: str = "INVALID_FINANCIAL_YEAR"

    def __init__(self, year: int, reason: str):
        self.year = year
        self.reason = reason
        super().__init__(f"Invalid financial year {year}: {reason}")


# Concurrency errors


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency conflicts."""

    code: str = "CONCURRENCY_ERROR"


class SequenceConflictError(ConcurrencyError):
    """Numbering could not allocate a unique value within the retry budget."""

    code: str = "SEQUENCE_CONFLICT"

    def __init__(self, company_id: str, sequence_name: str, attempts: int):
        self.company_id = company_id
        self.sequence_name = sequence_name
        self.attempts = attempts
        super().__init__(
            f"Could not allocate {sequence_name} number for company "
            f"{company_id} after {attempts} attempts"
        )


# Report boundary


class ReportGenerationError(LedgerKernelError):
    """
    Generic failure surfaced at the reporting boundary.

    The message never carries internals; the original exception is chained
    as ``__cause__`` and logged with its traceback.
    """

    code: str = "REPORT_GENERATION_FAILED"

    def __init__(self, report_type: str):
        self.report_type = report_type
        super().__init__("could not generate report")
