"""
VoucherWriter -- atomic, balanced, numbered voucher creation.

Responsibility:
    Validates a voucher before it is written and hands it to the
    repository, which numbers and stores the header and all entries in one
    unit of work.

Architecture position:
    Services -- imperative shell.  The only write path for ordinary
    vouchers; PeriodCloser posts its closing voucher through it as well.

Invariants enforced:
    - At least two entries, none with a zero amount.
    - Every entry's account belongs to the voucher's company.
    - Entry amounts sum to exactly zero (checked at write time).
    - No posting into a closed financial year.
    - The voucher number is allocated by the repository's atomic counter
      in the same unit of work as the insert, never by counting rows.

Failure modes:
    - MissingCompanyError: no company id.
    - EmptyVoucherError: fewer than two entries or a zero amount.
    - CrossCompanyPostingError: an account is not owned by the company.
    - UnbalancedVoucherError: amounts do not net to zero.
    - ClosedPeriodError: voucher date inside a closed year.
    - SequenceConflictError: numbering retries exhausted.

Audit relevance:
    Every posted voucher is logged with its number, type, date, entry
    count and total debit.  Nothing is written when validation fails.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.dates import as_calendar_date
from ledger_kernel.domain.records import (
    VoucherDraft,
    VoucherEntryInfo,
    VoucherInfo,
    VoucherType,
)
from ledger_kernel.exceptions import (
    CrossCompanyPostingError,
    EmptyVoucherError,
    MissingCompanyError,
    UnbalancedVoucherError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.repository.base import EntryRepository
from ledger_modules.reporting.config import ReportingConfig
from ledger_services.financial_years import FinancialYearService

logger = get_logger("services.voucher_writer")


class VoucherWriter:
    """
    Validates and posts vouchers.

    Contract:
        ``post_voucher`` either stores the complete voucher with a fresh
        number or raises without writing anything.

    Non-goals:
        - No update or delete; corrections are new offsetting vouchers.
    """

    def __init__(
        self,
        repository: EntryRepository,
        config: ReportingConfig | None = None,
        years: FinancialYearService | None = None,
    ):
        self._repository = repository
        self._config = config or ReportingConfig.with_defaults()
        self._years = years or FinancialYearService(repository)

    def validate(
        self,
        company_id: str,
        entries: Sequence[VoucherEntryInfo],
    ) -> None:
        """
        Structural checks that need no period lookup.

        Raises:
            EmptyVoucherError, CrossCompanyPostingError, UnbalancedVoucherError
        """
        if len(entries) < 2:
            raise EmptyVoucherError("a voucher needs at least two entries")
        for entry in entries:
            if entry.amount == ZERO:
                raise EmptyVoucherError(
                    f"entry on account {entry.account_id} has a zero amount"
                )
            if self._repository.get_account(company_id, entry.account_id) is None:
                raise CrossCompanyPostingError(company_id, entry.account_id)

        debits = sum((e.amount for e in entries if e.amount > ZERO), ZERO)
        credits = sum((-e.amount for e in entries if e.amount < ZERO), ZERO)
        if debits != credits:
            raise UnbalancedVoucherError(debits, credits)

    def post_voucher(
        self,
        company_id: str,
        voucher_date: date,
        voucher_type: VoucherType,
        entries: Sequence[VoucherEntryInfo],
        narration: str = "",
        actor_id: str | None = None,
    ) -> VoucherInfo:
        """
        Validate, number and store a voucher.

        Args:
            company_id: Tenant.
            voucher_date: Posting date.
            voucher_type: Header type; selects the numbering prefix.
            entries: Signed entries (positive = debit).
            narration: Header narration.
            actor_id: Who is posting (for logs).

        Returns:
            The stored VoucherInfo with its number.
        """
        if not company_id:
            raise MissingCompanyError("post_voucher")
        voucher_date = as_calendar_date(voucher_date)
        voucher_type = VoucherType(voucher_type)
        entries = tuple(entries)

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            self.validate(company_id, entries)
            self._years.ensure_open_period(company_id, voucher_date)

            draft = VoucherDraft(
                company_id=company_id,
                voucher_date=voucher_date,
                voucher_type=voucher_type,
                entries=entries,
                narration=narration,
            )
            prefix = self._config.prefix_for(voucher_type)
            with self._repository.unit_of_work():
                voucher = self._repository.create_voucher(draft, prefix)

            logger.info(
                "voucher_posted",
                extra={
                    "voucher_id": voucher.id,
                    "voucher_no": voucher.voucher_no,
                    "voucher_type": voucher.voucher_type.value,
                    "voucher_date": voucher.voucher_date.isoformat(),
                    "entry_count": len(voucher.entries),
                    "total_debit": str(
                        sum((e.amount for e in entries if e.amount > ZERO), ZERO)
                    ),
                },
            )
        return voucher
