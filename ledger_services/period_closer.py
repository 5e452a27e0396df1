"""
PeriodCloser -- irreversible year-end close.

Responsibility:
    Zeroes every income and expense account into the company's capital
    account with one synthetic closing voucher, then marks the financial
    year closed.

Architecture position:
    Services -- imperative shell.  Reads balances through the same posting
    stream and BalanceCalculator the reports use; writes through
    VoucherWriter and the repository.

State machine:
    OPEN -> CLOSED.  CLOSED is terminal; there is no reopen.

Invariants enforced:
    - The closing voucher and the year's closed flag are written in one
      unit of work: both or neither.
    - For each income/expense account with a non-zero balance as of the
      closing date, the voucher carries the negated balance, so the account
      nets to zero from that date on.
    - The capital account receives the sum of those balances: a profit
      credits capital, a loss debits it.
    - A closed year is rejected, never re-closed.  Callers must not retry
      blindly; the state check is the guard.
    - The year is read with a row lock inside the unit of work, so two
      concurrent closes cannot both see it open.

Failure modes:
    - MissingCompanyError: no company id.
    - FinancialYearNotFoundError: unknown year.
    - FinancialYearAlreadyClosedError: year already closed.
    - InvalidFinancialYearError: closing date outside the year.
    - CapitalAccountNotFoundError: the company has no CAPITAL-type account.
      Fatal, nothing is written.

Audit relevance:
    ``period_closed`` is logged with year, closing voucher number, net
    profit, actor and timestamp from the injected clock.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger_engines.balance import BalanceCalculator
from ledger_engines.classification import ClassificationResolver
from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dates import as_calendar_date
from ledger_kernel.domain.postings import StreamMode, build_posting_stream
from ledger_kernel.domain.records import (
    AccountInfo,
    AccountType,
    FinancialYearInfo,
    VoucherEntryInfo,
    VoucherInfo,
    VoucherType,
)
from ledger_kernel.exceptions import (
    CapitalAccountNotFoundError,
    FinancialYearAlreadyClosedError,
    InvalidFinancialYearError,
    MissingCompanyError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.repository.base import EntryRepository
from ledger_modules.reporting.config import ReportingConfig
from ledger_services.financial_years import FinancialYearService
from ledger_services.voucher_writer import VoucherWriter

logger = get_logger("services.period_closer")

CLOSING_NARRATION = "Year End Closing"


@dataclass(frozen=True)
class ClosingResult:
    """
    Outcome of a year-end close.

    ``voucher`` is None when every income and expense account was already
    at zero.
    """

    year: FinancialYearInfo
    voucher: VoucherInfo | None
    net_profit: Decimal
    closing_date: date


def find_capital_account(accounts: list[AccountInfo]) -> AccountInfo | None:
    """The first CAPITAL-type account in creation order."""
    capital = [a for a in accounts if a.account_type is AccountType.CAPITAL]
    if not capital:
        return None
    return min(capital, key=lambda a: a.seq)


class PeriodCloser:
    """
    Year-end close.

    Contract:
        ``close_year`` closes an open year exactly once.

    Non-goals:
        - Does NOT ask for confirmation; that belongs to the calling layer.
        - Does NOT roll balances into a new year's openings; the closing
          voucher carries the movement.
    """

    def __init__(
        self,
        repository: EntryRepository,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
        writer: VoucherWriter | None = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._years = FinancialYearService(repository)
        self._writer = writer or VoucherWriter(repository, self._config, self._years)
        self._resolver = ClassificationResolver(self._config.cash_account_codes)
        self._calculator = BalanceCalculator()

    def closing_entries(
        self,
        company_id: str,
        closing_date: date,
    ) -> tuple[list[VoucherEntryInfo], Decimal]:
        """
        Entries of the closing voucher and the net profit they transfer.

        Raises:
            CapitalAccountNotFoundError: No CAPITAL-type account exists.
        """
        accounts = self._repository.list_accounts(company_id)
        capital = find_capital_account(accounts)
        if capital is None:
            raise CapitalAccountNotFoundError(company_id)

        stream = build_posting_stream(
            company_id,
            accounts,
            self._repository.list_vouchers(company_id, closing_date),
            mode=StreamMode.DOUBLE_ENTRY,
            mirror_prefixes=self._config.mirror_voucher_prefixes,
        )
        balances = self._calculator.balances(stream, as_of=closing_date)

        entries: list[VoucherEntryInfo] = []
        total = ZERO
        for account in accounts:
            if not self._resolver.is_profit_and_loss(account):
                continue
            net = balances.get(account.id, ZERO)
            if net == ZERO:
                continue
            total += net
            entries.append(
                VoucherEntryInfo(
                    account_id=account.id,
                    amount=-net,
                    narration=CLOSING_NARRATION,
                )
            )

        if total != ZERO:
            entries.append(
                VoucherEntryInfo(
                    account_id=capital.id,
                    amount=total,
                    narration=CLOSING_NARRATION,
                )
            )
        return entries, ZERO - total

    def close_year(
        self,
        company_id: str,
        financial_year_id: str,
        closing_date: date | None = None,
        actor_id: str | None = None,
    ) -> ClosingResult:
        """
        Close a financial year.

        Args:
            company_id: Tenant.
            financial_year_id: Year to close.
            closing_date: Date of the closing voucher; defaults to the
                year's end date and must fall inside the year.
            actor_id: Who is closing (recorded as ``closed_by``).

        Returns:
            ClosingResult with the closed year and the closing voucher.
        """
        if not company_id:
            raise MissingCompanyError("close_year")

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            with self._repository.unit_of_work():
                year = self._years.get_year(
                    company_id, financial_year_id, for_update=True
                )
                if year.is_closed:
                    logger.warning(
                        "period_close_rejected_already_closed",
                        extra={"year": year.year, "closed_at": year.closed_at},
                    )
                    raise FinancialYearAlreadyClosedError(year.id, year.year)

                day = as_calendar_date(closing_date or year.end_date)
                if not year.contains(day):
                    raise InvalidFinancialYearError(
                        year.year, f"closing date {day} is outside the year"
                    )

                entries, net_profit = self.closing_entries(company_id, day)
                voucher = None
                if entries:
                    voucher = self._writer.post_voucher(
                        company_id,
                        day,
                        VoucherType.YEAR_END,
                        entries,
                        narration=CLOSING_NARRATION,
                        actor_id=actor_id,
                    )

                closed = self._repository.save_financial_year(
                    dataclasses.replace(
                        year,
                        is_closed=True,
                        closed_at=self._clock.now(),
                        closed_by=actor_id,
                    )
                )

            logger.info(
                "period_closed",
                extra={
                    "year": closed.year,
                    "financial_year_id": closed.id,
                    "closing_date": day.isoformat(),
                    "voucher_no": voucher.voucher_no if voucher else None,
                    "net_profit": str(net_profit),
                    "closed_at": closed.closed_at,
                },
            )
        return ClosingResult(
            year=closed,
            voucher=voucher,
            net_profit=net_profit,
            closing_date=day,
        )
