"""
Reporting Module Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Orchestrates report generation -- account ledger, customer and supplier
ageing, ageing summary, trial balance, balance sheet, cash flow, profit &
loss and single-account balance -- by loading company-scoped records from
an injected ``EntryRepository``, assembling the posting stream, and
delegating to the pure engines and the transformation functions in
``statements.py``.  This is a **read-only** service.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ReportingService`` is the sole public
entry point for report generation.  Constructor: ``repository`` +
``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- nothing is written through the repository.
* Usage errors (missing company or account id, malformed dates, start
  after end) are raised before any repository read.
* Every read is scoped to one company.
* Identical inputs produce identical reports; report metadata carries no
  generation timestamp.

Failure modes
-------------
* ``UsageError`` subclasses  -> raised as-is, nothing computed.
* ``AccountNotFoundError``   -> the account id is unknown to the company.
* Any other ``LedgerKernelError`` propagates unchanged.
* Any unexpected exception  -> logged with traceback and re-raised as
  ``ReportGenerationError`` ("could not generate report"), chained.

Audit relevance
---------------
Structured log events are emitted for every report generated, carrying
report type, company and period.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal

from ledger_engines.ageing import AgeingAllocator, AgeingResult, PartySide
from ledger_engines.balance import BalanceCalculator
from ledger_engines.classification import ClassificationResolver
from ledger_engines.ledger import LedgerComposer
from ledger_engines.trial_balance import TrialBalanceAggregator
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dates import DateRange, parse_report_date
from ledger_kernel.domain.postings import (
    LedgerPosting,
    StreamMode,
    build_posting_stream,
)
from ledger_kernel.domain.records import AccountInfo, PartyType
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    LedgerKernelError,
    MissingAccountIdError,
    MissingCompanyError,
    ReportGenerationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.repository.base import EntryRepository
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AgeingReport,
    AgeingSummaryReport,
    BalanceSheetReport,
    CashFlowReport,
    LedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_ageing,
    build_ageing_summary,
    build_balance_sheet,
    build_cash_flow,
    build_ledger,
    build_profit_and_loss,
    build_trial_balance,
    cash_balance,
    period_nets,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")

DateArg = date | datetime | str | None


class ReportingService:
    """
    Report generation service.

    Contract
    --------
    * Every public method returns a typed report DTO (e.g.,
      ``LedgerReport``, ``TrialBalanceReport``), except ``account_balance``
      which returns a Decimal.
    * All methods are **read-only**.

    Guarantees
    ----------
    * No financial logic lives in this class; it only loads records and
      delegates to engines and ``statements.py``.
    * Clock is injectable for deterministic "today" defaults.

    Non-goals
    ---------
    * Does NOT post vouchers or close periods (see ``ledger_services``).
    * Does NOT cache streams between calls.
    """

    def __init__(
        self,
        repository: EntryRepository,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._resolver = ClassificationResolver(self._config.cash_account_codes)
        self._calculator = BalanceCalculator()
        self._composer = LedgerComposer(self._calculator)
        self._allocator = AgeingAllocator()
        self._aggregator = TrialBalanceAggregator(self._resolver, self._calculator)

        logger.info(
            "reporting_service_initialized",
            extra={
                "default_start_date": self._config.default_start_date.isoformat(),
                "mirror_voucher_prefixes": list(self._config.mirror_voucher_prefixes),
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @staticmethod
    def _require_company(company_id: str | None, operation: str) -> str:
        if not company_id:
            raise MissingCompanyError(operation)
        return company_id

    @staticmethod
    def _require_account_id(account_id: str | None, operation: str) -> str:
        if not account_id:
            raise MissingAccountIdError(operation)
        return account_id

    def _period(self, start_date: DateArg, end_date: DateArg) -> DateRange:
        """Inclusive range; defaults are the beginning of records and today."""
        start = parse_report_date(
            start_date, "start_date", default=self._config.default_start_date,
        )
        end = parse_report_date(end_date, "end_date", default=self._clock.today())
        return DateRange(start, end)

    def _as_of(self, as_of: DateArg) -> date:
        return parse_report_date(as_of, "as_of", default=self._clock.today())

    @contextmanager
    def _boundary(
        self,
        report_type: ReportType,
        company_id: str,
        account_id: str | None = None,
    ) -> Iterator[None]:
        """Bind log context and turn unexpected failures into ReportGenerationError."""
        with LogContext.bind(
            company_id=company_id,
            account_id=account_id,
            report_type=report_type.value,
        ):
            try:
                yield
            except LedgerKernelError:
                raise
            except Exception as exc:
                logger.error(
                    "report_generation_failed",
                    exc_info=True,
                    extra={
                        "report_type": report_type.value,
                        "error_type": type(exc).__name__,
                    },
                )
                raise ReportGenerationError(report_type.value) from exc

    def _load_account(self, company_id: str, account_id: str) -> AccountInfo:
        account = self._repository.get_account(company_id, account_id)
        if account is None:
            raise AccountNotFoundError(company_id, account_id)
        return account

    def _stream(
        self,
        company_id: str,
        mode: StreamMode,
        end_date: date,
        accounts: list[AccountInfo] | None = None,
    ) -> tuple[LedgerPosting, ...]:
        """The company's posting stream, restricted to records dated on/before ``end_date``."""
        if accounts is None:
            accounts = self._repository.list_accounts(company_id)
        vouchers = self._repository.list_vouchers(company_id, end_date)
        documents = (
            self._repository.list_documents(company_id, end_date)
            if mode is StreamMode.DOCUMENT
            else ()
        )
        stream = build_posting_stream(
            company_id,
            accounts,
            vouchers,
            documents,
            mode=mode,
            mirror_prefixes=self._config.mirror_voucher_prefixes,
        )
        logger.debug(
            "posting_stream_loaded",
            extra={
                "mode": mode.value,
                "end_date": end_date.isoformat(),
                "posting_count": len(stream),
            },
        )
        return stream

    def _age(
        self,
        stream: tuple[LedgerPosting, ...],
        account: AccountInfo,
        side: PartySide,
        as_of: date,
    ) -> AgeingResult:
        return self._allocator.age_party(
            stream,
            account_id=account.id,
            side=side,
            as_of=as_of,
            buckets=self._config.ageing_buckets,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def account_ledger(
        self,
        company_id: str,
        account_id: str,
        start_date: DateArg = None,
        end_date: DateArg = None,
    ) -> LedgerReport:
        """
        Generate the ledger of one account.

        The first line is the balance brought forward as of the day before
        ``start_date``; the remaining lines are the account's postings
        (vouchers, invoices, returns) in the range with a running balance.

        Args:
            company_id: Tenant.
            account_id: Account whose ledger is produced.
            start_date: Range start (defaults to the beginning of records).
            end_date: Range end, inclusive (defaults to today).
        """
        company_id = self._require_company(company_id, "account_ledger")
        account_id = self._require_account_id(account_id, "account_ledger")
        period = self._period(start_date, end_date)

        with self._boundary(ReportType.LEDGER, company_id, account_id):
            account = self._load_account(company_id, account_id)
            stream = self._stream(company_id, StreamMode.DOCUMENT, period.end)
            composed = self._composer.compose(
                stream, account_id=account_id, period=period,
            )
            report = build_ledger(
                composed,
                account,
                ReportMetadata(
                    report_type=ReportType.LEDGER,
                    company_id=company_id,
                    as_of_date=period.end,
                    period_start=period.start,
                    period_end=period.end,
                    account_id=account_id,
                ),
            )

        logger.info(
            "account_ledger_generated",
            extra={
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "line_count": len(report.lines),
                "closing_balance": str(report.closing_balance),
            },
        )
        return report

    def customer_ageing(
        self,
        company_id: str,
        account_id: str,
        as_of: DateArg = None,
    ) -> AgeingReport:
        """Bill-level ageing of a customer's sales invoices as of a date."""
        return self._party_ageing(
            company_id, account_id, as_of,
            PartySide.RECEIVABLE, ReportType.CUSTOMER_AGEING,
        )

    def supplier_ageing(
        self,
        company_id: str,
        account_id: str,
        as_of: DateArg = None,
    ) -> AgeingReport:
        """Bill-level ageing of a supplier's purchase invoices as of a date."""
        return self._party_ageing(
            company_id, account_id, as_of,
            PartySide.PAYABLE, ReportType.SUPPLIER_AGEING,
        )

    def _party_ageing(
        self,
        company_id: str,
        account_id: str,
        as_of: DateArg,
        side: PartySide,
        report_type: ReportType,
    ) -> AgeingReport:
        company_id = self._require_company(company_id, report_type.value)
        account_id = self._require_account_id(account_id, report_type.value)
        as_of_date = self._as_of(as_of)

        with self._boundary(report_type, company_id, account_id):
            account = self._load_account(company_id, account_id)
            stream = self._stream(company_id, StreamMode.DOCUMENT, as_of_date)
            result = self._age(stream, account, side, as_of_date)
            report = build_ageing(
                result,
                account,
                ReportMetadata(
                    report_type=report_type,
                    company_id=company_id,
                    as_of_date=as_of_date,
                    account_id=account_id,
                ),
            )

        logger.info(
            f"{report_type.value}_generated",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "line_count": len(report.lines),
                "total_outstanding": str(report.total_outstanding),
            },
        )
        return report

    def ageing_summary(
        self,
        company_id: str,
        as_of: DateArg = None,
    ) -> AgeingSummaryReport:
        """Per-party bucket totals for every customer and supplier account."""
        company_id = self._require_company(company_id, "ageing_summary")
        as_of_date = self._as_of(as_of)

        with self._boundary(ReportType.AGEING_SUMMARY, company_id):
            accounts = self._repository.list_accounts(company_id)
            stream = self._stream(
                company_id, StreamMode.DOCUMENT, as_of_date, accounts,
            )
            customers = [
                (a, self._age(stream, a, PartySide.RECEIVABLE, as_of_date))
                for a in accounts
                if a.party_type is PartyType.CUSTOMER
            ]
            suppliers = [
                (a, self._age(stream, a, PartySide.PAYABLE, as_of_date))
                for a in accounts
                if a.party_type is PartyType.SUPPLIER
            ]
            report = build_ageing_summary(
                customers,
                suppliers,
                ReportMetadata(
                    report_type=ReportType.AGEING_SUMMARY,
                    company_id=company_id,
                    as_of_date=as_of_date,
                ),
            )

        logger.info(
            "ageing_summary_generated",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "customer_count": len(report.customers),
                "supplier_count": len(report.suppliers),
            },
        )
        return report

    def trial_balance(
        self,
        company_id: str,
        start_date: DateArg = None,
        end_date: DateArg = None,
    ) -> TrialBalanceReport:
        """
        Generate a trial balance over a period.

        Returns:
            TrialBalanceReport whose ``is_balanced`` flags whether period
            debits equal period credits.
        """
        company_id = self._require_company(company_id, "trial_balance")
        period = self._period(start_date, end_date)

        with self._boundary(ReportType.TRIAL_BALANCE, company_id):
            accounts = self._repository.list_accounts(company_id)
            stream = self._stream(
                company_id, StreamMode.DOUBLE_ENTRY, period.end, accounts,
            )
            result = self._aggregator.aggregate(
                stream,
                accounts=accounts,
                period=period,
                include_zero_balances=self._config.include_zero_balances,
            )
            report = build_trial_balance(
                result,
                ReportMetadata(
                    report_type=ReportType.TRIAL_BALANCE,
                    company_id=company_id,
                    as_of_date=period.end,
                    period_start=period.start,
                    period_end=period.end,
                ),
            )

        logger.info(
            "trial_balance_generated",
            extra={
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "line_count": len(report.rows),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def balance_sheet(
        self,
        company_id: str,
        as_of: DateArg = None,
    ) -> BalanceSheetReport:
        """
        Generate a balance sheet as of a date.

        Returns:
            BalanceSheetReport with A = L + E verification.
        """
        company_id = self._require_company(company_id, "balance_sheet")
        as_of_date = self._as_of(as_of)

        with self._boundary(ReportType.BALANCE_SHEET, company_id):
            accounts = self._repository.list_accounts(company_id)
            stream = self._stream(
                company_id, StreamMode.DOUBLE_ENTRY, as_of_date, accounts,
            )
            balances = self._calculator.balances(stream, as_of=as_of_date)
            report = build_balance_sheet(
                accounts,
                balances,
                self._resolver,
                ReportMetadata(
                    report_type=ReportType.BALANCE_SHEET,
                    company_id=company_id,
                    as_of_date=as_of_date,
                ),
                self._config.balance_tolerance,
            )

        if not report.is_balanced:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={
                    "total_assets": str(report.total_assets),
                    "total_l_and_e": str(report.total_liabilities_and_equity),
                },
            )
        logger.info(
            "balance_sheet_generated",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "total_assets": str(report.total_assets),
                "total_l_and_e": str(report.total_liabilities_and_equity),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def cash_flow(
        self,
        company_id: str,
        start_date: DateArg = None,
        end_date: DateArg = None,
    ) -> CashFlowReport:
        """Cash movements over a period grouped into operating, investing and financing."""
        company_id = self._require_company(company_id, "cash_flow")
        period = self._period(start_date, end_date)

        with self._boundary(ReportType.CASH_FLOW, company_id):
            accounts = self._repository.list_accounts(company_id)
            stream = self._stream(
                company_id, StreamMode.DOUBLE_ENTRY, period.end, accounts,
            )
            opening_cash = cash_balance(
                accounts,
                self._calculator.opening_balances(stream, period=period),
                self._resolver,
            )
            closing_cash = cash_balance(
                accounts,
                self._calculator.balances(stream, as_of=period.end),
                self._resolver,
            )
            report = build_cash_flow(
                accounts,
                stream,
                period,
                self._resolver,
                ReportMetadata(
                    report_type=ReportType.CASH_FLOW,
                    company_id=company_id,
                    as_of_date=period.end,
                    period_start=period.start,
                    period_end=period.end,
                ),
                opening_cash,
                closing_cash,
            )

        logger.info(
            "cash_flow_generated",
            extra={
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "net_cash_flow": str(report.net_cash_flow),
                "reconciles": report.reconciles,
            },
        )
        return report

    def profit_and_loss(
        self,
        company_id: str,
        start_date: DateArg = None,
        end_date: DateArg = None,
    ) -> ProfitAndLossReport:
        """
        Income and expense for a period.

        Year-end closing vouchers are left out so that a closed year still
        reports its result.
        """
        company_id = self._require_company(company_id, "profit_and_loss")
        period = self._period(start_date, end_date)

        with self._boundary(ReportType.PROFIT_AND_LOSS, company_id):
            accounts = self._repository.list_accounts(company_id)
            stream = self._stream(
                company_id, StreamMode.DOUBLE_ENTRY, period.end, accounts,
            )
            report = build_profit_and_loss(
                accounts,
                period_nets(stream, period),
                self._resolver,
                ReportMetadata(
                    report_type=ReportType.PROFIT_AND_LOSS,
                    company_id=company_id,
                    as_of_date=period.end,
                    period_start=period.start,
                    period_end=period.end,
                ),
            )

        logger.info(
            "profit_and_loss_generated",
            extra={
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "net_profit": str(report.net_profit),
            },
        )
        return report

    def account_balance(
        self,
        company_id: str,
        account_id: str,
        as_of: DateArg = None,
    ) -> Decimal:
        """Signed balance of one account as of a date (positive = debit)."""
        company_id = self._require_company(company_id, "account_balance")
        account_id = self._require_account_id(account_id, "account_balance")
        as_of_date = self._as_of(as_of)

        with self._boundary(ReportType.LEDGER, company_id, account_id):
            self._load_account(company_id, account_id)
            stream = self._stream(company_id, StreamMode.DOCUMENT, as_of_date)
            return self._calculator.balance(
                stream, account_id=account_id, as_of=as_of_date,
            )

    @staticmethod
    def to_dict(report: object) -> dict:
        """Convert any report to a JSON-serializable dict."""
        return render_to_dict(report)
