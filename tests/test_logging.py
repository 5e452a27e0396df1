"""Tests for the structured logging system (ledger_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite configuration."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "ledger_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("voucher_posted", extra={"entry_count": 2, "voucher_no": "JV-1"})

        record = _parse_log(stream)
        assert record["entry_count"] == 2
        assert record["voucher_no"] == "JV-1"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(company_id="acme", report_type="trial_balance")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["company_id"] == "acme"
        assert record["report_type"] == "trial_balance"

    def test_context_wins_over_extra(self):
        """A bound context field is not overwritten by an extra of the same name."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        with LogContext.bind(company_id="acme"):
            logger.info("test_msg", extra={"company_id": "other"})

        record = _parse_log(stream)
        assert record["company_id"] == "acme"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Ledger kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from ledger_kernel.exceptions import ClosedPeriodError

        try:
            raise ClosedPeriodError(2024, date(2024, 3, 1))
        except ClosedPeriodError:
            logger.error("period_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "CLOSED_PERIOD"
        assert record["exc_type"] == "ClosedPeriodError"
        assert record["exc_year"] == 2024
        assert record["exc_posting_date"] == "2024-03-01"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "company_id" not in record
        assert "correlation_id" not in record

    def test_decimal_and_date_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info(
            "with_values",
            extra={"balance": Decimal("600.00"), "as_of": date(2024, 1, 31)},
        )

        record = _parse_log(stream)
        assert record["balance"] == "600.00"
        assert record["as_of"] == "2024-01-31"

    def test_enum_serialized_by_value(self):
        from ledger_kernel.domain.records import VoucherType

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("typed", extra={"voucher_type": VoucherType.YEAR_END})

        assert _parse_log(stream)["voucher_type"] == "YEAR_END"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # configure_logging defaults to INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", company_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "company_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(company_id="outer")
        with LogContext.bind(company_id="inner"):
            assert LogContext.get_all()["company_id"] == "inner"
        assert LogContext.get_all()["company_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "account_id" not in LogContext.get_all()
        with LogContext.bind(account_id="temp"):
            assert LogContext.get_all()["account_id"] == "temp"
        assert "account_id" not in LogContext.get_all()

    def test_bind_skips_none_values(self):
        with LogContext.bind(company_id="acme", actor_id=None):
            assert LogContext.get_all() == {"company_id": "acme"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="unknown log context fields"):
            LogContext.set(tenant="acme")

    def test_values_stored_as_strings(self):
        with LogContext.bind(company_id=42):
            assert LogContext.get_all() == {"company_id": "42"}

    def test_additive_set(self):
        LogContext.set(correlation_id="a")
        LogContext.set(company_id="b")
        ctx = LogContext.get_all()
        assert ctx["correlation_id"] == "a"
        assert ctx["company_id"] == "b"

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            company_id="co",
            account_id="acc",
            report_type="ledger",
            actor_id="a",
            trace_id="t",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 6
        assert ctx["correlation_id"] == "c"
        assert ctx["trace_id"] == "t"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("ledger_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.voucher_writer")
        assert logger.name == "ledger_kernel.services.voucher_writer"

    def test_logger_hierarchy(self):
        """Child loggers inherit the ledger_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "ledger_kernel.deep.nested.module"
