"""Tests for the structured logging system (analytic_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from analytic_kernel.domain.dtos import BudgetStatus
from analytic_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


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
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "analytic_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("budget_confirmed", extra={"version": 2, "status": "confirmed"})

        record = _parse_log(stream)
        assert record["version"] == 2
        assert record["status"] == "confirmed"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", budget_id="b-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["budget_id"] == "b-1"

    def test_decimal_uuid_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "values",
            extra={"amount": Decimal("12.50"), "ref": uid, "state": BudgetStatus.REVISED},
        )

        record = _parse_log(stream)
        assert record["amount"] == "12.50"
        assert record["ref"] == str(uid)
        assert record["state"] == "revised"

    def test_kernel_exception_fields_extracted(self):
        """Kernel exceptions carry a .code and structured attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        from analytic_kernel.exceptions import InvalidStateTransitionError

        try:
            raise InvalidStateTransitionError("analytical_budget", "b-9", "draft", "archive")
        except InvalidStateTransitionError:
            get_logger("test").error("transition_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INVALID_STATE_TRANSITION"
        assert record["exc_type"] == "InvalidStateTransitionError"
        assert record["exc_from_state"] == "draft"
        assert record["exc_action"] == "archive"
        assert "traceback" in record

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "budget_id" not in record

    def test_debug_filtered_at_default_level(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", document_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "document_id": "y"}

    def test_none_values_ignored(self):
        LogContext.set(actor_id=None)
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(event_id="nope")

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(budget_id="outer")
        with LogContext.bind(budget_id="inner"):
            assert LogContext.get_all()["budget_id"] == "inner"
        assert LogContext.get_all()["budget_id"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(trace_id="temp"):
            assert LogContext.get_all()["trace_id"] == "temp"
        assert "trace_id" not in LogContext.get_all()

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            budget_id="b",
            document_id="d",
            trace_id="t",
        )
        assert len(LogContext.get_all()) == 5


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("analytic_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.budget_ledger").name == "analytic_kernel.services.budget_ledger"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "analytic_kernel.deep.nested.module"
