"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.states import ItemStatus
from inventory_kernel.logging_config import (
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


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


@pytest.fixture
def log_stream() -> StringIO:
    handler, stream = _make_handler()
    configure_logging(handler=handler)
    return stream


class TestStructuredFormatter:
    def test_basic_json_output(self, log_stream):
        get_logger("test").info("hello")

        record = _parse_all_logs(log_stream)[0]
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self, log_stream):
        get_logger("test").info("item_issued", extra={"balance": 4, "issued_to": "Bob"})

        record = _parse_all_logs(log_stream)[0]
        assert record["balance"] == 4
        assert record["issued_to"] == "Bob"

    def test_domain_values_serialized(self, log_stream):
        uid = uuid4()
        get_logger("test").info(
            "typed",
            extra={"entry_id": uid, "cost": Decimal("10.50"), "status": ItemStatus.ISSUED},
        )

        record = _parse_all_logs(log_stream)[0]
        assert record["entry_id"] == str(uid)
        assert record["cost"] == "10.50"
        assert record["status"] == "issued"

    def test_kernel_exception_fields_extracted(self, log_stream):
        from inventory_kernel.exceptions import InsufficientStockError

        try:
            raise InsufficientStockError("item-1", requested=3, available=1)
        except InsufficientStockError:
            get_logger("test").error("dispose_failed", exc_info=True)

        record = _parse_all_logs(log_stream)[0]
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_requested"] == 3
        assert record["exc_available"] == 1
        assert "traceback" in record

    def test_debug_filtered_at_info(self, log_stream):
        logger = get_logger("test")
        logger.info("first")
        logger.debug("second")

        assert [r["message"] for r in _parse_all_logs(log_stream)] == ["first"]


class TestLogContext:
    def test_context_fields_included(self, log_stream):
        LogContext.set(correlation_id="abc-123", item_id="item-9")
        get_logger("test").info("test_msg")

        record = _parse_all_logs(log_stream)[0]
        assert record["correlation_id"] == "abc-123"
        assert record["item_id"] == "item-9"

    def test_no_context_fields_when_empty(self, log_stream):
        get_logger("test").info("bare_message")

        record = _parse_all_logs(log_stream)[0]
        assert "correlation_id" not in record
        assert "operation" not in record

    def test_bind_restores_previous_values(self, log_stream):
        logger = get_logger("test")
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner", request_id="req-1"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = _parse_all_logs(log_stream)
        assert inside["operation"] == "inner"
        assert inside["request_id"] == "req-1"
        assert outside["operation"] == "outer"
        assert "request_id" not in outside

    def test_context_field_wins_over_extra(self, log_stream):
        with LogContext.bind(item_id="from-context"):
            get_logger("test").info("collide", extra={"item_id": "from-extra"})

        assert _parse_all_logs(log_stream)[0]["item_id"] == "from-context"


class TestConfigureLogging:
    def test_idempotent(self):
        # pytest's own capture handlers may also sit on this logger
        root = logging.getLogger("inventory_kernel")
        first, _ = _make_handler()
        second, _ = _make_handler()

        configure_logging(handler=first)
        after_first = list(root.handlers)
        configure_logging(handler=second)

        assert root.handlers == after_first
        assert second not in root.handlers
        structured = [
            h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)
        ]
        assert structured == [first]

    def test_does_not_propagate(self, log_stream):
        assert logging.getLogger("inventory_kernel").propagate is False

    def test_reset_allows_reconfiguration(self):
        first, _ = _make_handler()
        configure_logging(handler=first)
        reset_logging()
        second, stream = _make_handler()
        configure_logging(handler=second, level=logging.DEBUG)

        get_logger("test").debug("visible")
        assert _parse_all_logs(stream)[0]["message"] == "visible"
