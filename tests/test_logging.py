"""Tests for log formatting and request context."""

import io
import json
import logging

from index_advisor.catalog import ColumnStatistics, TableStatistics
from index_advisor.plan import Predicate, PredicateSet
from index_advisor.processor import AdvisoryRequest, BatchAdvisor, IndexAdvisor
from index_advisor.utils import ConsoleFormatter, StructuredFormatter, get_request_logger


def _capture(name, formatter):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger = logging.getLogger(name)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger, handler, stream


def test_structured_formatter_includes_request_context():
    """Request id and outcome fields become top-level JSON keys."""
    logger, handler, stream = _capture("index_advisor.tests.context", StructuredFormatter())
    try:
        request_logger = get_request_logger(logger.name, "orders")
        request_logger.with_fields(status="failed", error_kind="UnknownColumn").error(
            "Advisory failed for %s", "orders"
        )
    finally:
        logger.removeHandler(handler)

    record = json.loads(stream.getvalue())
    assert record["message"] == "Advisory failed for orders"
    assert record["level"] == "ERROR"
    assert record["request_id"] == "orders"
    assert record["status"] == "failed"
    assert record["error_kind"] == "UnknownColumn"


def test_with_fields_keeps_parent_context():
    """Adding fields does not change the adapter it came from."""
    parent = get_request_logger("index_advisor.tests.parent", "q1")
    child = parent.with_fields(status="evaluated")
    assert parent.extra == {"request_id": "q1"}
    assert child.extra == {"request_id": "q1", "status": "evaluated"}


def test_structured_formatter_without_context():
    """Plain loggers produce the base fields only."""
    logger, handler, stream = _capture("index_advisor.tests.plain", StructuredFormatter())
    try:
        logger.warning("deadline reached")
    finally:
        logger.removeHandler(handler)

    record = json.loads(stream.getvalue())
    assert record["message"] == "deadline reached"
    assert "request_id" not in record
    assert record["logger"] == "index_advisor.tests.plain"


def test_console_formatter_appends_context():
    """Console lines end with the sorted key=value context."""
    logger, handler, stream = _capture("index_advisor.tests.console", ConsoleFormatter())
    try:
        get_request_logger(logger.name, "orders", status="evaluated").info("done")
    finally:
        logger.removeHandler(handler)

    line = stream.getvalue().strip()
    assert line.endswith("done [request_id=orders status=evaluated]")


def test_batch_failure_is_logged_with_status(caplog):
    """Failed batch requests log their outcome status and error kind."""
    stats = TableStatistics.from_columns(
        "orders", [ColumnStatistics(name="id", num_distinct=10, row_count=10)]
    )
    request = AdvisoryRequest(
        statistics=stats,
        predicates=PredicateSet.of(Predicate.equality("missing", 1)),
        request_id="bad",
    )
    with caplog.at_level(logging.WARNING, logger="index_advisor"):
        BatchAdvisor(IndexAdvisor()).advise_all([request])

    contexts = [getattr(r, "advisor_context", {}) for r in caplog.records]
    assert {"request_id": "bad", "status": "failed", "error_kind": "UnknownColumn"} in contexts
