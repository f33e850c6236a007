"""Unit tests for structured logging helpers."""

import json
import logging

from integreatly_operator.observability.logging import (
    CorrelationIDFilter,
    HealthProbeFilter,
    OperatorLogger,
    StructuredFormatter,
    get_correlation_id,
    set_correlation_id,
)


def make_record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_structured_fields():
    record = make_record(
        "Product monitoring reconciled", product="monitoring", phase="completed"
    )
    record.correlation_id = "abc12345"

    data = json.loads(StructuredFormatter().format(record))

    assert data["message"] == "Product monitoring reconciled"
    assert data["product"] == "monitoring"
    assert data["phase"] == "completed"
    assert data["correlation_id"] == "abc12345"
    assert "installation" not in data


def test_correlation_filter_uses_current_id():
    set_correlation_id("corr-1")
    record = make_record("hello")

    assert CorrelationIDFilter().filter(record) is True
    assert record.correlation_id == "corr-1"
    assert get_correlation_id() == "corr-1"


def test_health_probe_requests_are_filtered():
    probe_filter = HealthProbeFilter()
    assert probe_filter.filter(make_record('"GET /healthz HTTP/1.1" 200')) is False
    assert probe_filter.filter(make_record("Created namespace mon")) is True


def test_reconciliation_start_sets_new_correlation_id():
    corr_id = OperatorLogger("test").log_reconciliation_start(
        "installation", "rhmi", "redhat-rhmi-operator"
    )

    assert len(corr_id) == 8
    assert get_correlation_id() == corr_id
