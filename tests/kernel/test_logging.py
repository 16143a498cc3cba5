"""Structured JSON logging: formatter fields, context propagation, exceptions."""

import json
import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

from rental_kernel.exceptions import InsufficientAdvanceMonthsError
from rental_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _format(record_kwargs: dict, exc_info=None) -> dict:
    record = logging.LogRecord(
        "rental_kernel.test", logging.INFO, __file__, 1, "event_name", (), exc_info,
    )
    for key, val in record_kwargs.items():
        setattr(record, key, val)
    return json.loads(StructuredFormatter().format(record))


def test_base_fields():
    payload = _format({})
    assert payload["message"] == "event_name"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "rental_kernel.test"
    assert "ts" in payload


def test_extra_fields_serialized():
    booking_id = uuid4()
    payload = _format({
        "booking_id_extra": booking_id,
        "amount": Decimal("15000.00"),
        "due": date(2024, 2, 15),
    })
    assert payload["booking_id_extra"] == str(booking_id)
    assert payload["amount"] == "15000.00"
    assert payload["due"] == "2024-02-15"


def test_context_fields_included_and_restored():
    with LogContext.bind(booking_id="b-1", job_id="j-1"):
        payload = _format({})
        assert payload["booking_id"] == "b-1"
        assert payload["job_id"] == "j-1"
    assert "booking_id" not in _format({})


def test_kernel_exception_attributes_flattened():
    try:
        raise InsufficientAdvanceMonthsError("b-1", available=1, requested=2)
    except InsufficientAdvanceMonthsError:
        import sys
        payload = _format({}, exc_info=sys.exc_info())
    assert payload["exc_code"] == "INSUFFICIENT_ADVANCE_MONTHS"
    assert payload["exc_available"] == 1
    assert payload["exc_requested"] == 2


def test_get_logger_namespaced():
    assert get_logger("x.y").name == "rental_kernel.x.y"


def test_captured_logs_fixture(captured_logs):
    get_logger("test").info("something_happened", extra={"count": 2})
    records = captured_logs()
    assert any(
        r["message"] == "something_happened" and r["count"] == 2 for r in records
    )


def test_nested_bind_restores_outer_value():
    with LogContext.bind(booking_id="outer", unknown_field="ignored"):
        with LogContext.bind(booking_id="inner", tenant_id=None):
            assert LogContext.get_all() == {"booking_id": "inner"}
        assert LogContext.get_all() == {"booking_id": "outer"}
    assert LogContext.get_all() == {}
