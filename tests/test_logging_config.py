"""Structured logging and redaction tests."""

from __future__ import annotations

import json
import logging

import pytest

from closet_app.logging_config import (
    CORRELATION_ID,
    JsonFormatter,
    correlation_context,
    operation_context,
    redact_for_log,
)


def test_redaction_masks_product_fields_and_urls() -> None:
    scrubbed = redact_for_log(
        {
            "title": "Navy Linen Shirt",
            "prompt": "You are a stylist...",
            "note": "see https://shop.test/item?id=1 or mail me@example.com",
            "nested": [{"imageUrl": "https://img.test/a.jpg", "count": 2}],
        }
    )

    assert scrubbed["title"] == "[redacted]"
    assert scrubbed["prompt"] == "[redacted]"
    assert scrubbed["note"] == "see [redacted-url] or mail [redacted-email]"
    assert scrubbed["nested"] == [{"imageUrl": "[redacted]", "count": 2}]


def test_long_strings_are_clipped() -> None:
    assert redact_for_log("x" * 1000).endswith("...[clipped]")


def test_json_formatter_includes_extra_fields_and_correlation_id() -> None:
    record = logging.makeLogRecord(
        {
            "name": "closet",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "outfit_fallback_used",
            "event": "outfit_fallback_used",
            "reason": "timeout",
        }
    )
    with correlation_context("req-1"):
        payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "outfit_fallback_used"
    assert payload["reason"] == "timeout"
    assert payload["correlation_id"] == "req-1"
    assert "msg" not in payload


def test_operation_context_reuses_enclosing_correlation_id() -> None:
    before = CORRELATION_ID.get()
    with correlation_context("outer") as outer:
        with operation_context("inner") as inner:
            assert inner == outer
    assert CORRELATION_ID.get() == before


def test_operation_context_propagates_errors() -> None:
    with pytest.raises(RuntimeError):
        with operation_context("failing"):
            raise RuntimeError("boom")
