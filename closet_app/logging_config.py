"""Structured logging helpers for the Virtual Closet service.

Log records are rendered as one JSON object per line. Each record carries the
correlation id of the outfit or ingestion request that produced it, so a single
request can be followed from the agent through the completion client.

Wardrobe contents are personal browsing history: product titles, urls, page
text and prompts never reach the log output verbatim.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import time
import uuid
from typing import Any, Dict, Iterator

CORRELATION_ID = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; everything else came in through ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "prompt",
        "reply",
        "page_text",
        "wardrobe_items",
        "title",
        "description",
        "detailedDescription",
        "detailed_description",
        "image_url",
        "imageUrl",
        "source_url",
        "sourceUrl",
        "url",
        "result",
    }
)
_EMAIL_PATTERN = re.compile(r"[\w.\-+]+@[\w\-]+\.[\w.\-]+")
_URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
_MAX_LOGGED_TEXT = 300


class JsonFormatter(logging.Formatter):
    """Render records as JSON with the active correlation id attached."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", message),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = redact_for_log(value)
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["error_type"] = exc_type.__name__ if exc_type else None
            payload["error"] = _scrub_text(str(exc_value))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Install the JSON handler on the root logger.

    ``LOG_LEVEL`` picks the level when none is passed; ``LOG_FORMAT=plain``
    switches to human readable lines for local runs.
    """

    desired_level = level or os.getenv("LOG_LEVEL", "INFO")
    handler = logging.StreamHandler()
    if os.getenv("LOG_FORMAT", "json").lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())
    logging.root.handlers.clear()
    logging.basicConfig(level=desired_level, handlers=[handler])


def _scrub_text(value: str) -> str:
    value = _EMAIL_PATTERN.sub("[redacted-email]", value)
    value = _URL_PATTERN.sub("[redacted-url]", value)
    if len(value) > _MAX_LOGGED_TEXT:
        value = value[:_MAX_LOGGED_TEXT] + "...[clipped]"
    return value


def redact_for_log(payload: Any) -> Any:
    """Recursively mask sensitive keys and scrub urls and emails from strings."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in _SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(item) for item in payload]
    return _scrub_text(str(payload))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root logger on first use."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Return the active correlation id, binding ``correlation_id`` or a new one if needed."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    new_id = uuid.uuid4().hex
    CORRELATION_ID.set(new_id)
    return new_id


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block."""

    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with redacted structured ``fields``.

    Field names must not clash with LogRecord attributes such as ``name`` or
    ``message``.
    """

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None) -> Iterator[str]:
    """Scope a correlation id around ``name`` and log how long it took.

    An enclosing request's correlation id is reused so nested operations share
    it.
    """

    logger = logging.getLogger(__name__)
    scoped = correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex
    with correlation_context(scoped) as scoped_id:
        start = time.perf_counter()
        log_event(logger, logging.DEBUG, "operation_started", operation=name, correlation_id=scoped_id)
        try:
            yield scoped_id
        except BaseException as exc:
            log_event(
                logger,
                logging.DEBUG,
                "operation_aborted",
                operation=name,
                correlation_id=scoped_id,
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        log_event(
            logger,
            logging.DEBUG,
            "operation_finished",
            operation=name,
            correlation_id=scoped_id,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )


__all__ = [
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "redact_for_log",
    "operation_context",
]
