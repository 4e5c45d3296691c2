"""
Structured logging for the check-in store.

Every line of one submission carries the same ``record_id`` and
``submission_id`` so a field report ("VER-...") can be traced through
the local commit and the remote attempt. ``checkin-store --json-logs``
switches the package logger to one JSON object per line.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

PACKAGE_LOGGER = "checkin_store"

# Context keys placed right after the message, in this order
CONTEXT_KEYS = ("record_id", "submission_id", "blob_id", "backend")

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredJsonFormatter(logging.Formatter):
    """Formats a log record as a single-line JSON object.

    Keys: ``timestamp`` (UTC, ISO 8601), ``level``, ``logger``, ``message``,
    then any check-in context, then other ``extra`` fields. Values that
    are not JSON-serializable are written as strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        for key in CONTEXT_KEYS:
            if key in extras:
                log_obj[key] = extras.pop(key)
        log_obj.update(extras)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = PACKAGE_LOGGER,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send a logger's output as JSON lines to ``stream``.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: the package logger)
        stream: Destination (default: stderr, leaving stdout to CLI output)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)

    # Replace, never stack, handlers when called twice
    logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return logger


class StoreLoggerAdapter(logging.LoggerAdapter):
    """Adds check-in context (record_id, submission_id, ...) to every message."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs
