import io
import json
import logging

import pytest

from checkin_store.logging_utils import (
    PACKAGE_LOGGER,
    StoreLoggerAdapter,
    StructuredJsonFormatter,
    configure_structured_logging,
)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("checkin_store.sync", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestStructuredJsonFormatter:
    def test_fields(self):
        line = StructuredJsonFormatter().format(_record("stored", submission_id="VER-1"))
        data = json.loads(line)

        assert data["level"] == "INFO"
        assert data["logger"] == "checkin_store.sync"
        assert data["message"] == "stored"
        assert data["submission_id"] == "VER-1"
        assert "timestamp" in data
        assert "lineno" not in data

    def test_context_keys_follow_message(self):
        line = StructuredJsonFormatter().format(
            _record("x", attempt=1, submission_id="VER-1", record_id="checkin_1_a")
        )

        keys = list(json.loads(line))
        assert keys[3:6] == ["message", "record_id", "submission_id"]
        assert keys[-1] == "attempt"

    def test_unserializable_extra_stringified(self):
        data = json.loads(StructuredJsonFormatter().format(_record("x", path=object())))
        assert isinstance(data["path"], str)


class TestStoreLoggerAdapter:
    def test_context_added(self, caplog):
        log = StoreLoggerAdapter(logging.getLogger("checkin_store.test"), {"record_id": "r1"})
        with caplog.at_level(logging.INFO, logger="checkin_store.test"):
            log.info("hello")

        assert caplog.records[0].record_id == "r1"


class TestConfigureStructuredLogging:
    def test_package_logger_writes_json_lines(self, restore_package_logger):
        stream = io.StringIO()
        configure_structured_logging(logging.INFO, stream=stream)

        log = StoreLoggerAdapter(
            logging.getLogger("checkin_store.local.store"), {"submission_id": "VER-1"}
        )
        log.info("Stored check-in")
        log.debug("hidden")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["logger"] == "checkin_store.local.store"
        assert data["submission_id"] == "VER-1"

    def test_reconfiguring_replaces_handler(self, restore_package_logger):
        configure_structured_logging(stream=io.StringIO())
        logger = configure_structured_logging(logging.DEBUG, stream=io.StringIO())

        assert logger is restore_package_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, StructuredJsonFormatter)
