# ============================================================================
# STRUCTURED LOGGING TESTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Tests - Context propagation, formatters, checkpoints
# PURPOSE: Verify contextual fields reach log records and output formats
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging Tests

Run with:
    pytest tests/test_logging.py -v
"""

import asyncio
import json
import logging

import pytest

from core.logging import (
    ComponentType,
    HumanFormatter,
    StructuredFormatter,
    configure_logging,
    get_current_context,
    get_logger,
    log_checkpoint,
    log_context,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(message="hello", data=None):
    record = logging.LogRecord("services.test", logging.INFO, "test.py", 10, message, None, None)
    record.data = data or {}
    return record


# ============================================================================
# CONTEXT
# ============================================================================

class TestLogContext:
    """Tests for log_context nesting."""

    def test_nested_blocks_inherit(self):
        with log_context(world_id="zth", extra={"a": 1}):
            with log_context(record_id=4, extra={"b": 2}) as inner:
                assert inner.world_id == "zth"
                assert inner.record_id == 4
                assert inner.extra == {"a": 1, "b": 2}
            assert get_current_context().record_id is None
        assert get_current_context().to_dict() == {}

    def test_context_follows_async_tasks(self):
        async def read():
            return get_current_context().session_id

        with log_context(session_id="abc123"):
            assert asyncio.run(read()) == "abc123"


# ============================================================================
# LOGGERS
# ============================================================================

class TestContextLogger:
    """Tests for records emitted through get_logger."""

    def test_record_carries_component_context_and_extra(self, caplog):
        logger = get_logger("services.test", ComponentType.IMPORT)
        caplog.set_level(logging.DEBUG)

        with log_context(world_id="eden", operation="import"):
            logger.info("Imported", extra={"count": 3})

        data = caplog.records[-1].data
        assert data == {"component": "import", "world_id": "eden", "operation": "import", "count": 3}

    def test_checkpoint(self, caplog):
        caplog.set_level(logging.INFO)

        with log_context(session_id="s1"):
            log_checkpoint("record_committed", {"record_id": 7})

        record = caplog.records[-1]
        assert record.getMessage() == "CHECKPOINT: record_committed"
        assert record.data["checkpoint"] == "record_committed"
        assert record.data["checkpoint_data"] == {"record_id": 7}
        assert record.data["session_id"] == "s1"


# ============================================================================
# FORMATTERS
# ============================================================================

class TestFormatters:
    """Tests for human and JSON output."""

    def test_json_line(self):
        line = StructuredFormatter().format(_record(data={"world_id": "zth"}))
        entry = json.loads(line)

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["data"] == {"world_id": "zth"}
        assert entry["source"] == "test.py:10"

    def test_human_line(self):
        data = {"component": "session", "session_id": "s1", "record_id": 2, "mode": "point"}
        line = HumanFormatter().format(_record(data=data))
        assert line == "INFO     services.test [session=s1 record=2]: hello {'mode': 'point'}"

    def test_configure_from_env(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("DIGITIZER_LOG_FORMAT", "json")
        monkeypatch.setenv("DIGITIZER_LOG_LEVEL", "debug")

        configure_logging()

        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)
        assert restore_root_logger.level == logging.DEBUG

    def test_configure_explicit(self, restore_root_logger):
        configure_logging(level="WARNING", json_output=False)
        assert isinstance(restore_root_logger.handlers[0].formatter, HumanFormatter)
        assert restore_root_logger.level == logging.WARNING
