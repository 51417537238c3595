# ============================================================================
# STRUCTURED LOGGING TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Tests - Context stack, adapter and formatters
# PURPOSE: Verify table / dialect context reaches every log record
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging Tests

Run with:
    pytest tests/test_logging.py -v
"""

import json
import logging
import threading

import pytest

from core.logging import (
    ComponentType,
    HumanFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
    log_checkpoint,
    log_context,
)


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="Created table", extra=None):
    record = logging.LogRecord("tests.logging", logging.INFO, __file__, 42, message, None, None)
    if extra is not None:
        record.extra = extra
    return record


# ============================================================================
# CONTEXT STACK
# ============================================================================

class TestLogContext:
    def test_nested_blocks_inherit(self):
        with log_context(dialect="sqlite", operation="initialize_schema"):
            with log_context(table="Guilds", operation="reconcile") as inner:
                assert inner.to_dict() == {
                    "table": "Guilds",
                    "dialect": "sqlite",
                    "operation": "reconcile",
                }
            with log_context() as outer:
                assert outer.table is None
                assert outer.operation == "initialize_schema"

    def test_extra_merged(self):
        with log_context(extra={"attempt": 1}):
            with log_context(extra={"column": "GuildId"}) as frame:
                assert frame.to_dict() == {"attempt": 1, "column": "GuildId"}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="correlation_id"):
            with log_context(correlation_id="abc"):
                pass

    def test_threads_do_not_share_context(self):
        seen = {}

        def worker():
            with log_context(table="Clans") as frame:
                seen["worker"] = frame.to_dict()

        with log_context(table="Guilds", dialect="postgres"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert seen["worker"] == {"table": "Clans"}


# ============================================================================
# ADAPTER
# ============================================================================

class TestContextLogger:
    def test_record_carries_context_and_component(self, caplog):
        logger = get_logger("tests.logging", ComponentType.RECONCILER)

        with caplog.at_level(logging.INFO, logger="tests.logging"):
            with log_context(table="Guilds", dialect="sqlite"):
                logger.info("Created table Guilds", extra={"statements": 1})

        record = caplog.records[-1]
        assert record.extra == {
            "table": "Guilds",
            "dialect": "sqlite",
            "component": "reconciler",
            "statements": 1,
        }

    def test_call_site_fields_win(self, caplog):
        logger = get_logger("tests.logging")

        with caplog.at_level(logging.INFO, logger="tests.logging"):
            with log_context(table="Guilds"):
                logger.info("Renamed", extra={"table": "Clans"})

        assert caplog.records[-1].extra == {"table": "Clans"}


# ============================================================================
# FORMATTERS
# ============================================================================

class TestStructuredFormatter:
    def test_json_payload(self):
        record = make_record(extra={"component": "bootstrap"})

        with log_context(table="Guilds", dialect="postgres"):
            payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "Created table"
        assert payload["level"] == "INFO"
        assert payload["context"] == {"table": "Guilds", "dialect": "postgres"}
        assert payload["data"] == {"component": "bootstrap"}
        assert payload["source"].endswith(":42")

    def test_source_omitted(self):
        payload = json.loads(StructuredFormatter(include_source=False).format(make_record()))

        assert "source" not in payload
        assert "context" not in payload
        assert "data" not in payload


class TestHumanFormatter:
    def test_context_tags(self):
        record = make_record(extra={
            "table": "Guilds",
            "operation": "reconcile",
            "component": "reconciler",
            "statements": 2,
        })

        line = HumanFormatter().format(record)

        assert "tests.logging [table=Guilds op=reconcile component=reconciler]: Created table" in line
        assert line.endswith("{'statements': 2}")

    def test_plain_record(self):
        line = HumanFormatter().format(make_record("Ready"))
        assert line.endswith("tests.logging: Ready")


# ============================================================================
# CHECKPOINTS AND CONFIGURATION
# ============================================================================

class TestCheckpoint:
    def test_checkpoint_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger="checkpoint"):
            with log_context(dialect="sqlite"):
                log_checkpoint("schema_initialized", {"created": 5})

        record = caplog.records[-1]
        assert record.getMessage() == "CHECKPOINT: schema_initialized"
        assert record.extra == {
            "checkpoint": "schema_initialized",
            "dialect": "sqlite",
            "data": {"created": 5},
        }


class TestConfigureLogging:
    def test_human_by_default(self, restore_root, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        configure_logging("debug")

        assert restore_root.level == logging.DEBUG
        assert len(restore_root.handlers) == 1
        assert isinstance(restore_root.handlers[0].formatter, HumanFormatter)

    def test_json_from_environment(self, restore_root, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        configure_logging(logging.WARNING)

        assert restore_root.level == logging.WARNING
        assert isinstance(restore_root.handlers[0].formatter, StructuredFormatter)
