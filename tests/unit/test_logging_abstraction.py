"""Unit tests for the logging abstraction (formatters, session context, GreeLogger)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from gree_lan.correlation import correlation_context
from gree_lan.logging_abstraction import (
    HumanReadableFormatter,
    JSONFormatter,
    get_logger,
    session_log_context,
)


def _record(msg: str = "Device %s is bound!", *args: object, extra: dict | None = None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gree_lan.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args or ("A1B2",),
        exc_info=None,
    )
    if extra is not None:
        record.extra_data = extra
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter"""

    def test_formats_basic_fields(self):
        """Test the message is rendered with level, logger name and source"""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["message"] == "Device A1B2 is bound!"
        assert data["level"] == "INFO"
        assert data["logger"] == "gree_lan.test"
        assert data["source"].endswith(":10")
        assert "timestamp" in data
        assert "context" not in data

    def test_includes_structured_context(self):
        """Test extra data is nested under 'context'"""
        data = json.loads(JSONFormatter().format(_record(extra={"reason": "auth_failed", "version": 2})))

        assert data["context"] == {"reason": "auth_failed", "version": 2}

    def test_includes_correlation_id(self):
        """Test the active correlation ID is attached"""
        with correlation_context("corr-1234"):
            data = json.loads(JSONFormatter().format(_record()))

        assert data["correlation_id"] == "corr-1234"


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter"""

    def test_placeholder_without_correlation(self):
        """Test a dashed placeholder is shown outside any correlation scope"""
        output = HumanReadableFormatter().format(_record())

        assert "[--------] > Device A1B2 is bound!" in output

    def test_truncates_correlation_id(self):
        """Test only the first 8 characters of the ID are shown"""
        with correlation_context("abcdef0123456789"):
            output = HumanReadableFormatter().format(_record())

        assert "[abcdef01]" in output

    def test_device_id_shown_before_message(self):
        """Test the session's device id is rendered as a tag, not a pair"""
        output = HumanReadableFormatter().format(_record(extra={"device_id": "A1B2", "version": 2}))

        assert "<A1B2> > Device A1B2 is bound!" in output
        assert output.endswith("| version=2")
        assert "device_id=" not in output

    def test_appends_context(self):
        """Test extra data is appended as key=value pairs"""
        output = HumanReadableFormatter().format(_record(extra={"host": "10.0.0.7", "port": 7000}))

        assert output.endswith("| host=10.0.0.7 | port=7000")


class TestSessionLogContext:
    """Tests for session_log_context"""

    def test_fields_are_attached_to_records(self, caplog):
        """Test bound session fields reach the record, with extra winning"""
        logger = get_logger("gree_lan.test.session_fields")
        with caplog.at_level(logging.INFO, logger="gree_lan.test.session_fields"):
            with session_log_context(device_id="A1B2", state="bound"):
                logger.info("Sent status", extra={"state": "override", "kind": "dat"})

        assert caplog.records[-1].extra_data == {"device_id": "A1B2", "state": "override", "kind": "dat"}

    def test_fields_are_captured_when_logged(self, caplog):
        """Test a record keeps its fields after the block has exited"""
        logger = get_logger("gree_lan.test.captured")
        with caplog.at_level(logging.INFO, logger="gree_lan.test.captured"):
            with session_log_context(device_id="A1B2"):
                logger.info("Bound")
            logger.info("Closed")

        bound, closed = caplog.records[-2:]
        assert json.loads(JSONFormatter().format(bound))["context"] == {"device_id": "A1B2"}
        assert not hasattr(closed, "extra_data")

    def test_none_values_are_skipped(self, caplog):
        """Test unset fields do not appear in the context"""
        logger = get_logger("gree_lan.test.none_fields")
        with caplog.at_level(logging.INFO, logger="gree_lan.test.none_fields"):
            with session_log_context(device_id=None, state="awaiting_handshake"):
                logger.info("Scanning")

        assert caplog.records[-1].extra_data == {"state": "awaiting_handshake"}

    def test_nested_blocks_restore_outer_fields(self, caplog):
        """Test inner fields are dropped when the inner block exits"""
        logger = get_logger("gree_lan.test.nested")
        with caplog.at_level(logging.INFO, logger="gree_lan.test.nested"):
            with session_log_context(device_id="A1B2"):
                with session_log_context(state="bound"):
                    logger.info("inner")
                logger.info("outer")

        inner, outer = caplog.records[-2:]
        assert inner.extra_data == {"device_id": "A1B2", "state": "bound"}
        assert outer.extra_data == {"device_id": "A1B2"}


class TestGetLogger:
    """Tests for get_logger and GreeLogger"""

    def test_handlers_installed_once(self):
        """Test repeated lookups do not duplicate handlers"""
        first = get_logger("gree_lan.test.dedupe", log_format="human", human_output="stderr")
        second = get_logger("gree_lan.test.dedupe", log_format="human", human_output="stderr")

        assert len(first.handlers) == 1
        assert second.handlers is first.handlers

    def test_json_file_output(self, tmp_path: Path):
        """Test JSON lines are written to the configured file"""
        log_file = tmp_path / "logs" / "gree.json"
        logger = get_logger("gree_lan.test.jsonfile", log_format="json", json_file=log_file)

        logger.info("Sent[%d] '%s'", 3, "cmd", extra={"kind": "cmd"})
        for handler in logger.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["message"] == "Sent[3] 'cmd'"
        assert entry["context"] == {"kind": "cmd"}

    def test_extra_is_moved_to_extra_data(self, caplog):
        """Test structured context lands on the record without clashing with its attributes"""
        logger = get_logger("gree_lan.test.extra")

        logger.warning("Dropping datagram from %s", "10.0.0.7", extra={"module": "codec"})

        record = caplog.records[-1]
        assert record.getMessage() == "Dropping datagram from 10.0.0.7"
        assert record.extra_data == {"module": "codec"}
        assert record.module != "codec"

    def test_set_level(self):
        """Test the level can be changed at runtime"""
        logger = get_logger("gree_lan.test.level")

        logger.set_level(logging.ERROR)

        assert logger.logger.level == logging.ERROR
        assert not logger.isEnabledFor(logging.WARNING)

    def test_exception_includes_traceback(self, caplog):
        """Test exception() records exc_info"""
        logger = get_logger("gree_lan.test.exception")

        try:
            raise ValueError("bad")
        except ValueError:
            logger.exception("Callback failed", extra={"callback": "on_status"})

        assert caplog.records[-1].exc_info is not None
        assert caplog.records[-1].extra_data == {"callback": "on_status"}
