"""Unit tests for the logging abstraction (formatters, logger cache, levels)."""

from __future__ import annotations

import json
import logging

from yeelight_lan.correlation import correlation_context
from yeelight_lan.logging_abstraction import (
    HumanReadableFormatter,
    JSONFormatter,
    YeelightLogger,
    get_logger,
    set_global_level,
)


def _record(msg: str = "Connected to %s", *args: object, extra_data: dict | None = None) -> logging.LogRecord:
    record = logging.LogRecord("yeelight_lan.test", logging.INFO, __file__, 10, msg, args or ("10.0.0.1:55443",), None)
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:
    def test_structured_output(self):
        with correlation_context("abc123"):
            output = json.loads(JSONFormatter().format(_record(extra_data={"address": "10.0.0.1:55443"})))

        assert output["message"] == "Connected to 10.0.0.1:55443"
        assert output["level"] == "INFO"
        assert output["correlation_id"] == "abc123"
        assert output["context"] == {"address": "10.0.0.1:55443"}

    def test_without_context(self):
        output = json.loads(JSONFormatter().format(_record()))

        assert "context" not in output


class TestHumanReadableFormatter:
    def test_includes_message_and_context(self):
        with correlation_context("abcdef123456"):
            line = HumanReadableFormatter().format(_record(extra_data={"request_id": 3}))

        assert "Connected to 10.0.0.1:55443" in line
        assert "request_id=3" in line


class TestGetLogger:
    def test_cached_by_name(self):
        first = get_logger("yeelight_lan.test_cache", human_output="stderr")

        assert get_logger("yeelight_lan.test_cache") is first
        assert isinstance(first, YeelightLogger)
        assert len(first.logger.handlers) == 1

    def test_set_global_level(self):
        log = get_logger("yeelight_lan.test_level")
        original = log.logger.level
        try:
            set_global_level(logging.DEBUG)
            assert log.logger.level == logging.DEBUG
        finally:
            set_global_level(original)

    def test_extra_reaches_record(self, caplog):
        log = get_logger("yeelight_lan.test_extra")

        with caplog.at_level(logging.INFO, logger="yeelight_lan.test_extra"):
            log.info("Discovered %s", "10.0.0.4:55443", extra={"model": "color"})

        record = caplog.records[-1]
        assert record.getMessage() == "Discovered 10.0.0.4:55443"
        assert record.extra_data == {"model": "color"}


class TestYeelightLogger:
    def test_both_formats_write_json_file(self, tmp_path):
        json_file = tmp_path / "logs" / "yeelight.jsonl"
        log = YeelightLogger("yeelight_lan.test_both", log_format="both", json_file=json_file)
        try:
            log.warning("Read from %s timed out", "10.0.0.2:55443", extra={"phase": "read"})
            for handler in log.logger.handlers:
                handler.flush()

            entry = json.loads(json_file.read_text().splitlines()[-1])
            assert entry["message"] == "Read from 10.0.0.2:55443 timed out"
            assert entry["context"] == {"phase": "read"}
            assert len(log.logger.handlers) == 2
        finally:
            for handler in list(log.logger.handlers):
                handler.close()
                log.logger.removeHandler(handler)

    def test_unwritable_human_output_falls_back_to_stderr(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        log = YeelightLogger("yeelight_lan.test_fallback", human_output=str(blocker / "out.log"))
        try:
            (handler,) = log.logger.handlers
            assert isinstance(handler, logging.StreamHandler)
            assert not isinstance(handler, logging.FileHandler)
        finally:
            for handler in list(log.logger.handlers):
                log.logger.removeHandler(handler)
