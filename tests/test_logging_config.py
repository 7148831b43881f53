"""Tests for structured logging configuration."""

import json
import logging

import structlog

from cli.logging_config import MAX_FIELD_CHARS, _renderer, _truncate_long_values, setup_logging


class TestLoggingConfig:
    """Test structlog setup modes."""

    def test_console_mode(self):
        """Console mode configures without error."""
        setup_logging(json_mode=False, level="DEBUG")
        structlog.get_logger().info("test message", key="value")

    def test_json_mode(self):
        setup_logging(json_mode=True, level="DEBUG")
        logging.getLogger("test_json").info("json test")

    def test_level_filtering(self):
        setup_logging(json_mode=False, level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_single_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_processor_chain(self):
        setup_logging(json_mode=True, level="DEBUG")
        config = structlog.get_config()
        assert _truncate_long_values in config["processors"]

    def test_default_level_is_info(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_json_events_go_to_stderr(self, capsys):
        setup_logging(json_mode=True, level="INFO")
        structlog.get_logger("factpack.test").info("facts_pack_built", facts=2)
        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "facts_pack_built"
        assert event["facts"] == 2
        assert event["level"] == "info"

    def test_renderer_choice(self):
        assert isinstance(_renderer(True), structlog.processors.JSONRenderer)
        assert isinstance(_renderer(False), structlog.dev.ConsoleRenderer)


class TestTruncateLongValues:
    def test_long_field_clipped(self):
        event = {"event": "facts_pack_built", "topic": "x" * (MAX_FIELD_CHARS + 50)}
        out = _truncate_long_values(None, None, event)
        assert out["topic"].endswith("...[truncated]")
        assert len(out["topic"]) == MAX_FIELD_CHARS + len("...[truncated]")

    def test_event_name_untouched(self):
        name = "e" * (MAX_FIELD_CHARS + 1)
        assert _truncate_long_values(None, None, {"event": name})["event"] == name

    def test_short_and_non_string_untouched(self):
        event = {"event": "x", "facts": 3, "topic": "short"}
        assert _truncate_long_values(None, None, dict(event)) == event
