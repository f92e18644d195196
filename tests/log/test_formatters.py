"""
Tests for OpenTelemetry-compliant log formatters.

Tests for JsonFormatter, HumanFormatter, and scoped_logger.
"""

import json
import logging
import os
from io import StringIO
from unittest.mock import patch

import pytest


def make_record(level=logging.INFO, msg="Test message", args=(), name="chatplate.template"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="/site-packages/chatplate/template/prompt.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )


@pytest.fixture
def captured():
    """Attach a JSON handler to the chatplate logger and yield its stream."""
    from chatplate._logging import JsonFormatter, logger

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    old_level = logger.level
    logger.setLevel(logging.DEBUG)
    try:
        yield stream
    finally:
        logger.removeHandler(handler)
        logger.setLevel(old_level)


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_otel_structure(self):
        """Output is JSON following the OpenTelemetry Logging Data Model."""
        from chatplate._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(make_record()))

        for key in ("timestamp", "severityText", "body", "attributes", "resource"):
            assert key in parsed

    def test_timestamp_format(self):
        """Timestamp is RFC3339 with nanoseconds."""
        from chatplate._logging import JsonFormatter

        ts = json.loads(JsonFormatter().format(make_record()))["timestamp"]

        assert ts.endswith("Z")
        assert "T" in ts
        assert len(ts.split(".")[-1]) == 10  # 9 digits + Z

    @pytest.mark.parametrize(
        ("level", "severity"),
        [
            (logging.DEBUG, "DEBUG"),
            (logging.INFO, "INFO"),
            (logging.WARNING, "WARN"),
            (logging.ERROR, "ERROR"),
            (logging.CRITICAL, "FATAL"),
        ],
    )
    def test_severity_text_mapping(self, level, severity):
        """Python log levels map to OpenTelemetry severity text."""
        from chatplate._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(make_record(level=level)))
        assert parsed["severityText"] == severity

    def test_body_is_formatted_message(self):
        """Body contains the %-formatted log message."""
        from chatplate._logging import JsonFormatter

        record = make_record(msg="Rendered %d chars", args=(12,))
        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["body"] == "Rendered 12 chars"

    def test_scope_inferred_from_logger_name(self):
        """Scope falls back to the logger name when not given."""
        from chatplate._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(make_record(name="chatplate.template.loaders")))
        assert parsed["attributes"]["scope"] == "loader"

    def test_extra_attributes_included(self):
        """Extra record attributes land in the attributes dict."""
        from chatplate._logging import JsonFormatter

        record = make_record()
        record.tokens = 17
        record.path = "/models/qwen/tokenizer_config.json"

        attributes = json.loads(JsonFormatter().format(record))["attributes"]

        assert attributes["tokens"] == 17
        assert attributes["path"] == "/models/qwen/tokenizer_config.json"

    def test_resource_contains_service_info(self):
        """Resource names the chatplate service and its version."""
        from chatplate._logging import JsonFormatter

        resource = json.loads(JsonFormatter().format(make_record()))["resource"]

        assert resource["service.name"] == "chatplate"
        assert "service.version" in resource

    def test_code_location_for_debug(self):
        """DEBUG records carry the code location, with the package prefix stripped."""
        from chatplate._logging import JsonFormatter

        attributes = json.loads(JsonFormatter().format(make_record(level=logging.DEBUG)))[
            "attributes"
        ]

        assert attributes["code.filepath"] == "template/prompt.py"
        assert attributes["code.lineno"] == 42

    def test_no_code_location_for_info(self):
        """INFO records omit the code location."""
        from chatplate._logging import JsonFormatter

        attributes = json.loads(JsonFormatter().format(make_record()))["attributes"]

        assert "code.filepath" not in attributes
        assert "code.lineno" not in attributes


class TestHumanFormatter:
    """Tests for HumanFormatter."""

    def test_format_basic(self):
        """Output has the time, severity, scope and message."""
        from chatplate._logging import HumanFormatter

        record = make_record()
        record.scope = "loader"
        output = HumanFormatter(use_colors=False).format(record)

        time_part = output.split()[0]
        assert len(time_part) == 8
        assert time_part.count(":") == 2
        assert "INFO" in output
        assert "[loader]" in output
        assert "Test message" in output

    def test_template_name_in_parentheses(self):
        """A ``template`` attribute appears in parentheses."""
        from chatplate._logging import HumanFormatter

        record = make_record(msg="Loaded chat template")
        record.template = "chatml"

        assert "(chatml)" in HumanFormatter(use_colors=False).format(record)

    def test_colors(self):
        """ANSI colors follow the use_colors flag."""
        from chatplate._logging import HumanFormatter

        record = make_record(level=logging.ERROR)

        assert "\x1b[" not in HumanFormatter(use_colors=False).format(record)
        assert "\x1b[" in HumanFormatter(use_colors=True).format(record)


class TestScopedLogger:
    """Tests for scoped_logger."""

    def test_creates_logger_adapter(self):
        """scoped_logger returns a LoggerAdapter on the chatplate logger."""
        from chatplate._logging import logger, scoped_logger

        log = scoped_logger("template")

        assert isinstance(log, logging.LoggerAdapter)
        assert log.logger is logger

    def test_extra_merges_with_scope(self, captured):
        """Per-call extra attributes merge with the fixed scope."""
        from chatplate._logging import scoped_logger

        scoped_logger("loader").info("Loaded chat template", extra={"chars": 120})

        attributes = json.loads(captured.getvalue().strip())["attributes"]
        assert attributes["scope"] == "loader"
        assert attributes["chars"] == 120


class TestTemplateActivityLogging:
    """Compile and render activity is logged."""

    def test_compile_and_render_logged_at_debug(self, captured):
        """Compiling and rendering emit DEBUG records with counts."""
        from chatplate import PromptTemplate

        PromptTemplate("Hello {{ name }}!")(name="World")

        records = [json.loads(line) for line in captured.getvalue().splitlines()]
        by_body = {r["body"]: r for r in records}

        assert by_body["Compiled template"]["severityText"] == "DEBUG"
        assert by_body["Compiled template"]["attributes"]["tokens"] == 5
        assert by_body["Compiled template"]["attributes"]["nodes"] == 3
        assert by_body["Rendered template"]["attributes"]["chars"] == len("Hello World!")
        assert "elapsed_ms" in by_body["Rendered template"]["attributes"]

    def test_debug_config_promotes_to_info(self, captured):
        """With config.debug set, template records are logged at INFO."""
        from chatplate import PromptTemplate
        from chatplate.template import config

        config.debug = True
        try:
            PromptTemplate("{{ x }}")(x=1)
        finally:
            config.debug = False

        records = [json.loads(line) for line in captured.getvalue().splitlines()]
        assert records
        assert all(r["severityText"] == "INFO" for r in records)


class TestEnvironmentVariables:
    """Tests for environment variable handling."""

    @pytest.mark.parametrize(
        ("value", "level"),
        [("debug", logging.DEBUG), ("warn", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def test_log_level(self, value, level):
        """CHATPLATE_LOG_LEVEL selects the level, case-insensitively."""
        from chatplate._logging import _get_log_level

        with patch.dict(os.environ, {"CHATPLATE_LOG_LEVEL": value}):
            assert _get_log_level() == level

    def test_log_level_off(self):
        """CHATPLATE_LOG_LEVEL=off silences everything."""
        from chatplate._logging import _get_log_level

        with patch.dict(os.environ, {"CHATPLATE_LOG_LEVEL": "off"}):
            assert _get_log_level() > logging.CRITICAL

    def test_short_log_env(self):
        """CHATPLATE_LOG is read when CHATPLATE_LOG_LEVEL is unset."""
        from chatplate._logging import _get_log_level

        env = {k: v for k, v in os.environ.items() if k != "CHATPLATE_LOG_LEVEL"}
        env["CHATPLATE_LOG"] = "error"
        with patch.dict(os.environ, env, clear=True):
            assert _get_log_level() == logging.ERROR

    @pytest.mark.parametrize("fmt", ["json", "human"])
    def test_log_format(self, fmt):
        """CHATPLATE_LOG_FORMAT is honoured."""
        from chatplate._logging import _get_log_format

        with patch.dict(os.environ, {"CHATPLATE_LOG_FORMAT": fmt}):
            assert _get_log_format() == fmt
