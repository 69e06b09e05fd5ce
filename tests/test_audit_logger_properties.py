"""
Property-based tests for the Audit Logger.

Covers the level threshold, masking of secrets and both output formats.
"""

import json
from io import StringIO

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from watchdom.audit_logger import AuditLogger
from watchdom.enums import LogLevel
from watchdom.exceptions import QueryFailedError

levels = st.sampled_from(list(LogLevel))


class TestThreshold:
    """Entries below the threshold are recorded but not written."""

    @given(level=levels, threshold=levels)
    @settings(max_examples=100)
    def test_written_iff_at_or_above(self, level: LogLevel, threshold: LogLevel) -> None:
        stream = StringIO()
        logger = AuditLogger(output_stream=stream, min_level=threshold)
        logger.log(level, "Test", "message")
        assert len(logger.entries) == 1
        assert bool(stream.getvalue()) == (level.rank >= threshold.rank)

    @pytest.mark.parametrize(
        "debug, trace, expected",
        [
            (False, False, LogLevel.ERROR),
            (True, False, LogLevel.DEBUG),
            (False, True, LogLevel.TRACE),
            (True, True, LogLevel.TRACE),
        ],
    )
    def test_from_flags(self, debug: bool, trace: bool, expected: LogLevel) -> None:
        assert AuditLogger.from_flags(debug, trace, output_stream=StringIO()).min_level == expected

    @given(default=levels)
    @settings(max_examples=20)
    def test_flags_override_configured_level(self, default: LogLevel) -> None:
        plain = AuditLogger.from_flags(output_stream=StringIO(), default_level=default)
        assert plain.min_level == default
        traced = AuditLogger.from_flags(trace=True, output_stream=StringIO(), default_level=default)
        assert traced.min_level == LogLevel.TRACE

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")


class TestMasking:
    """Secrets never reach an entry."""

    @given(
        key=st.sampled_from(["password", "NOTIFY_SMTP_PASS", "webhook_url", "api_token", "Authorization"]),
        value=st.text(min_size=1, max_size=20),
    )
    @settings(max_examples=100)
    def test_sensitive_keys_masked(self, key: str, value: str) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.info("Config", "loaded", {key: value, "nested": {key: value}})
        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert entry.data["nested"][key] == AuditLogger.MASK_VALUE

    def test_plain_keys_kept(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.info("Watch", "start", {"domain": "example.com", "interval": 60})
        assert entry.data == {"domain": "example.com", "interval": 60}


class TestFormats:
    def test_json_line(self) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream, min_level=LogLevel.TRACE)
        logger.debug("Registry", "loaded", {"tld": ".com"})
        obj = json.loads(stream.getvalue())
        assert obj["level"] == "debug"
        assert obj["component"] == "Registry"
        assert obj["data"] == {"tld": ".com"}

    def test_text_line(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.warn("Watch", "slow", {"n": 1})
        line = logger.get_text_output(entry)
        assert " WARN [Watch] slow " in line
        assert line.endswith('{"n": 1}')

    def test_log_error_context(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        entry = logger.log_error("Client", "failed", QueryFailedError("timeout", "timed out"), {"domain": "a.com"})
        assert entry.level == LogLevel.ERROR
        assert entry.data == {
            "domain": "a.com",
            "error_message": "timed out",
            "error_type": "QueryFailedError",
            "error_code": "timeout",
        }

    def test_clear_entries(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        logger.info("A", "b")
        logger.clear_entries()
        assert logger.entries == []
