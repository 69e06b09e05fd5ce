"""
Tests for duration formatting and the console renderer.
"""

from io import StringIO

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from watchdom.display import ConsoleRenderer, format_epoch, format_timer, human_duration, target_distance
from watchdom.enums import Phase


def parse_human(text: str) -> int:
    units = {"d": 86400, "h": 3600, "m": 60, "s": 1}
    return sum(int(part[:-1]) * units[part[-1]] for part in text.split())


class TestHumanDuration:
    @pytest.mark.parametrize(
        "seconds, text",
        [(0, "0s"), (59, "59s"), (60, "1m 0s"), (3600, "1h 0m 0s"), (93784, "1d 2h 3m 4s")],
    )
    def test_examples(self, seconds: int, text: str) -> None:
        assert human_duration(seconds) == text

    @given(seconds=st.integers(min_value=0, max_value=10**8))
    @settings(max_examples=100)
    def test_sums_back(self, seconds: int) -> None:
        assert parse_human(human_duration(seconds)) == seconds

    def test_negative_clamped(self) -> None:
        assert human_duration(-5) == "0s"


class TestFormatTimer:
    @pytest.mark.parametrize(
        "seconds, text",
        [(30, "30s"), (330, "5:30"), (5427, "1:30:27"), (178227, "2d 1:30:27")],
    )
    def test_examples(self, seconds: int, text: str) -> None:
        assert format_timer(seconds) == text


class TestTargetDistance:
    def test_forms(self) -> None:
        assert target_distance(None, 100) == "none"
        assert target_distance(160, 100) == "T-1m 0s"
        assert target_distance(100, 100) == "TARGET"
        assert target_distance(100, 130) == "T+30s"

    def test_format_epoch_utc(self) -> None:
        assert format_epoch(1766685600) == "2025-12-25 18:00:00 UTC"


class TestConsoleRenderer:
    def test_plain_output_without_color(self) -> None:
        stream = StringIO()
        renderer = ConsoleRenderer(stream, color=False)
        renderer.tick("example.com", Phase.HEAT, 25, 1000, 900)
        renderer.message("hello")
        text = stream.getvalue()
        assert "\033[3" not in text
        assert "▲ HEAT | 25s | T-1m 40s | example.com | UTC\nhello\n" in text

    def test_color_when_requested(self) -> None:
        stream = StringIO()
        ConsoleRenderer(stream, color=True).phase_changed(None, Phase.COOL, 600)
        assert "\033[36m" in stream.getvalue()
        assert "START -> COOL" in stream.getvalue()
