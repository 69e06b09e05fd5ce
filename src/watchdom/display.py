"""
Terminal rendering for the watch loop.

ConsoleRenderer draws a single live status line that is rewritten in
place every second, plus banners for phase changes and the final
summary. NullRenderer swallows everything and is used by tests and
quiet runs.
"""

import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from .enums import Phase

RESET = "\033[0m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
PURPLE = "\033[35m"
CYAN = "\033[36m"
CLEAR_LINE = "\r\033[K"

PHASE_STYLE = {
    Phase.PRE: ("λ", BLUE),
    Phase.HEAT: ("▲", RED),
    Phase.GRACE: ("▵", PURPLE),
    Phase.COOL: ("❅", CYAN),
}

PASS = "✓"
FAIL = "✗"
DELTA = "△"


def human_duration(seconds: int) -> str:
    """
    Format seconds as '1d 2h 3m 4s', leaving out leading zero units.

    >>> human_duration(93784)
    '1d 2h 3m 4s'
    >>> human_duration(0)
    '0s'
    """
    seconds = max(0, int(seconds))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if days or hours:
        parts.append(f"{hours}h")
    if days or hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


def format_timer(seconds: int) -> str:
    """
    Compact countdown format.

    >>> format_timer(30), format_timer(330), format_timer(5427), format_timer(178227)
    ('30s', '5:30', '1:30:27', '2d 1:30:27')
    """
    seconds = max(0, int(seconds))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    if days:
        return f"{days}d {hours}:{minutes:02d}:{secs:02d}"
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    if minutes:
        return f"{minutes}:{secs:02d}"
    return f"{secs}s"


def format_epoch(epoch: int, local: bool = False) -> str:
    """Render an epoch as 'YYYY-MM-DD HH:MM:SS UTC' or in local time."""
    dt = datetime.fromtimestamp(epoch, tz=timezone.utc)
    if local:
        dt = dt.astimezone()
    return dt.strftime("%Y-%m-%d %H:%M:%S %Z")


def target_distance(target_epoch: Optional[int], now: int) -> str:
    if target_epoch is None:
        return "none"
    diff = target_epoch - now
    if diff > 0:
        return f"T-{human_duration(diff)}"
    if diff == 0:
        return "TARGET"
    return f"T+{human_duration(-diff)}"


class NullRenderer:
    """Renderer that draws nothing."""

    def start(self, domain: str, server: str, interval: int, target_epoch: Optional[int]) -> None:
        pass

    def tick(self, domain: str, phase: Phase, remaining: int, target_epoch: Optional[int], now: int) -> None:
        pass

    def phase_changed(self, old: Optional[Phase], new: Phase, interval: int) -> None:
        pass

    def message(self, text: str) -> None:
        pass

    def finish(self, success: bool, domain: str, status: str, registrar: str, elapsed: int, checks: int) -> None:
        pass


class ConsoleRenderer(NullRenderer):
    """Colorized renderer writing to a terminal stream (stderr by default)."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: Optional[bool] = None,
        local_time: bool = False,
    ) -> None:
        self._stream = stream or sys.stderr
        if color is None:
            color = hasattr(self._stream, "isatty") and self._stream.isatty()
        self._color = color
        self._local_time = local_time
        self._live = False

    def _c(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self._color else text

    def _write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def _end_live_line(self) -> None:
        if self._live:
            self._write("\n")
            self._live = False

    def start(self, domain: str, server: str, interval: int, target_epoch: Optional[int]) -> None:
        lines = [
            self._c(GREEN, f"watchdom: {domain}"),
            f"  server   : {server}",
            f"  interval : {interval}s",
        ]
        if target_epoch is not None:
            lines.append(f"  target   : {format_epoch(target_epoch, self._local_time)}")
        self._write("\n".join(lines) + "\n")

    def tick(self, domain: str, phase: Phase, remaining: int, target_epoch: Optional[int], now: int) -> None:
        glyph, color = PHASE_STYLE[phase]
        mode = "LOCAL" if self._local_time else "UTC"
        line = " | ".join([
            self._c(color, f"{glyph} {phase.value}"),
            format_timer(remaining),
            target_distance(target_epoch, now),
            domain,
            mode,
        ])
        self._write(CLEAR_LINE + line)
        self._live = True

    def phase_changed(self, old: Optional[Phase], new: Phase, interval: int) -> None:
        self._end_live_line()
        glyph, color = PHASE_STYLE[new]
        before = old.value if old else "START"
        self._write(self._c(color, f"{DELTA} Phase {before} -> {new.value} {glyph} (interval {interval}s)") + "\n")

    def message(self, text: str) -> None:
        self._end_live_line()
        self._write(text + "\n")

    def finish(self, success: bool, domain: str, status: str, registrar: str, elapsed: int, checks: int) -> None:
        self._end_live_line()
        symbol, color = (PASS, GREEN) if success else (FAIL, RED)
        when = format_epoch(int(datetime.now(timezone.utc).timestamp()), self._local_time)
        self._write(self._c(
            color,
            f"{symbol} {'success' if success else 'stopped'} at {when} | "
            f"{domain} {status} | {registrar} | {human_duration(elapsed)} | {checks} checks",
        ) + "\n")
