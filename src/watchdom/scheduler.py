"""
Scheduler module for the watchdom system.

This module maps the base interval and an optional drop time onto the
polling phase and the effective interval for the next cycle, and parses
target time strings into epoch seconds.

Phases:
- PRE:   more than 30 minutes before target, base interval
- HEAT:  30 minutes or less before target, 30s then 10s
- GRACE: up to 3 hours after target, 10s
- COOL:  more than 3 hours after target, progressive back-off
"""

import re
from datetime import datetime, timezone
from typing import Optional

from .enums import Phase, ValidationErrorCode
from .exceptions import ParseError, ValidationError
from .models import GRACE_WINDOW_SECONDS, PhaseResult

HEAT_THRESHOLD_SECONDS = 1800
HEAT_FINAL_SECONDS = 300
HEAT_INTERVAL = 30
HEAT_FINAL_INTERVAL = 10
GRACE_INTERVAL = 10

# (elapsed past grace upper bound, interval); bounds are inclusive
COOL_STEPS: tuple[tuple[int, int], ...] = (
    (600, 30),
    (1200, 60),
    (1800, 300),
    (3600, 600),
    (7200, 1800),
)
COOL_MAX_INTERVAL = 3600

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
)
_UTC_SUFFIX = re.compile(r"\s*(UTC|GMT|Z)$", re.IGNORECASE)


def _check_epoch(value, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            ValidationErrorCode.INVALID_EPOCH.value,
            f"{name} must be a non-negative integer, got {value!r}",
            {name: value},
        )


def cool_interval(elapsed: int) -> int:
    """Interval for the COOL phase, given seconds elapsed past the grace window."""
    for upper, interval in COOL_STEPS:
        if elapsed <= upper:
            return interval
    return COOL_MAX_INTERVAL


def calculate_phase(
    base_interval: int,
    target_epoch: Optional[int],
    now: int,
) -> PhaseResult:
    """
    Compute the polling phase and effective interval for one instant.

    Args:
        base_interval: User-configured interval in seconds (must be > 0)
        target_epoch: Drop time as epoch seconds, or None
        now: Current time as epoch seconds

    Returns:
        PhaseResult with the effective interval and phase

    Raises:
        ValidationError: invalid_interval or invalid_epoch
    """
    if isinstance(base_interval, bool) or not isinstance(base_interval, int) or base_interval <= 0:
        raise ValidationError(
            ValidationErrorCode.INVALID_INTERVAL.value,
            f"Interval must be a positive integer, got {base_interval!r}",
            {"base_interval": base_interval},
        )
    _check_epoch(now, "now")

    if target_epoch is None:
        return PhaseResult(base_interval, Phase.PRE)

    _check_epoch(target_epoch, "target_epoch")

    to_target = target_epoch - now
    since_target = now - target_epoch

    if to_target > HEAT_THRESHOLD_SECONDS:
        return PhaseResult(base_interval, Phase.PRE)

    if to_target > 0:
        if to_target <= HEAT_FINAL_SECONDS:
            return PhaseResult(HEAT_FINAL_INTERVAL, Phase.HEAT)
        return PhaseResult(HEAT_INTERVAL, Phase.HEAT)

    if since_target <= GRACE_WINDOW_SECONDS:
        return PhaseResult(GRACE_INTERVAL, Phase.GRACE)

    return PhaseResult(cool_interval(since_target - GRACE_WINDOW_SECONDS), Phase.COOL)


def parse_target_time(when: str) -> int:
    """
    Parse a target time into epoch seconds.

    Accepts epoch digits, ISO 8601 strings and "YYYY-MM-DD HH:MM[:SS] [UTC]".
    Values without an explicit offset are taken as UTC.

    Raises:
        ParseError: If the string matches none of the supported forms
    """
    text = (when or "").strip()
    if not text:
        raise ParseError("empty_time", "Target time is empty", {"input": when})

    if text.isdigit():
        return int(text)

    candidates = [text, _UTC_SUFFIX.sub("", text)]
    for candidate in candidates:
        try:
            dt = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
        except ValueError:
            dt = None
        if dt is None:
            for fmt in _DATETIME_FORMATS:
                try:
                    dt = datetime.strptime(candidate, fmt)
                    break
                except ValueError:
                    continue
        if dt is not None:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(dt.timestamp())

    raise ParseError(
        "unparseable_time",
        f"Cannot parse target time: {when}",
        {"input": when},
    )
