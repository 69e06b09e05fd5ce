"""
Data models for the watchdom system.

This module defines the data structures used for a single watch run:
the immutable poll target, the mutable loop state, phase results,
notification events, and the final run result.
"""

from dataclasses import dataclass, field
from typing import Optional

from .enums import DomainStatus, EventKind, ExitCode, GraceChoice, Phase, WatchState

GRACE_WINDOW_SECONDS = 10800


@dataclass(frozen=True)
class PollTarget:
    """What to watch and how; fixed for the lifetime of a run."""

    domain: str
    base_interval_seconds: int
    target_epoch: Optional[int] = None
    max_checks: Optional[int] = None
    pattern_override: Optional[str] = None

    @property
    def grace_start_epoch(self) -> Optional[int]:
        if self.target_epoch is None:
            return None
        return self.target_epoch + GRACE_WINDOW_SECONDS


@dataclass
class PollState:
    """Mutable loop state owned by the orchestrator."""

    check_count: int = 0
    target_alerted: bool = False
    grace_alerted: bool = False
    custom_interval_override: Optional[int] = None


@dataclass(frozen=True)
class PhaseResult:
    """Effective interval and phase for one instant."""

    effective_interval_seconds: int
    phase: Phase


@dataclass(frozen=True)
class NotificationEvent:
    """A detection event handed to the notification dispatcher."""

    kind: EventKind
    domain: str
    details: str = ""


@dataclass(frozen=True)
class GraceDecision:
    """Answer returned by a decision provider."""

    choice: GraceChoice
    custom_interval: Optional[int] = None


@dataclass
class QueryReport:
    """Result of a one-shot lookup."""

    domain: str
    server: str
    raw_output: str
    status: DomainStatus
    registrar: str
    matched: bool


@dataclass
class WatchResult:
    """Outcome of a complete watch run."""

    domain: str
    state: WatchState
    exit_code: ExitCode
    check_count: int
    elapsed_seconds: int
    phase: Optional[Phase] = None
    last_output: str = ""
    domain_status: DomainStatus = DomainStatus.UNKNOWN
    registrar: str = "UNKNOWN"
    errors: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.state == WatchState.MATCHED
