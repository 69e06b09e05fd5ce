"""
Enumeration types for the watchdom system.

These enums provide type-safe constants for phases, events, status codes,
and configuration options throughout the system.
"""

from enum import Enum, IntEnum


class Phase(Enum):
    """Polling aggressiveness relative to the target time."""

    PRE = "PRE"
    HEAT = "HEAT"
    GRACE = "GRACE"
    COOL = "COOL"


class EventKind(Enum):
    """Events that trigger an outbound notification."""

    SUCCESS = "success"
    TARGET_REACHED = "target_reached"
    GRACE_ENTERED = "grace_entered"


class LogLevel(Enum):
    """Logging severity levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {
    LogLevel.TRACE: 0,
    LogLevel.DEBUG: 1,
    LogLevel.INFO: 2,
    LogLevel.WARN: 3,
    LogLevel.ERROR: 4,
}


class DomainStatus(Enum):
    """Lifecycle status extracted from raw WHOIS output."""

    AVAILABLE = "AVAILABLE"
    PENDING_DELETE = "PENDING-DELETE"
    ON_HOLD = "ON-HOLD"
    REDEMPTION = "REDEMPTION"
    REGISTERED = "REGISTERED"
    RESERVED = "RESERVED"
    UNKNOWN = "UNKNOWN"


class ValidationErrorCode(Enum):
    """Error codes for input validation failures."""

    EMPTY_INPUT = "empty_input"
    FORBIDDEN_CHARS = "forbidden_chars"
    INVALID_DOMAIN = "invalid_domain"
    IDNA_ERROR = "idna_error"
    INVALID_INTERVAL = "invalid_interval"
    INVALID_EPOCH = "invalid_epoch"
    INVALID_MAX_CHECKS = "invalid_max_checks"


class RegistryErrorCode(Enum):
    """Error codes for TLD registry operations."""

    INVALID_TLD = "invalid_tld"
    INVALID_SERVER = "invalid_server"
    EMPTY_PATTERN = "empty_pattern"
    INVALID_PATTERN = "invalid_pattern"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    WRITE_FAILED = "write_failed"


class GraceChoice(Enum):
    """Outcome of the grace escalation prompt."""

    CONTINUE = "continue"
    EXIT = "exit"
    CUSTOM = "custom"


class WatchState(Enum):
    """States of the polling orchestrator."""

    IDLE = "idle"
    QUERYING = "querying"
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    WAITING = "waiting"
    LIMIT_REACHED = "limit_reached"
    DECLINED = "declined"
    RATE_LIMITED = "rate_limited"
    ABORTED = "aborted"


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    NOT_FOUND = 1
    INVALID_INPUT = 2
    DEPENDENCY_MISSING = 3
    PARSE_ERROR = 4
    RATE_LIMITED = 5
    INTERRUPTED = 130
