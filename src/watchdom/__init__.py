"""
watchdom - phase-aware WHOIS watcher.

Polls a registry's WHOIS server for a domain and reports the moment it
becomes available, tightening the polling interval around a known drop
time and backing off once that time has long passed.
"""

__version__ = "2.0.0"
__author__ = "watchdom contributors"

from watchdom.exceptions import (
    WatchdomError,
    ValidationError,
    RegistryError,
    DependencyMissingError,
    QueryFailedError,
    RateLimitedError,
    ParseError,
    NotificationError,
)
from watchdom.enums import (
    DomainStatus,
    EventKind,
    ExitCode,
    GraceChoice,
    LogLevel,
    Phase,
    WatchState,
)
from watchdom.config import (
    LoggingConfig,
    NotifyConfig,
    TldEntry,
    WatchConfig,
    load_config,
)
from watchdom.models import (
    GraceDecision,
    NotificationEvent,
    PhaseResult,
    PollState,
    PollTarget,
    QueryReport,
    WatchResult,
)
from watchdom.audit_logger import AuditLogger, LogEntry
from watchdom.domain_validator import DomainValidator, DomainValidationResult
from watchdom.scheduler import calculate_phase, parse_target_time
from watchdom.tld_registry import Registry, extract_tld
from watchdom.whois_client import WhoisClient
from watchdom.matcher import (
    AvailabilityMatcher,
    extract_domain_status,
    extract_registrar,
    is_rate_limited,
    matches,
)
from watchdom.grace import (
    AutoConfirmDecisionProvider,
    DecisionProvider,
    GracePrompt,
    InteractiveDecisionProvider,
)
from watchdom.notifications import (
    MailBackend,
    MuttBackend,
    NotificationBackend,
    NotificationDispatcher,
    SendmailBackend,
    SmtpBackend,
    WebhookBackend,
)
from watchdom.display import ConsoleRenderer, NullRenderer, format_timer, human_duration
from watchdom.orchestrator import WatchOrchestrator
from watchdom.i18n import get_message

__all__ = [
    "__version__",
    # Exceptions
    "WatchdomError",
    "ValidationError",
    "RegistryError",
    "DependencyMissingError",
    "QueryFailedError",
    "RateLimitedError",
    "ParseError",
    "NotificationError",
    # Enums
    "DomainStatus",
    "EventKind",
    "ExitCode",
    "GraceChoice",
    "LogLevel",
    "Phase",
    "WatchState",
    # Config
    "LoggingConfig",
    "NotifyConfig",
    "TldEntry",
    "WatchConfig",
    "load_config",
    # Models
    "GraceDecision",
    "NotificationEvent",
    "PhaseResult",
    "PollState",
    "PollTarget",
    "QueryReport",
    "WatchResult",
    # Components
    "AuditLogger",
    "LogEntry",
    "DomainValidator",
    "DomainValidationResult",
    "calculate_phase",
    "parse_target_time",
    "Registry",
    "extract_tld",
    "WhoisClient",
    "AvailabilityMatcher",
    "extract_domain_status",
    "extract_registrar",
    "is_rate_limited",
    "matches",
    "AutoConfirmDecisionProvider",
    "DecisionProvider",
    "GracePrompt",
    "InteractiveDecisionProvider",
    "MailBackend",
    "MuttBackend",
    "NotificationBackend",
    "NotificationDispatcher",
    "SendmailBackend",
    "SmtpBackend",
    "WebhookBackend",
    "ConsoleRenderer",
    "NullRenderer",
    "format_timer",
    "human_duration",
    "WatchOrchestrator",
    "get_message",
]
