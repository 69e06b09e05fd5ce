"""
Configuration dataclasses for the watchdom system.

This module defines the configuration structures used throughout the system:
TLD lookup entries, notification settings, logging, and the watch defaults.
Values are read from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_INTERVAL = 60
DEFAULT_MAX_CHECKS = 0
DEFAULT_TIMEOUT = 30.0
DEFAULT_RC_PATH = Path.home() / ".watchdomrc"
LOG_LEVELS = ("trace", "debug", "info", "warn", "error")


@dataclass(frozen=True)
class TldEntry:
    """Lookup target and availability pattern for a TLD."""

    tld: str  # Leading dot, lowercase
    server: str
    pattern: str  # Case-insensitive regex
    builtin: bool = False

    def to_line(self) -> str:
        """Render as a user store line."""
        return f"{self.tld}|{self.server}|{self.pattern}"


@dataclass
class NotifyConfig:
    """Email notification settings; all six fields are required."""

    recipient: str = ""
    sender: str = ""
    smtp_host: str = ""
    smtp_port: str = ""
    username: str = ""
    password: str = ""
    webhook_url: Optional[str] = None

    def is_complete(self) -> bool:
        """True only when every email field is present."""
        return all(
            value.strip()
            for value in (
                self.recipient,
                self.sender,
                self.smtp_host,
                self.smtp_port,
                self.username,
                self.password,
            )
        )

    @property
    def port(self) -> int:
        try:
            return int(self.smtp_port)
        except ValueError:
            return 587


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "error"  # trace, debug, info, warn, error
    output_format: str = "text"  # 'json' or 'text'


@dataclass
class WatchConfig:
    """Main configuration combining all sub-configurations."""

    interval: int = DEFAULT_INTERVAL
    max_checks: int = DEFAULT_MAX_CHECKS
    rc_path: Path = field(default_factory=lambda: DEFAULT_RC_PATH)
    query_timeout: float = DEFAULT_TIMEOUT
    language: str = "en"
    notifications: NotifyConfig = field(default_factory=NotifyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    simulation_mode: bool = False


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, str(default)))
    except (TypeError, ValueError):
        return default


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(env.get(name, str(default)))
    except (TypeError, ValueError):
        return default


def load_config(env: Optional[Mapping[str, str]] = None) -> WatchConfig:
    """
    Build a WatchConfig from environment variables.

    Args:
        env: Mapping to read from. When omitted, a .env file is loaded
            into os.environ first and os.environ is used.

    Returns:
        WatchConfig with defaults for anything missing or malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    rc_path = env.get("WATCHDOM_RC", "").strip()
    language = (env.get("WATCHDOM_LANG", "en") or "en").lower()
    if language not in ("de", "en"):
        language = "en"

    log_level = (env.get("WATCHDOM_LOG_LEVEL", "error") or "error").lower()
    if log_level not in LOG_LEVELS:
        log_level = "error"
    log_format = (env.get("WATCHDOM_LOG_FORMAT", "text") or "text").lower()
    if log_format not in ("json", "text"):
        log_format = "text"

    notifications = NotifyConfig(
        recipient=env.get("NOTIFY_EMAIL", ""),
        sender=env.get("NOTIFY_FROM", ""),
        smtp_host=env.get("NOTIFY_SMTP_HOST", ""),
        smtp_port=env.get("NOTIFY_SMTP_PORT", ""),
        username=env.get("NOTIFY_SMTP_USER", ""),
        password=env.get("NOTIFY_SMTP_PASS", ""),
        webhook_url=env.get("WATCHDOM_NOTIFY_WEBHOOK_URL") or None,
    )

    return WatchConfig(
        interval=_int_env(env, "WATCHDOM_INTERVAL", DEFAULT_INTERVAL),
        max_checks=_int_env(env, "WATCHDOM_MAX_CHECKS", DEFAULT_MAX_CHECKS),
        rc_path=Path(rc_path).expanduser() if rc_path else DEFAULT_RC_PATH,
        query_timeout=_float_env(env, "WATCHDOM_TIMEOUT", DEFAULT_TIMEOUT),
        language=language,
        notifications=notifications,
        logging=LoggingConfig(level=log_level, output_format=log_format),
    )
