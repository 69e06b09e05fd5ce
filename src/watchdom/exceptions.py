"""
Exception classes for the watchdom system.

All exceptions inherit from WatchdomError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional

from .enums import ExitCode


class WatchdomError(Exception):
    """Base exception for all watchdom errors."""

    exit_code = ExitCode.NOT_FOUND

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(WatchdomError):
    """Raised when user input (domain, interval, epoch) is malformed."""

    exit_code = ExitCode.INVALID_INPUT


class RegistryError(ValidationError):
    """Raised when a TLD entry cannot be added or resolved."""

    pass


class DependencyMissingError(WatchdomError):
    """Raised when the external lookup client is not installed."""

    exit_code = ExitCode.DEPENDENCY_MISSING


class QueryFailedError(WatchdomError):
    """Raised when a single lookup attempt fails (timeout, exit status, empty output)."""

    pass


class RateLimitedError(WatchdomError):
    """Raised when the lookup output indicates the server is rate limiting us."""

    exit_code = ExitCode.RATE_LIMITED


class ParseError(WatchdomError):
    """Raised when a target time string cannot be parsed."""

    exit_code = ExitCode.PARSE_ERROR


class NotificationError(WatchdomError):
    """Raised when a notification backend fails to deliver."""

    pass
