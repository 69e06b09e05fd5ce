"""
Availability matching for raw WHOIS output.

All searches are case-insensitive regex searches over the whole text.
The rate-limit screen runs independently of the availability pattern
and always wins: a throttled answer is never read as "available".
"""

import re
from typing import Optional

from .enums import DomainStatus
from .exceptions import RateLimitedError

RATE_LIMIT_PATTERN = re.compile(
    r"rate limit|exceeded|too many|try again|access denied|quota",
    re.IGNORECASE,
)

# Checked in order; the first hit decides the status.
STATUS_PATTERNS: tuple[tuple[re.Pattern, DomainStatus], ...] = (
    (re.compile(r"no match for|not found|no entries found|available", re.IGNORECASE),
     DomainStatus.AVAILABLE),
    (re.compile(r"pending.*delete|pendingdelete", re.IGNORECASE),
     DomainStatus.PENDING_DELETE),
    (re.compile(r"client.*hold|server.*hold", re.IGNORECASE),
     DomainStatus.ON_HOLD),
    (re.compile(r"redemption.*period|rgp", re.IGNORECASE),
     DomainStatus.REDEMPTION),
    (re.compile(r"name.*server", re.IGNORECASE),
     DomainStatus.REGISTERED),
    (re.compile(r"reserved|premium", re.IGNORECASE),
     DomainStatus.RESERVED),
)

REGISTRAR_LINE = re.compile(
    r"^\s*(?:sponsoring\s+)?registrar\s*:\s*(\S.*?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)

KNOWN_REGISTRARS = (
    ("verisign", "VeriSign"),
    ("godaddy", "GoDaddy"),
    ("namecheap", "Namecheap"),
)


def matches(raw_text: str, pattern: str) -> bool:
    """True if the availability pattern occurs anywhere in the output."""
    return re.search(pattern, raw_text, re.IGNORECASE) is not None


def is_rate_limited(raw_text: str) -> bool:
    """True if the output looks like a throttling or refusal answer."""
    return RATE_LIMIT_PATTERN.search(raw_text) is not None


def extract_domain_status(raw_text: str) -> DomainStatus:
    """Classify raw output into a lifecycle status."""
    for pattern, status in STATUS_PATTERNS:
        if pattern.search(raw_text):
            return status
    return DomainStatus.UNKNOWN


def extract_registrar(raw_text: str) -> str:
    """Registrar name from the output, or 'UNKNOWN'."""
    # Prefer "Registrar:" over "Sponsoring Registrar:"
    plain = sponsoring = None
    for m in REGISTRAR_LINE.finditer(raw_text):
        line = m.group(0).strip().lower()
        if line.startswith("sponsoring"):
            sponsoring = sponsoring or m.group(1)
        else:
            plain = plain or m.group(1)
    if plain or sponsoring:
        return plain or sponsoring

    lowered = raw_text.lower()
    for needle, name in KNOWN_REGISTRARS:
        if needle in lowered:
            return name
    return "UNKNOWN"


class AvailabilityMatcher:
    """
    Decides whether one lookup reports the domain as available.

    An override pattern, when given, replaces the registry pattern for
    every evaluation.
    """

    def __init__(self, override_pattern: Optional[str] = None) -> None:
        self._override = override_pattern

    def effective_pattern(self, registry_pattern: str) -> str:
        return self._override or registry_pattern

    def evaluate(self, raw_text: str, registry_pattern: str) -> bool:
        """
        Screen for rate limiting, then test the availability pattern.

        Raises:
            RateLimitedError: If the output matches the rate-limit screen
        """
        if is_rate_limited(raw_text):
            hit = RATE_LIMIT_PATTERN.search(raw_text)
            raise RateLimitedError(
                "rate_limited",
                "Rate limit detected from WHOIS server",
                {"matched": hit.group(0) if hit else ""},
            )
        return matches(raw_text, self.effective_pattern(registry_pattern))
