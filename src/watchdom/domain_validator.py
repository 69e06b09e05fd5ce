"""
Domain validation and normalization module.

Turns user input (a bare domain, a host, or a URL) into the canonical
lowercase ASCII form handed to the lookup client.
"""

import re
from dataclasses import dataclass
from typing import Optional

import idna

from .enums import ValidationErrorCode
from .exceptions import ValidationError

MAX_DOMAIN_LENGTH = 253

# Control characters, whitespace and symbols that never appear in a hostname.
# '/' and ':' are absent because scheme and path are stripped first.
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&*()+=\[\]{}|\\;"\'<>,?`~]'
)

LABEL_PATTERN = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


@dataclass
class DomainValidationResult:
    """Result of domain validation operation."""

    valid: bool
    canonical_domain: Optional[str]
    error: Optional[ValidationError]


class DomainValidator:
    """
    Validates and normalizes domain names.

    Handles:
    - Stripping of a scheme:// prefix and any /path suffix
    - Rejection of forbidden characters
    - IDNA encoding for international characters
    - Label syntax, total length, and at least one dot
    """

    def validate(self, raw_domain: str) -> DomainValidationResult:
        """
        Validate and normalize a domain string.

        Args:
            raw_domain: The raw domain string to validate

        Returns:
            DomainValidationResult with validation status and canonical form or error
        """
        try:
            canonical = self.canonicalize(raw_domain)
        except ValidationError as e:
            return DomainValidationResult(valid=False, canonical_domain=None, error=e)
        return DomainValidationResult(valid=True, canonical_domain=canonical, error=None)

    def canonicalize(self, raw_domain: str) -> str:
        """
        Return the canonical form of a domain or raise.

        Raises:
            ValidationError: empty_input, forbidden_chars, idna_error or
                invalid_domain
        """
        if not raw_domain or not raw_domain.strip():
            raise ValidationError(
                ValidationErrorCode.EMPTY_INPUT.value,
                "Domain input is empty",
                {"raw_input": raw_domain},
            )

        domain = strip_url(raw_domain.strip())

        forbidden = FORBIDDEN_CHARS_PATTERN.findall(domain)
        if forbidden:
            raise ValidationError(
                ValidationErrorCode.FORBIDDEN_CHARS.value,
                "Domain contains forbidden characters",
                {"raw_input": raw_domain, "forbidden_chars": forbidden},
            )

        canonical = self.normalize_to_canonical(domain)

        if "." not in canonical:
            raise ValidationError(
                ValidationErrorCode.INVALID_DOMAIN.value,
                f"Invalid domain format: {raw_domain}",
                {"raw_input": raw_domain, "reason": "missing TLD"},
            )

        if len(canonical) > MAX_DOMAIN_LENGTH:
            raise ValidationError(
                ValidationErrorCode.INVALID_DOMAIN.value,
                f"Domain exceeds {MAX_DOMAIN_LENGTH} characters",
                {"raw_input": raw_domain, "length": len(canonical)},
            )

        for label in canonical.split("."):
            if not LABEL_PATTERN.match(label):
                raise ValidationError(
                    ValidationErrorCode.INVALID_DOMAIN.value,
                    f"Invalid domain label: {label!r}",
                    {"raw_input": raw_domain, "label": label},
                )

        return canonical

    def normalize_to_canonical(self, domain: str) -> str:
        """
        Convert domain to canonical form (lowercase, IDNA-encoded).

        Raises:
            ValidationError: If IDNA encoding fails
        """
        domain_lower = domain.lower().rstrip(".")

        if not any(ord(c) > 127 for c in domain_lower):
            return domain_lower

        try:
            return idna.encode(domain_lower, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                ValidationErrorCode.IDNA_ERROR.value,
                f"IDNA encoding failed: {e}",
                {"domain": domain, "idna_error": str(e)},
            ) from e


def strip_url(value: str) -> str:
    """Drop a scheme:// prefix, a /path suffix and a :port."""
    if "://" in value:
        value = value.split("://", 1)[1]
    value = value.split("/", 1)[0]
    return value.split(":", 1)[0]
