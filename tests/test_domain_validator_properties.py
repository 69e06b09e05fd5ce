"""
Property-based tests for domain validation.

Canonical output is lowercase ASCII, idempotent and independent of any
URL decoration around the host.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from watchdom.domain_validator import MAX_DOMAIN_LENGTH, DomainValidator, strip_url
from watchdom.enums import ValidationErrorCode
from watchdom.exceptions import ValidationError

label = st.text(alphabet=string.ascii_letters + string.digits, min_size=1, max_size=20)
domain = st.lists(label, min_size=2, max_size=4).map(".".join)


class TestCanonicalization:
    @given(value=domain)
    @settings(max_examples=100)
    def test_lowercase_and_idempotent(self, value: str) -> None:
        validator = DomainValidator()
        canonical = validator.canonicalize(value)
        assert canonical == value.lower()
        assert validator.canonicalize(canonical) == canonical

    @given(value=domain, scheme=st.sampled_from(["http", "https"]), path=st.sampled_from(["", "/", "/a/b?q=1"]))
    @settings(max_examples=100)
    def test_url_decoration_ignored(self, value: str, scheme: str, path: str) -> None:
        validator = DomainValidator()
        assert validator.canonicalize(f"{scheme}://{value}:8080{path}") == validator.canonicalize(value)

    def test_idna(self) -> None:
        assert DomainValidator().canonicalize("Bücher.de") == "xn--bcher-kva.de"

    def test_trailing_dot(self) -> None:
        assert DomainValidator().canonicalize("Example.COM.") == "example.com"

    def test_strip_url(self) -> None:
        assert strip_url("https://example.com:443/path") == "example.com"


class TestRejection:
    @pytest.mark.parametrize(
        "raw, code",
        [
            ("", ValidationErrorCode.EMPTY_INPUT),
            ("   ", ValidationErrorCode.EMPTY_INPUT),
            ("exa mple.com", ValidationErrorCode.FORBIDDEN_CHARS),
            ("example;rm.com", ValidationErrorCode.FORBIDDEN_CHARS),
            ("localhost", ValidationErrorCode.INVALID_DOMAIN),
            ("-bad.com", ValidationErrorCode.INVALID_DOMAIN),
            ("bad-.com", ValidationErrorCode.INVALID_DOMAIN),
            ("a..com", ValidationErrorCode.INVALID_DOMAIN),
            ("under_score.com", ValidationErrorCode.INVALID_DOMAIN),
        ],
    )
    def test_rejected(self, raw: str, code: ValidationErrorCode) -> None:
        result = DomainValidator().validate(raw)
        assert not result.valid
        assert result.canonical_domain is None
        assert result.error.code == code.value

    def test_too_long(self) -> None:
        value = ".".join(["a" * 60] * 5)
        assert len(value) > MAX_DOMAIN_LENGTH
        with pytest.raises(ValidationError) as exc:
            DomainValidator().canonicalize(value)
        assert exc.value.code == ValidationErrorCode.INVALID_DOMAIN.value

    def test_valid_result(self) -> None:
        result = DomainValidator().validate("Example.com")
        assert result.valid
        assert result.canonical_domain == "example.com"
        assert result.error is None
