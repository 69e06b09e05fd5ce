"""
Property-based tests for translations.

Every key exists in both languages and lookups never raise.
"""

import re

from hypothesis import given, settings
from hypothesis import strategies as st

from watchdom.i18n import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    TRANSLATIONS,
    get_all_message_keys,
    get_message,
    get_missing_translations,
)

PLACEHOLDER = re.compile(r"\{(\w+)\}")


class TestCompleteness:
    def test_no_missing_translations(self) -> None:
        for language in SUPPORTED_LANGUAGES:
            assert get_missing_translations(language) == set()

    def test_placeholders_agree(self) -> None:
        for key, translations in TRANSLATIONS.items():
            names = {lang: set(PLACEHOLDER.findall(text)) for lang, text in translations.items()}
            assert names["de"] == names["en"], key


class TestGetMessage:
    @given(key=st.sampled_from(sorted(TRANSLATIONS)), language=st.sampled_from(["en", "de"]))
    @settings(max_examples=100)
    def test_known_keys_format(self, key: str, language: str) -> None:
        message = get_message(key, language, domain="example.com", tld=".zz", server="whois.x",
                              max_checks=3, checks=1, details="d")
        assert message
        assert not PLACEHOLDER.search(message)

    @given(key=st.text(max_size=20).filter(lambda k: k not in TRANSLATIONS))
    @settings(max_examples=50)
    def test_unknown_key_returned(self, key: str) -> None:
        assert get_message(key) == key

    def test_unsupported_language_falls_back(self) -> None:
        assert get_message("grace.header", "fr") == get_message("grace.header", DEFAULT_LANGUAGE)

    def test_missing_argument_leaves_template(self) -> None:
        assert "{domain}" in get_message("notify.success.subject", "en", other="x")

    def test_german_subject(self) -> None:
        assert get_message("notify.success.subject", "de", domain="a.de") == "Domain verfügbar: a.de"

    def test_keys_listed(self) -> None:
        assert get_all_message_keys() == set(TRANSLATIONS)
