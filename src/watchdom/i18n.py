"""
Internationalization (i18n) module for the watchdom system.

Provides translations for notification texts, the grace prompt and CLI
result lines in English (en) and German (de).
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"de", "en"})
DEFAULT_LANGUAGE = "en"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Notification subjects and bodies
    "notify.success.subject": {
        "en": "Domain Available: {domain}",
        "de": "Domain verfügbar: {domain}",
    },
    "notify.success.body": {
        "en": "SUCCESS: {domain} is now available for registration!",
        "de": "ERFOLG: {domain} ist jetzt zur Registrierung verfügbar!",
    },
    "notify.target_reached.subject": {
        "en": "Target Time Reached: {domain}",
        "de": "Zielzeit erreicht: {domain}",
    },
    "notify.target_reached.body": {
        "en": "Target time reached for {domain} monitoring.\n\nEntering grace period...",
        "de": "Zielzeit für die Überwachung von {domain} erreicht.\n\nKulanzzeit beginnt...",
    },
    "notify.grace_entered.subject": {
        "en": "Grace Period: {domain}",
        "de": "Kulanzzeit: {domain}",
    },
    "notify.grace_entered.body": {
        "en": "Grace period exceeded for {domain} (3+ hours past target).",
        "de": "Kulanzzeit für {domain} überschritten (mehr als 3 Stunden nach Zielzeit).",
    },
    "notify.details": {
        "en": "Details: {details}",
        "de": "Details: {details}",
    },

    # Grace prompt
    "grace.header": {
        "en": "Grace period expired (3hrs past target). Continue watching?",
        "de": "Kulanzzeit abgelaufen (3 Std. nach Zielzeit). Weiter beobachten?",
    },
    "grace.option_yes": {
        "en": "[y] Yes, keep 1hr intervals",
        "de": "[y] Ja, mit 1-Stunden-Intervallen",
    },
    "grace.option_no": {
        "en": "[n] No, exit",
        "de": "[n] Nein, beenden",
    },
    "grace.option_custom": {
        "en": "[c] Custom interval (specify seconds)",
        "de": "[c] Eigenes Intervall (in Sekunden)",
    },
    "grace.choice": {
        "en": "Choice [y/n/c]: ",
        "de": "Auswahl [y/n/c]: ",
    },
    "grace.custom_prompt": {
        "en": "Enter custom interval in seconds: ",
        "de": "Eigenes Intervall in Sekunden: ",
    },
    "grace.invalid_custom": {
        "en": "Invalid interval, using 1hr default",
        "de": "Ungültiges Intervall, verwende 1 Stunde",
    },
    "grace.auto_continue": {
        "en": "Auto-continuing with 1hr intervals (--yes flag)",
        "de": "Automatisch fortgesetzt mit 1-Stunden-Intervallen (--yes)",
    },

    # Watch loop and results
    "watch.start": {
        "en": "Watching {domain} via {server}",
        "de": "Beobachte {domain} über {server}",
    },
    "watch.available": {
        "en": "{domain} is AVAILABLE!",
        "de": "{domain} ist VERFÜGBAR!",
    },
    "watch.target_reached": {
        "en": "Target time reached! Entering grace period (10s intervals for 3 hours)",
        "de": "Zielzeit erreicht! Kulanzzeit beginnt (10s-Intervalle für 3 Stunden)",
    },
    "watch.limit_reached": {
        "en": "Max checks ({max_checks}) reached without detecting availability",
        "de": "Maximale Anzahl Prüfungen ({max_checks}) erreicht, Domain nicht verfügbar",
    },
    "watch.declined": {
        "en": "Stopped by user after grace period",
        "de": "Nach der Kulanzzeit vom Benutzer beendet",
    },
    "watch.rate_limited": {
        "en": "Rate limit detected from WHOIS server, aborting",
        "de": "Ratenbegrenzung durch den WHOIS-Server erkannt, Abbruch",
    },
    "watch.interrupted": {
        "en": "Interrupted after {checks} checks",
        "de": "Nach {checks} Prüfungen abgebrochen",
    },

    # Query command
    "query.available": {
        "en": "{domain} is available",
        "de": "{domain} ist verfügbar",
    },
    "query.taken": {
        "en": "{domain} is not available",
        "de": "{domain} ist nicht verfügbar",
    },

    # Registry
    "registry.unsupported": {
        "en": "Unsupported TLD {tld}. Add it with: watchdom add-tld {tld} SERVER PATTERN",
        "de": "Nicht unterstützte TLD {tld}. Hinzufügen mit: watchdom add-tld {tld} SERVER PATTERN",
    },
    "registry.added": {
        "en": "Added TLD configuration: {tld} -> {server}",
        "de": "TLD-Konfiguration hinzugefügt: {tld} -> {server}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'notify.success.subject')
        language: Language code ('de' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.

    Examples:
        >>> get_message('notify.success.subject', 'en', domain='example.com')
        'Domain Available: example.com'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # If formatting fails, return the unformatted message
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {
        key for key, translations in TRANSLATIONS.items()
        if language not in translations
    }
