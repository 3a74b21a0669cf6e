"""
Locale Resolver - Map a language tag to a full-text stemming language.
"""

from __future__ import annotations

__all__ = ["FALLBACK_STEMMER", "STEMMERS", "long_locale"]

FALLBACK_STEMMER = "simple"

# Locales the forum ships translations for; add as needed
STEMMERS: dict[str, str] = {
    "da": "danish",
    "de": "german",
    "en": "english",
    "es": "spanish",
    "fr": "french",
    "it": "italian",
    "ja": "japanese",
    "nl": "dutch",
    "pt": "portuguese",
    "sv": "swedish",
    "ru": "russian",
}


def long_locale(tag: str | None) -> str:
    """
    Resolve a language tag such as ``en``, ``pt_BR`` or ``en-GB``.

    Never fails: unknown or empty tags get the language-neutral stemmer.
    """
    if not tag:
        return FALLBACK_STEMMER
    normalized = tag.strip().lower().replace("-", "_")
    if normalized in STEMMERS:
        return STEMMERS[normalized]
    return STEMMERS.get(normalized.split("_", 1)[0], FALLBACK_STEMMER)
