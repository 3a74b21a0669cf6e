"""
Query Normalizer - Turn a raw search term into an FTS5 match expression.

Each whitespace-separated token becomes a quoted prefix term and the terms
are ANDed together::

    >>> compile_query(tokenize("elevator door()"))
    '"elevator"* AND "door"*'
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from .locale import long_locale

__all__ = [
    "SearchExpression",
    "compile_query",
    "normalize_term",
    "tokenize",
]

# Characters that carry meaning in the query syntax
_SYNTAX_CHARS = re.compile(r"[:()&!'\"]")

# A token the index can match holds at least one word character
_WORD_CHAR = re.compile(r"\w")


def normalize_term(raw: str) -> str:
    """Strip syntax characters and collapse whitespace."""
    return " ".join(tokenize(raw))


def tokenize(raw: str) -> list[str]:
    """Split on whitespace and syntax characters, dropping punctuation-only tokens."""
    return [
        token
        for token in _SYNTAX_CHARS.sub(" ", raw or "").split()
        if _WORD_CHAR.search(token)
    ]


def compile_query(tokens: list[str]) -> str:
    """
    Build the AND-of-prefix-terms match string.

    Tokens are wrapped in double quotes, which FTS5 reads as a literal
    string, so operators inside user text (``OR``, ``NEAR``, ``*``, ``-``)
    lose their meaning. ``tokenize`` has already removed every quote.
    """
    return " AND ".join(f'"{token}"*' for token in tokens)


class SearchExpression(BaseModel):
    """Everything derived from the term, computed once per request."""

    raw: str
    term: str
    locale: str
    query: str

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.query

    @classmethod
    def compile(cls, raw: str, locale_tag: str | None) -> SearchExpression:
        tokens = tokenize(raw)
        return cls(
            raw=raw.strip(),
            term=" ".join(tokens),
            locale=long_locale(locale_tag),
            query=compile_query(tokens),
        )
