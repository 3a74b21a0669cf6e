"""
Tests for query normalization and locale resolution.
"""

from __future__ import annotations

import pytest

from .locale import FALLBACK_STEMMER, long_locale
from .query import SearchExpression, compile_query, normalize_term, tokenize


# --- Locale Tests ---


@pytest.mark.parametrize(
    ("tag", "stemmer"),
    [
        ("en", "english"),
        ("de", "german"),
        ("ja", "japanese"),
        ("ru", "russian"),
        ("pt_BR", "portuguese"),
        ("en-GB", "english"),
        ("FR", "french"),
    ],
)
def test_long_locale_known_tags(tag: str, stemmer: str) -> None:
    """Test supported tags map to their stemmer."""
    assert long_locale(tag) == stemmer


@pytest.mark.parametrize("tag", ["zh_TW", "ko", "xx", "", None])
def test_long_locale_falls_back_to_simple(tag: str | None) -> None:
    """Test unsupported tags degrade to the simple stemmer."""
    assert long_locale(tag) == FALLBACK_STEMMER == "simple"


# --- Normalizer Tests ---


def test_two_terms_joined_with_and() -> None:
    """Test each token becomes a prefix term, ANDed together."""
    assert compile_query(tokenize("foo bar")) == '"foo"* AND "bar"*'


def test_syntax_characters_split_tokens() -> None:
    """Test syntax characters are stripped like whitespace."""
    assert tokenize("foo:bar()") == ["foo", "bar"]
    assert compile_query(tokenize("foo:bar()")) == compile_query(tokenize("foo bar"))


def test_all_syntax_characters_removed() -> None:
    """Test every syntax-significant character is dropped."""
    assert tokenize("a:b(c)d&e!f'g\"h") == ["a", "b", "c", "d", "e", "f", "g", "h"]


def test_normalization_is_idempotent() -> None:
    """Test normalizing an already normalized term changes nothing."""
    for raw in ["foo bar", "foo:bar()", "  (hello) & 'world'!  ", "don't stop", "foo - bar"]:
        once = normalize_term(raw)
        assert normalize_term(once) == once


def test_empty_tokens_dropped() -> None:
    """Test runs of whitespace produce no empty tokens."""
    assert tokenize("  foo \t\n bar  ") == ["foo", "bar"]


@pytest.mark.parametrize(
    "raw", ["elevator -", "elevator ---", "elevator ***", "elevator ^", "elevator ."]
)
def test_punctuation_only_tokens_dropped(raw: str) -> None:
    """Test tokens with no word characters never reach the match string."""
    assert tokenize(raw) == ["elevator"]
    assert compile_query(tokenize(raw)) == '"elevator"*'


def test_punctuation_inside_a_word_kept() -> None:
    """Test a token with any word character survives intact."""
    assert tokenize("c++ -foo a.b") == ["c++", "-foo", "a.b"]


def test_query_operators_are_quoted() -> None:
    """Test FTS5 operators in user text stay literal."""
    query = compile_query(tokenize("cats OR NEAR dogs*"))
    assert query == '"cats"* AND "OR"* AND "NEAR"* AND "dogs*"*'


# --- SearchExpression Tests ---


def test_expression_compile() -> None:
    """Test the expression carries term, stemmer and query."""
    expression = SearchExpression.compile("  door (sensor) ", "en")
    assert expression.raw == "door (sensor)"
    assert expression.term == "door sensor"
    assert expression.locale == "english"
    assert expression.query == '"door"* AND "sensor"*'
    assert not expression.is_empty


def test_expression_of_only_syntax_characters_is_empty() -> None:
    """Test a term with no tokens left matches nothing."""
    expression = SearchExpression.compile(":::()", "de")
    assert expression.is_empty
    assert expression.query == ""
    assert expression.locale == "german"


def test_expression_of_only_punctuation_is_empty() -> None:
    """Test a term made of dashes and dots compiles to nothing."""
    expression = SearchExpression.compile("--- ... ^", "en")
    assert expression.is_empty
    assert expression.term == ""


def test_expression_is_immutable() -> None:
    """Test SearchExpression is frozen."""
    expression = SearchExpression.compile("door", "en")
    with pytest.raises(Exception):
        expression.query = "changed"  # type: ignore
