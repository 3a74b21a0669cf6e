"""
Tests for direct topic references.
"""

from __future__ import annotations

import pytest

from .references import TopicRouteResolver, resolve_topic_reference


@pytest.mark.parametrize(
    ("literal", "topic_id"),
    [
        ("123", 123),
        (" 42 ", 42),
        ("/t/123", 123),
        ("/t/door-sensor/123", 123),
        ("/t/door-sensor/123/4", 123),
        ("/t/123/4", 123),
        ("https://forum.example.com/t/door-sensor/77", 77),
        ("http://localhost:3000/t/door-sensor/77/2?u=bob", 77),
    ],
)
def test_resolves_topic_references(literal: str, topic_id: int) -> None:
    """Test ids and topic URLs resolve to the topic id."""
    assert resolve_topic_reference(literal) == topic_id


@pytest.mark.parametrize(
    "literal",
    [
        "door sensor",
        "12a",
        "-5",
        "²",
        "/t/door-sensor",
        "/c/support/12",
        "/t/slug/12/4/9",
        "/t/slug/12/latest",
        "/users/bob",
    ],
)
def test_other_terms_are_not_references(literal: str) -> None:
    """Test ordinary terms are left to full-text search."""
    assert resolve_topic_reference(literal) is None


def test_route_resolver_delegates() -> None:
    """Test the resolver object wraps the function."""
    assert TopicRouteResolver().resolve_topic_reference("/t/x/9") == 9
