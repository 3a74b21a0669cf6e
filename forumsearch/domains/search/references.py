"""
Topic References - Recognize a search term that points at one topic.

Accepted forms::

    123
    /t/123
    /t/some-slug/123
    /t/some-slug/123/4
    https://forum.example.com/t/some-slug/123
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

__all__ = ["TopicRouteResolver", "resolve_topic_reference"]

_DIGITS = re.compile(r"\d+", re.ASCII)


def _is_id(segment: str) -> bool:
    return _DIGITS.fullmatch(segment) is not None


def resolve_topic_reference(literal: str) -> int | None:
    """Topic id referenced by ``literal``, or None if it is not a reference."""
    literal = literal.strip()
    if _is_id(literal):
        return int(literal)

    segments = [segment for segment in urlsplit(literal).path.split("/") if segment]
    if len(segments) < 2 or len(segments) > 4 or segments[0] != "t":
        return None

    rest = segments[1:]
    if not _is_id(rest[0]):
        rest = rest[1:]  # slug
    if not rest or not _is_id(rest[0]) or len(rest) > 2:
        return None
    if len(rest) == 2 and not _is_id(rest[1]):
        return None
    return int(rest[0])


class TopicRouteResolver:
    """Resolver handed to the search engine for direct topic lookups."""

    def resolve_topic_reference(self, literal: str) -> int | None:
        return resolve_topic_reference(literal)
