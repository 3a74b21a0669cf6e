"""
Result Aggregator - Grouped, capped, de-duplicated search results.

Also holds the conversions from candidate records to ``SearchResult``.
"""

from __future__ import annotations

import logging
from typing import Any

from forumsearch.domains.forum import Category, Topic, User

from .models import (
    FACET_NAMES,
    ContextEntity,
    Facet,
    PostRecord,
    SearchResult,
    SearchResultGroup,
    TopicContext,
)

logger = logging.getLogger(__name__)

__all__ = [
    "GroupedSearchResults",
    "blurb",
    "from_category",
    "from_post",
    "from_topic",
    "from_user",
]


# --- Conversions ---


def excerpt(text: str, phrase: str, radius: int) -> str | None:
    """Text around the first occurrence of ``phrase``, or None if absent."""
    if not phrase:
        return None
    index = text.lower().find(phrase.lower())
    if index < 0:
        return None
    start = max(index - radius, 0)
    end = min(index + len(phrase) + radius, len(text))
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return f"{prefix}{text[start:end].strip()}{suffix}"


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[: max(length - 3, 0)].rstrip() + "..."


def blurb(raw: str, term: str, radius: int = 100) -> str:
    """Excerpt centered on the first search term, else the opening text."""
    text = " ".join(raw.split())
    terms = term.split()
    return excerpt(text, terms[0] if terms else "", radius) or truncate(text, radius * 2)


def from_post(
    post: PostRecord,
    context: ContextEntity | None = None,
    term: str = "",
    include_blurbs: bool = False,
    blurb_radius: int = 100,
) -> SearchResult:
    # Inside a topic, or for replies, link straight to the post
    if isinstance(context, TopicContext) or post.post_number > 1:
        url = post.url
    else:
        url = post.topic_url
    return SearchResult(
        type=Facet.TOPIC,
        id=post.topic_id,
        topic_id=post.topic_id,
        title=post.topic_title,
        url=url,
        blurb=blurb(post.raw, term, blurb_radius) if include_blurbs else None,
    )


def from_topic(topic: Topic) -> SearchResult:
    return SearchResult(
        type=Facet.TOPIC,
        id=topic.id,
        topic_id=topic.id,
        title=topic.title,
        url=topic.relative_url,
    )


def from_category(category: Category) -> SearchResult:
    return SearchResult(
        type=Facet.CATEGORY,
        id=category.id,
        title=category.name,
        url=f"/c/{category.slug}",
        color=category.color,
        text_color=category.text_color,
    )


def from_user(user: User) -> SearchResult:
    return SearchResult(
        type=Facet.USER,
        id=user.id,
        title=user.username,
        url=f"/users/{user.username}",
        avatar_template=user.avatar_template,
    )


# --- Aggregation ---


class GroupedSearchResults:
    """
    Search results grouped by facet, in the order facets were first added.

    Each facet holds at most ``per_facet`` results, or ``per_facet *
    facet_count`` when the search was restricted to a single facet. A result
    that arrives for a full facet is not stored; the facet is flagged with
    ``more`` instead. Topic results are unique by topic id.

    Example:
        >>> results = GroupedSearchResults(per_facet=5)
        >>> results.add_result(from_user(user))
        True
        >>> results.facet_count(Facet.USER)
        1
    """

    def __init__(
        self,
        type_filter: Facet | None = None,
        per_facet: int = 5,
        facet_count: int = 3,
    ) -> None:
        self.type_filter = type_filter
        self.cap = per_facet * facet_count if type_filter is not None else per_facet
        self._groups: dict[Facet, SearchResultGroup] = {}
        self._topic_ids: set[int] = set()

    def add_result(self, result: SearchResult) -> bool:
        """Append a result. Returns False if it was a duplicate or overflow."""
        group = self._groups.get(result.type)
        if group is None:
            group = SearchResultGroup(type=result.type, name=FACET_NAMES[result.type])
            self._groups[result.type] = group

        if result.type is Facet.TOPIC and result.topic_id in self._topic_ids:
            logger.debug("Skipping duplicate topic %s", result.topic_id)
            return False

        if len(group.results) >= self.cap:
            group.more = True
            return False

        group.results.append(result)
        if result.topic_id is not None and result.type is Facet.TOPIC:
            self._topic_ids.add(result.topic_id)
        return True

    def topic_ids(self) -> frozenset[int]:
        return frozenset(self._topic_ids)

    @property
    def topic_count(self) -> int:
        return self.facet_count(Facet.TOPIC)

    def facet_count(self, facet: Facet) -> int:
        group = self._groups.get(facet)
        return len(group.results) if group else 0

    def groups(self) -> list[SearchResultGroup]:
        return list(self._groups.values())

    def results(self, facet: Facet) -> list[SearchResult]:
        group = self._groups.get(facet)
        return list(group.results) if group else []

    def is_empty(self) -> bool:
        return not any(group.results for group in self._groups.values())

    def as_json(self) -> list[dict[str, Any]]:
        return [group.as_json() for group in self._groups.values()]

    def __len__(self) -> int:
        return sum(len(group.results) for group in self._groups.values())

    def __repr__(self) -> str:
        counts = ", ".join(f"{facet.value}={len(g.results)}" for facet, g in self._groups.items())
        return f"GroupedSearchResults({counts})"
