"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from forumsearch.domains.forum import Category, Topic, User

from .models import PostRecord, PostScope, SearchRequest
from .query import SearchExpression
from .ranking import OrderClause
from .results import GroupedSearchResults


class PostQuery(BaseModel):
    """Structured description of one post/topic facet query."""

    expression: SearchExpression
    limit: int
    order: tuple[OrderClause, ...] = ()
    scope: PostScope = PostScope.FIRST_POSTS
    include_topic_id: int | None = None
    secure_category_ids: frozenset[int] = frozenset()
    exclude_topic_ids: frozenset[int] = frozenset()

    model_config = {"frozen": True}


@runtime_checkable
class SearchIndex(Protocol):
    """
    Contract for the text-search capable store.

    Implementations raise ``QueryExecutionError`` when a query cannot run.
    """

    async def search_users(
        self,
        term: str,
        limit: int,
        order: Sequence[OrderClause] = (),
    ) -> list[User]:
        """Users whose username, name or email contains ``term``."""
        ...

    async def search_categories(
        self,
        term: str,
        limit: int,
        secure_category_ids: frozenset[int] = frozenset(),
        order: Sequence[OrderClause] = (),
    ) -> list[Category]:
        """Visible categories whose name contains ``term``."""
        ...

    async def search_posts(self, query: PostQuery) -> list[PostRecord]:
        """Visible posts matching the query expression."""
        ...

    async def get_topic(self, topic_id: int) -> Topic | None:
        """Topic by id with its category, or None."""
        ...


@runtime_checkable
class ContextLookup(Protocol):
    """Contract for loading the entity a search was started from."""

    async def get_user(self, user_id: int) -> User | None:
        ...

    async def get_category(self, category_id: int) -> Category | None:
        ...

    async def get_topic(self, topic_id: int) -> Topic | None:
        ...


@runtime_checkable
class TopicResolver(Protocol):
    """Contract for recognizing direct topic references."""

    def resolve_topic_reference(self, literal: str) -> int | None:
        ...


@runtime_checkable
class SearchEngine(Protocol):
    """Contract for search implementations."""

    async def execute(self, request: SearchRequest) -> GroupedSearchResults:
        """Execute search and return grouped results."""
        ...
