"""
Facet Executors - One index query per result kind.

Each executor asks the index for candidates the actor may see and returns
them in ranked order. Executors never query for an empty expression.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from forumsearch.domains.forum import Category, User

from .contracts import PostQuery
from .models import (
    ContextEntity,
    Facet,
    PostRecord,
    PostScope,
    TopicContext,
    UserContext,
)
from .ranking import category_ordering, post_ordering, rank, user_ordering

if TYPE_CHECKING:
    from forumsearch.domains.access import VisibilityPolicy

    from .contracts import SearchIndex
    from .query import SearchExpression

logger = logging.getLogger(__name__)

__all__ = ["CategoryFacetExecutor", "TopicFacetExecutor", "UserFacetExecutor"]


class UserFacetExecutor:
    """Users by username, name or email, most recently active first."""

    facet = Facet.USER

    def __init__(self, index: SearchIndex) -> None:
        self._index = index

    async def execute(
        self,
        expression: SearchExpression,
        guardian: VisibilityPolicy,
        context: ContextEntity | None,
        limit: int,
    ) -> list[User]:
        if expression.is_empty or limit <= 0:
            return []
        order = user_ordering()
        users = await self._index.search_users(term=expression.raw, limit=limit, order=order)
        return rank(users, order)


class CategoryFacetExecutor:
    """Categories by name, busiest first, restricted ones only when granted."""

    facet = Facet.CATEGORY

    def __init__(self, index: SearchIndex) -> None:
        self._index = index

    async def execute(
        self,
        expression: SearchExpression,
        guardian: VisibilityPolicy,
        context: ContextEntity | None,
        limit: int,
    ) -> list[Category]:
        if expression.is_empty or limit <= 0:
            return []
        order = category_ordering()
        categories = await self._index.search_categories(
            term=expression.raw,
            limit=limit,
            secure_category_ids=guardian.secure_category_ids(),
            order=order,
        )
        return rank(categories, order)


class TopicFacetExecutor:
    """
    Posts matching by title or body, grouped into topics by the caller.

    With a user context every post is searched and ``burst_factor`` times
    as many candidates are requested. With a topic context first posts and
    all posts of that topic are searched. Otherwise only first posts match.
    """

    facet = Facet.TOPIC

    def __init__(self, index: SearchIndex, burst_factor: int = 3) -> None:
        self._index = index
        self._burst_factor = burst_factor

    async def execute(
        self,
        expression: SearchExpression,
        guardian: VisibilityPolicy,
        context: ContextEntity | None,
        limit: int,
    ) -> list[PostRecord]:
        if isinstance(context, UserContext):
            return await self.fetch(
                expression, guardian, context, limit * self._burst_factor, scope=PostScope.ALL
            )
        if isinstance(context, TopicContext):
            return await self.fetch(
                expression,
                guardian,
                context,
                limit,
                scope=PostScope.FIRST_POSTS,
                include_topic_id=context.id,
            )
        return await self.fetch(expression, guardian, context, limit, scope=PostScope.FIRST_POSTS)

    async def fetch(
        self,
        expression: SearchExpression,
        guardian: VisibilityPolicy,
        context: ContextEntity | None,
        limit: int,
        *,
        scope: PostScope,
        include_topic_id: int | None = None,
        exclude_topic_ids: frozenset[int] = frozenset(),
    ) -> list[PostRecord]:
        """Run one post query with the context-aware relevance ordering."""
        if expression.is_empty or limit <= 0:
            return []

        order = tuple(post_ordering(context))
        query = PostQuery(
            expression=expression,
            limit=limit,
            order=order,
            scope=scope,
            include_topic_id=include_topic_id,
            secure_category_ids=guardian.secure_category_ids(),
            exclude_topic_ids=exclude_topic_ids,
        )
        posts = await self._index.search_posts(query)
        logger.debug(
            "Post query: scope=%s limit=%d excluded=%d -> %d rows",
            scope.value,
            limit,
            len(exclude_topic_ids),
            len(posts),
        )
        return rank(posts, order)
