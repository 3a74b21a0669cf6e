"""
Faceted Search Engine - Query composition, grouping and topic backfill.

Flow for one request:

1. Reject an unknown facet filter, return nothing for a short term.
2. Topic-only searches for a topic id or URL return just that topic.
3. Query one facet (single-facet mode) or users, categories and topics in
   that order (mixed mode).
4. Top up the topic facet if fewer distinct topics came back than
   expected, over-fetching by the burst factor and excluding topics
   already collected.

Index failures end the request with an empty result set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from forumsearch.config.errors import InvalidFacetError, QueryExecutionError
from forumsearch.domains.access import VisibilityPolicy

from .contracts import SearchIndex, TopicResolver
from .executors import CategoryFacetExecutor, TopicFacetExecutor, UserFacetExecutor
from .models import (
    ContextEntity,
    Facet,
    PostRecord,
    PostScope,
    SearchConfig,
    SearchRequest,
    TopicContext,
)
from .query import SearchExpression
from .references import TopicRouteResolver
from .results import (
    GroupedSearchResults,
    from_category,
    from_post,
    from_topic,
    from_user,
)

logger = logging.getLogger(__name__)

__all__ = ["FacetedSearch"]

# Later facets depend on the running topic count, so order matters
MIXED_FACET_ORDER = (Facet.USER, Facet.CATEGORY, Facet.TOPIC)


@dataclass
class _SearchRun:
    """State owned by a single request."""

    request: SearchRequest
    expression: SearchExpression
    context: ContextEntity | None
    results: GroupedSearchResults

    @property
    def guardian(self) -> VisibilityPolicy:
        return self.request.guardian


class FacetedSearch:
    """
    Grouped search over users, categories and topics.

    Example:
        >>> engine = FacetedSearch(repo, SearchConfig())
        >>> results = await engine.execute(SearchRequest(term="door sensor"))
        >>> results.as_json()
    """

    def __init__(
        self,
        index: SearchIndex,
        config: SearchConfig | None = None,
        resolver: TopicResolver | None = None,
    ) -> None:
        """
        Initialize search engine.

        Args:
            index: Text-search capable store
            config: Search tunables (defaults to SearchConfig())
            resolver: Recognizes direct topic references in terms
        """
        self._index = index
        self._config = config or SearchConfig()
        self._resolver = resolver or TopicRouteResolver()
        self._topics = TopicFacetExecutor(index, burst_factor=self._config.burst_factor)
        self._executors = {
            Facet.USER: UserFacetExecutor(index),
            Facet.CATEGORY: CategoryFacetExecutor(index),
            Facet.TOPIC: self._topics,
        }

    @property
    def config(self) -> SearchConfig:
        return self._config

    async def execute(self, request: SearchRequest) -> GroupedSearchResults:
        """
        Run a search.

        Args:
            request: Term, facet filter, context and actor

        Returns:
            Grouped results, empty when the term is too short or the index
            failed

        Raises:
            InvalidFacetError: If the facet filter is not a known facet and
                the term is long enough to search
        """
        term = request.term.strip()
        min_length = (
            request.min_term_length
            if request.min_term_length is not None
            else self._config.min_term_length
        )
        if not term or len(term) < min_length:
            return self._new_results(None)

        type_filter = self.parse_facet(request.type_filter)
        results = self._new_results(type_filter)

        try:
            # A topic id or URL means the user wants exactly that topic
            if type_filter is Facet.TOPIC:
                topic_id = self._resolver.resolve_topic_reference(term)
                if topic_id is not None:
                    return await self._single_topic(topic_id, request.guardian, results)

            run = _SearchRun(
                request=request,
                expression=SearchExpression.compile(
                    term, request.locale or self._config.default_locale
                ),
                context=self._effective_context(request.search_context),
                results=results,
            )
            await self._find_grouped_results(run)
        except QueryExecutionError as e:
            # Most likely an expression the index cannot parse
            logger.warning("Search failed for term='%s': %s", term[:50], e.message)
            return self._new_results(type_filter)

        logger.info(
            "Faceted search: term='%s' filter=%s -> %r",
            term[:50],
            type_filter.value if type_filter else "all",
            results,
        )
        return results

    def parse_facet(self, value: str | None) -> Facet | None:
        """Facet for a filter value; None means all facets."""
        if value is None or value == "":
            return None
        try:
            facet = Facet(value)
        except ValueError:
            raise InvalidFacetError("invalid type filter", {"type_filter": value}) from None
        if facet not in self._config.facets:
            raise InvalidFacetError("invalid type filter", {"type_filter": value})
        return facet

    def expected_topics(self, type_filter: Facet | None, collected: int) -> int:
        """How many more distinct topics the result set should hold."""
        if type_filter is None:
            # One topic per facet slot at least
            target = self._config.facet_count
        elif type_filter is Facet.TOPIC:
            target = self._config.single_facet_limit
        else:
            target = 0
        return target - collected

    def _new_results(self, type_filter: Facet | None) -> GroupedSearchResults:
        return GroupedSearchResults(
            type_filter,
            per_facet=self._config.per_facet,
            facet_count=self._config.facet_count,
        )

    def _effective_context(self, context: ContextEntity | None) -> ContextEntity | None:
        # Short topics are searched like any other page
        if (
            isinstance(context, TopicContext)
            and context.posts_count is not None
            and context.posts_count < self._config.min_posts_for_search_in_topic
        ):
            logger.debug("Ignoring topic context %d (%d posts)", context.id, context.posts_count)
            return None
        return context

    async def _single_topic(
        self,
        topic_id: int,
        guardian: VisibilityPolicy,
        results: GroupedSearchResults,
    ) -> GroupedSearchResults:
        topic = await self._index.get_topic(topic_id)
        # Unknown and hidden topics look the same to the caller
        if not guardian.can_see(topic):
            return results
        results.add_result(from_topic(topic))
        return results

    async def _find_grouped_results(self, run: _SearchRun) -> None:
        type_filter = run.results.type_filter
        if type_filter is not None:
            await self._facet_search(run, type_filter, self._config.single_facet_limit)
        else:
            # One extra row tells us whether the facet has more
            limit = self._config.per_facet + 1
            for facet in MIXED_FACET_ORDER:
                if facet in self._config.facets:
                    await self._facet_search(run, facet, limit)

        await self._add_more_topics_if_expected(run)

    async def _facet_search(self, run: _SearchRun, facet: Facet, limit: int) -> None:
        records = await self._executors[facet].execute(
            run.expression, run.guardian, run.context, limit
        )
        if facet is Facet.TOPIC:
            self._add_posts(run, records)
        elif facet is Facet.CATEGORY:
            for category in records:
                run.results.add_result(from_category(category))
        else:
            for user in records:
                run.results.add_result(from_user(user))

    async def _add_more_topics_if_expected(self, run: _SearchRun) -> None:
        expected = self.expected_topics(run.results.type_filter, run.results.topic_count)
        if expected <= 0:
            return

        posts = await self._topics.fetch(
            run.expression,
            run.guardian,
            run.context,
            expected * self._config.burst_factor,
            scope=PostScope.ALL,
            exclude_topic_ids=run.results.topic_ids(),
        )
        logger.debug("Backfill: expected=%d fetched=%d", expected, len(posts))
        self._add_posts(run, posts)

    def _add_posts(self, run: _SearchRun, posts: list[PostRecord]) -> None:
        for post in posts:
            run.results.add_result(
                from_post(
                    post,
                    run.context,
                    run.expression.term,
                    run.request.include_blurbs,
                    self._config.blurb_radius,
                )
            )
