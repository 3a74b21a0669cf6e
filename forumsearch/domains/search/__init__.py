"""
Search Domain - Faceted search over users, categories and topics.

This domain handles:
- Locale to stemmer resolution
- Query normalization into FTS5 prefix expressions
- Per-facet executors with visibility filtering
- Context-aware relevance ordering
- Grouped, capped results with topic backfill
"""

from .context import CONTEXT_KINDS, resolve_search_context
from .contracts import ContextLookup, PostQuery, SearchEngine, SearchIndex, TopicResolver
from .engine import FacetedSearch
from .locale import long_locale
from .models import (
    CategoryContext,
    ContextEntity,
    Facet,
    PostRecord,
    PostScope,
    SearchConfig,
    SearchRequest,
    SearchResult,
    SearchResultGroup,
    TopicContext,
    UserContext,
)
from .query import SearchExpression
from .ranking import OrderClause, Signal
from .references import TopicRouteResolver, resolve_topic_reference
from .results import GroupedSearchResults

__all__ = [
    # Contracts
    "SearchEngine",
    "SearchIndex",
    "TopicResolver",
    "ContextLookup",
    "PostQuery",
    # Models
    "Facet",
    "ContextEntity",
    "UserContext",
    "CategoryContext",
    "TopicContext",
    "SearchConfig",
    "SearchRequest",
    "SearchExpression",
    "PostRecord",
    "PostScope",
    "SearchResult",
    "SearchResultGroup",
    "OrderClause",
    "Signal",
    # Implementations
    "FacetedSearch",
    "GroupedSearchResults",
    "TopicRouteResolver",
    "long_locale",
    "resolve_topic_reference",
    "resolve_search_context",
    "CONTEXT_KINDS",
]
