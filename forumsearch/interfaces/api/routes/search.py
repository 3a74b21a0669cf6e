"""
Search Routes - Faceted forum search endpoint.

Authentication:
- X-User-Id header: searches as that user, including granted categories
- No header: anonymous search over public content
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from forumsearch.adapters.sqlite import SQLiteRepository
from forumsearch.domains.access import Guardian
from forumsearch.domains.search import (
    FacetedSearch,
    SearchRequest,
    SearchResultGroup,
    resolve_search_context,
)
from forumsearch.interfaces.api.auth import get_current_guardian
from forumsearch.interfaces.api.deps import get_search_engine, get_sqlite_repository

router = APIRouter()


class SearchResponse(BaseModel):
    """Search response."""

    term: str
    groups: list[SearchResultGroup]


@router.get("", response_model=SearchResponse, response_model_exclude_none=True)
async def search(
    term: str = Query("", description="Search term"),
    type_filter: str | None = Query(None, description="Restrict to topic, category or user"),
    context: Literal["user", "category", "topic"] | None = Query(
        None, description="Kind of page the search started from"
    ),
    context_id: int | None = Query(None, description="Id of the context entity"),
    include_blurbs: bool = Query(False, description="Include post excerpts"),
    locale: str | None = Query(None, description="Language tag, e.g. en or pt_BR"),
    guardian: Guardian = Depends(get_current_guardian),
    repo: SQLiteRepository = Depends(get_sqlite_repository),
    engine: FacetedSearch = Depends(get_search_engine),
) -> dict[str, Any]:
    """
    Search users, categories and topics.

    - **term**: Search term; shorter than the minimum length returns no groups
    - **type_filter**: Single facet; omitted searches all three
    - **context** / **context_id**: Boost results related to this entity
    - **include_blurbs**: Add an excerpt around the term to topic results
    """
    search_context = await resolve_search_context(repo, guardian, context, context_id)

    results = await engine.execute(
        SearchRequest(
            term=term,
            type_filter=type_filter,
            search_context=search_context,
            include_blurbs=include_blurbs,
            guardian=guardian,
            locale=locale,
        )
    )

    return {"term": term, "groups": results.as_json()}
