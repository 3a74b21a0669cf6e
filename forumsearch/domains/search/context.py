"""
Context Resolver - Turn a (kind, id) pair from a caller into a context entity.

The entity must exist and be visible to the searching actor. Topic contexts
carry the topic's post count so short topics can be ignored later.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from forumsearch.config.errors import AccessDeniedError, NotFoundError, SearchError

from .models import CategoryContext, ContextEntity, TopicContext, UserContext

if TYPE_CHECKING:
    from forumsearch.domains.access import VisibilityPolicy

    from .contracts import ContextLookup

logger = logging.getLogger(__name__)

__all__ = ["CONTEXT_KINDS", "resolve_search_context"]

CONTEXT_KINDS = ("user", "category", "topic")


async def resolve_search_context(
    lookup: ContextLookup,
    guardian: VisibilityPolicy,
    kind: str | None,
    entity_id: int | None,
) -> ContextEntity | None:
    """
    Load and check the entity a search was started from.

    Args:
        lookup: Store to load the entity from
        guardian: Visibility of the searching actor
        kind: One of CONTEXT_KINDS, or None for no context
        entity_id: Id of the entity

    Returns:
        The context entity, or None when no kind was given

    Raises:
        SearchError: If the kind is unknown or the id is missing
        NotFoundError: If the entity does not exist
        AccessDeniedError: If the actor may not see the entity
    """
    if kind is None:
        return None
    if kind not in CONTEXT_KINDS:
        raise SearchError("invalid search context", {"context": kind})
    if entity_id is None:
        raise SearchError("search context requires an id", {"context": kind})

    if kind == "user":
        entity = await lookup.get_user(entity_id)
    elif kind == "category":
        entity = await lookup.get_category(entity_id)
    else:
        entity = await lookup.get_topic(entity_id)

    details = {"context": kind, "id": entity_id}
    if entity is None:
        raise NotFoundError(f"{kind} {entity_id} not found", details)
    if not guardian.can_see(entity):
        logger.info("Search context %s %d hidden from actor", kind, entity_id)
        raise AccessDeniedError(f"{kind} {entity_id} is not accessible", details)

    if kind == "user":
        return UserContext(id=entity.id)
    if kind == "category":
        return CategoryContext(id=entity.id)
    return TopicContext(id=entity.id, posts_count=entity.posts_count)
