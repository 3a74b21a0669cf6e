"""
Guardian - Visibility capability handed to search.

Answers "can this actor see this entity" and "which restricted categories
can this actor see". Checks are pure; load_guardian fills the Actor
from storage beforehand.
"""

from __future__ import annotations

import logging
from typing import Any

from forumsearch.domains.forum import Category, Topic, User

from .contracts import ActorDirectory
from .models import Actor

logger = logging.getLogger(__name__)

__all__ = ["Guardian", "load_guardian"]


class Guardian:
    """
    Visibility rules for one actor.

    Example:
        >>> guardian = Guardian(Actor(id=7, secure_category_ids=frozenset({3})))
        >>> guardian.can_see(topic)
        True
    """

    def __init__(self, actor: Actor | None = None) -> None:
        self.actor = actor or Actor()

    @property
    def is_admin(self) -> bool:
        return self.actor.admin

    def secure_category_ids(self) -> frozenset[int]:
        return self.actor.secure_category_ids

    def can_see(self, entity: Any) -> bool:
        if entity is None:
            return False
        if isinstance(entity, Topic):
            return self._can_see_topic(entity)
        if isinstance(entity, Category):
            return self._can_see_category(entity)
        if isinstance(entity, User):
            return True
        logger.debug("No visibility rule for %s", type(entity).__name__)
        return False

    def _can_see_category(self, category: Category) -> bool:
        if not category.read_restricted or self.is_admin:
            return True
        return category.id in self.secure_category_ids()

    def _can_see_topic(self, topic: Topic) -> bool:
        if self.is_admin:
            return True
        if topic.deleted_at is not None:
            return False
        if topic.is_private_message:
            return not self.actor.is_anonymous and topic.user_id == self.actor.id
        if topic.category is not None:
            return self._can_see_category(topic.category)
        return True

    def __repr__(self) -> str:
        return f"Guardian(actor_id={self.actor.id!r}, admin={self.actor.admin!r})"


async def load_guardian(directory: ActorDirectory, user_id: int | None) -> Guardian | None:
    """
    Build the guardian for a user id.

    Returns an anonymous guardian for ``None`` and ``None`` for an unknown id.
    """
    if user_id is None:
        return Guardian()
    user = await directory.get_user(user_id)
    if user is None:
        return None
    secure_ids = await directory.get_secure_category_ids(user)
    return Guardian(
        Actor(
            id=user.id,
            username=user.username,
            admin=user.admin,
            secure_category_ids=secure_ids,
        )
    )
