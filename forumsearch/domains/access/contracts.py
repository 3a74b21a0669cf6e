"""
Access Contracts - Interfaces for access domain.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from forumsearch.domains.forum import User


@runtime_checkable
class VisibilityPolicy(Protocol):
    """Contract for deciding what an actor may see."""

    def can_see(self, entity: Any) -> bool:
        """Whether the entity may be shown to the actor."""
        ...

    def secure_category_ids(self) -> frozenset[int]:
        """Ids of read-restricted categories the actor may see."""
        ...


@runtime_checkable
class ActorDirectory(Protocol):
    """Contract for loading actors and their category grants."""

    async def get_user(self, user_id: int) -> User | None:
        ...

    async def get_secure_category_ids(self, user: User) -> frozenset[int]:
        ...
