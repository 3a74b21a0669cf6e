"""
Access Models - Data types for access domain.
"""

from __future__ import annotations

from pydantic import BaseModel


class Actor(BaseModel):
    """The user performing a search. ``id`` is None for anonymous visitors."""

    id: int | None = None
    username: str | None = None
    admin: bool = False
    secure_category_ids: frozenset[int] = frozenset()

    model_config = {"frozen": True}

    @property
    def is_anonymous(self) -> bool:
        return self.id is None
