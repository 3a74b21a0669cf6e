"""
Forum Models - Data types for forum entities.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class Archetype(str, Enum):
    """Kind of topic."""

    REGULAR = "regular"
    PRIVATE_MESSAGE = "private_message"


class User(BaseModel):
    """Forum member."""

    id: int
    username: str
    name: str | None = None
    email: str | None = None
    admin: bool = False
    avatar_template: str | None = None
    last_posted_at: datetime | None = None


class Category(BaseModel):
    """Topic category."""

    id: int
    name: str
    slug: str
    color: str = "0088CC"
    text_color: str = "FFFFFF"
    read_restricted: bool = False
    topics_month: int = 0


class Topic(BaseModel):
    """Topic with its category loaded."""

    id: int
    title: str
    slug: str
    category_id: int | None = None
    category: Category | None = None
    user_id: int | None = None
    archetype: Archetype = Archetype.REGULAR
    visible: bool = True
    deleted_at: datetime | None = None
    posts_count: int = 0
    bumped_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def relative_url(self) -> str:
        return f"/t/{self.slug}/{self.id}"

    @property
    def is_private_message(self) -> bool:
        return self.archetype == Archetype.PRIVATE_MESSAGE

