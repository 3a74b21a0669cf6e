"""
Forum Fixtures - Load a JSON description of a forum into the repository.

Fixture format::

    {
      "users": [{"username": "alice", "name": "Alice", "admin": false}],
      "categories": [{"name": "Staff", "read_restricted": true, "granted_to": ["alice"]}],
      "topics": [
        {
          "title": "Door sensor fault",
          "category": "Staff",
          "user": "alice",
          "posts": [{"user": "alice", "raw": "The door sensor keeps tripping."}]
        }
      ]
    }

Topics refer to categories by name or slug and to users by username.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from forumsearch.config.errors import ErrorCode, ForumSearchError
from forumsearch.domains.forum import Archetype

from .repository import SQLiteRepository

logger = logging.getLogger(__name__)

__all__ = ["ForumFixture", "load_fixture"]


class UserFixture(BaseModel):
    username: str
    name: str | None = None
    email: str | None = None
    admin: bool = False
    avatar_template: str | None = None


class CategoryFixture(BaseModel):
    name: str
    slug: str | None = None
    color: str = "0088CC"
    text_color: str = "FFFFFF"
    read_restricted: bool = False
    granted_to: list[str] = Field(default_factory=list)


class PostFixture(BaseModel):
    raw: str
    user: str | None = None
    created_at: datetime | None = None


class TopicFixture(BaseModel):
    title: str
    slug: str | None = None
    category: str | None = None
    user: str | None = None
    archetype: Archetype = Archetype.REGULAR
    visible: bool = True
    deleted: bool = False
    created_at: datetime | None = None
    posts: list[PostFixture] = Field(default_factory=list)


class ForumFixture(BaseModel):
    """A whole forum as plain data."""

    users: list[UserFixture] = Field(default_factory=list)
    categories: list[CategoryFixture] = Field(default_factory=list)
    topics: list[TopicFixture] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> ForumFixture:
        with open(path, encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


def _lookup(ids: dict[str, int], key: str | None, kind: str) -> int | None:
    if key is None:
        return None
    try:
        return ids[key]
    except KeyError:
        raise ForumSearchError(
            ErrorCode.VALIDATION_ERROR, f"Unknown {kind}: {key}", {kind: key}
        ) from None


async def load_fixture(repo: SQLiteRepository, fixture: ForumFixture) -> dict[str, int]:
    """
    Insert every user, category, topic and post of a fixture.

    Args:
        repo: Initialized repository
        fixture: Parsed fixture

    Returns:
        Number of inserted rows per kind

    Raises:
        ForumSearchError: If a topic, post or grant names an unknown user
            or category
    """
    user_ids: dict[str, int] = {}
    for user in fixture.users:
        user_ids[user.username] = await repo.insert_user(**user.model_dump())

    category_ids: dict[str, int] = {}
    for category in fixture.categories:
        category_id = await repo.insert_category(
            **category.model_dump(exclude={"granted_to"})
        )
        category_ids[category.name] = category_id
        if category.slug:
            category_ids[category.slug] = category_id
        for username in category.granted_to:
            await repo.grant_category(category_id, _lookup(user_ids, username, "user"))

    post_count = 0
    for topic in fixture.topics:
        topic_id = await repo.insert_topic(
            topic.title,
            category_id=_lookup(category_ids, topic.category, "category"),
            user_id=_lookup(user_ids, topic.user, "user"),
            slug=topic.slug,
            archetype=topic.archetype,
            visible=topic.visible,
            created_at=topic.created_at,
        )
        for post in topic.posts:
            await repo.insert_post(
                topic_id,
                post.raw,
                user_id=_lookup(user_ids, post.user, "user"),
                created_at=post.created_at or topic.created_at,
            )
            post_count += 1
        if topic.deleted:
            await repo.delete_topic(topic_id)

    await repo.refresh_category_stats()

    counts = {
        "users": len(fixture.users),
        "categories": len(fixture.categories),
        "topics": len(fixture.topics),
        "posts": post_count,
    }
    logger.info("Loaded fixture: %s", counts)
    return counts
