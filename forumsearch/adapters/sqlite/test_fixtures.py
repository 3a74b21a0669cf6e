"""Tests for fixture loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from forumsearch.config.errors import ForumSearchError

from .fixtures import ForumFixture, load_fixture
from .repository import SQLiteRepository

FIXTURE = {
    "users": [
        {"username": "alice", "name": "Alice Smith"},
        {"username": "bob", "admin": True},
    ],
    "categories": [
        {"name": "General"},
        {"name": "Staff", "slug": "staff-only", "read_restricted": True, "granted_to": ["alice"]},
    ],
    "topics": [
        {
            "title": "Door sensor fault",
            "category": "General",
            "user": "alice",
            "posts": [
                {"user": "alice", "raw": "The sensor keeps tripping."},
                {"user": "bob", "raw": "Check the wiring."},
            ],
        },
        {
            "title": "Rota",
            "category": "staff-only",
            "user": "bob",
            "posts": [{"user": "bob", "raw": "Night shifts."}],
        },
        {
            "title": "Old thread",
            "deleted": True,
            "posts": [{"raw": "Gone."}],
        },
    ],
}


@pytest.fixture
async def repo(tmp_path: Path):
    """Create a test repository with temporary database."""
    repo = SQLiteRepository(tmp_path / "test.db")
    await repo.initialize()
    yield repo
    await repo.close()


def test_fixture_from_file(tmp_path: Path):
    """Test fixtures parse from JSON files."""
    path = tmp_path / "forum.json"
    path.write_text(json.dumps(FIXTURE))

    fixture = ForumFixture.from_file(path)

    assert [u.username for u in fixture.users] == ["alice", "bob"]
    assert fixture.categories[1].granted_to == ["alice"]
    assert len(fixture.topics[0].posts) == 2


async def test_load_fixture(repo: SQLiteRepository):
    """Test every row is inserted and counted."""
    counts = await load_fixture(repo, ForumFixture.model_validate(FIXTURE))

    assert counts == {"users": 2, "categories": 2, "topics": 3, "posts": 4}
    assert await repo.get_counts() == counts


async def test_load_fixture_grants_and_deletes(repo: SQLiteRepository):
    """Test grants are stored and deleted topics are soft-deleted."""
    await load_fixture(repo, ForumFixture.model_validate(FIXTURE))

    alice = await repo.get_user(1)
    assert await repo.get_secure_category_ids(alice) == frozenset({2})

    rota = await repo.get_topic(2)
    assert rota.category.slug == "staff-only"

    old = await repo.get_topic(3)
    assert old.deleted_at is not None


async def test_load_fixture_refreshes_category_stats(repo: SQLiteRepository):
    """Test monthly topic counts are computed after loading."""
    await load_fixture(repo, ForumFixture.model_validate(FIXTURE))

    general = await repo.get_category(1)
    assert general.topics_month == 1


async def test_load_fixture_unknown_user(repo: SQLiteRepository):
    """Test references to unknown users are rejected."""
    fixture = ForumFixture.model_validate(
        {"topics": [{"title": "Orphan", "user": "nobody", "posts": []}]}
    )
    with pytest.raises(ForumSearchError):
        await load_fixture(repo, fixture)
