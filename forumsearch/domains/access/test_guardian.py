"""
Tests for visibility rules.
"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from forumsearch.domains.forum import Archetype, Category, Topic, User

from .contracts import VisibilityPolicy
from .guardian import Guardian, load_guardian
from .models import Actor

STAFF = Category(id=9, name="Staff", slug="staff", read_restricted=True)
GENERAL = Category(id=1, name="General", slug="general")


def make_topic(**kwargs) -> Topic:
    defaults = {"id": 1, "title": "Door sensor", "slug": "door-sensor", "user_id": 2}
    defaults.update(kwargs)
    return Topic(**defaults)


@pytest.fixture
def anonymous() -> Guardian:
    return Guardian()


@pytest.fixture
def member() -> Guardian:
    return Guardian(Actor(id=2, username="tech"))


@pytest.fixture
def staff_member() -> Guardian:
    return Guardian(Actor(id=3, username="lead", secure_category_ids=frozenset({9})))


@pytest.fixture
def admin() -> Guardian:
    return Guardian(Actor(id=1, username="admin", admin=True))


# --- Actor Tests ---


def test_actor_defaults_to_anonymous() -> None:
    """Test a bare actor is anonymous with no grants."""
    actor = Actor()
    assert actor.is_anonymous
    assert actor.secure_category_ids == frozenset()


def test_guardian_satisfies_policy() -> None:
    """Test Guardian implements the visibility protocol."""
    assert isinstance(Guardian(), VisibilityPolicy)


# --- Topic Visibility ---


def test_public_topic_visible_to_all(anonymous: Guardian, member: Guardian) -> None:
    """Test topics in open categories are public."""
    topic = make_topic(category_id=1, category=GENERAL)
    assert anonymous.can_see(topic)
    assert member.can_see(topic)


def test_restricted_topic_needs_grant(
    anonymous: Guardian, member: Guardian, staff_member: Guardian, admin: Guardian
) -> None:
    """Test restricted categories hide their topics from ungranted actors."""
    topic = make_topic(category_id=9, category=STAFF)
    assert not anonymous.can_see(topic)
    assert not member.can_see(topic)
    assert staff_member.can_see(topic)
    assert admin.can_see(topic)


def test_deleted_topic_hidden(member: Guardian, admin: Guardian) -> None:
    """Test deleted topics are only visible to admins."""
    topic = make_topic(deleted_at=datetime(2024, 1, 1))
    assert not member.can_see(topic)
    assert admin.can_see(topic)


def test_private_message_visible_to_owner(
    anonymous: Guardian, member: Guardian, staff_member: Guardian
) -> None:
    """Test private messages are visible to their author only."""
    topic = make_topic(archetype=Archetype.PRIVATE_MESSAGE, user_id=2)
    assert member.can_see(topic)
    assert not staff_member.can_see(topic)
    assert not anonymous.can_see(topic)


def test_missing_entity_not_visible(admin: Guardian) -> None:
    """Test None is never visible, even to admins."""
    assert not admin.can_see(None)


# --- Other Entities ---


def test_category_visibility(member: Guardian, staff_member: Guardian) -> None:
    """Test category visibility follows grants."""
    assert member.can_see(GENERAL)
    assert not member.can_see(STAFF)
    assert staff_member.can_see(STAFF)


def test_users_always_visible(anonymous: Guardian) -> None:
    """Test user profiles are public."""
    assert anonymous.can_see(User(id=4, username="bob"))


def test_unknown_entity_not_visible(admin: Guardian) -> None:
    """Test entities without a rule are denied."""
    assert not admin.can_see(object())


def test_secure_category_ids(staff_member: Guardian, anonymous: Guardian) -> None:
    """Test granted categories are exposed for query filtering."""
    assert staff_member.secure_category_ids() == frozenset({9})
    assert anonymous.secure_category_ids() == frozenset()


# --- Loading ---


@pytest.fixture
def directory() -> AsyncMock:
    mock = AsyncMock()
    mock.get_user.return_value = User(id=3, username="lead")
    mock.get_secure_category_ids.return_value = frozenset({9})
    return mock


async def test_load_guardian_anonymous(directory: AsyncMock) -> None:
    """Test no user id means an anonymous guardian without lookups."""
    guardian = await load_guardian(directory, None)

    assert guardian.actor.is_anonymous
    directory.get_user.assert_not_called()


async def test_load_guardian_with_grants(directory: AsyncMock) -> None:
    """Test a known user gets their granted categories."""
    guardian = await load_guardian(directory, 3)

    assert guardian.actor.username == "lead"
    assert guardian.secure_category_ids() == frozenset({9})
    assert guardian.can_see(make_topic(category_id=9, category=STAFF))


async def test_load_guardian_unknown_user(directory: AsyncMock) -> None:
    """Test an unknown id yields no guardian."""
    directory.get_user.return_value = None
    assert await load_guardian(directory, 404) is None
    directory.get_secure_category_ids.assert_not_called()
