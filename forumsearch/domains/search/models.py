"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from forumsearch.domains.access import Guardian, VisibilityPolicy

if TYPE_CHECKING:
    from forumsearch.config import Settings


class Facet(str, Enum):
    """Kinds of result a search can return."""

    TOPIC = "topic"
    CATEGORY = "category"
    USER = "user"


FACET_NAMES: dict[Facet, str] = {
    Facet.TOPIC: "Topics",
    Facet.CATEGORY: "Categories",
    Facet.USER: "Users",
}


# --- Context entities ---


class UserContext(BaseModel):
    """Searching from a user profile."""

    kind: Literal["user"] = "user"
    id: int

    model_config = {"frozen": True}


class CategoryContext(BaseModel):
    """Searching from a category listing."""

    kind: Literal["category"] = "category"
    id: int

    model_config = {"frozen": True}


class TopicContext(BaseModel):
    """Searching from inside a topic."""

    kind: Literal["topic"] = "topic"
    id: int
    posts_count: int | None = None

    model_config = {"frozen": True}


ContextEntity = Annotated[
    Union[UserContext, CategoryContext, TopicContext],
    Field(discriminator="kind"),
]


# --- Configuration ---


class SearchConfig(BaseModel):
    """Search tunables, fixed at startup and shared read-only."""

    per_facet: int = Field(default=5, ge=1)
    burst_factor: int = Field(default=3, ge=1)
    facets: tuple[Facet, ...] = (Facet.TOPIC, Facet.CATEGORY, Facet.USER)
    min_term_length: int = Field(default=3, ge=0)
    min_posts_for_search_in_topic: int = 5
    default_locale: str = "en"
    blurb_radius: int = Field(default=100, ge=1)

    model_config = {"frozen": True}

    @property
    def facet_count(self) -> int:
        return len(self.facets)

    @property
    def single_facet_limit(self) -> int:
        return self.per_facet * self.facet_count

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchConfig:
        return cls(
            per_facet=settings.search_per_facet,
            burst_factor=settings.search_burst_factor,
            min_term_length=settings.min_search_term_length,
            min_posts_for_search_in_topic=settings.min_posts_for_search_in_topic,
            default_locale=settings.default_locale,
            blurb_radius=settings.search_blurb_radius,
        )


# --- Request ---


class SearchRequest(BaseModel):
    """A single search as asked by the caller."""

    term: str = ""
    type_filter: str | None = None
    search_context: ContextEntity | None = None
    include_blurbs: bool = False
    guardian: VisibilityPolicy = Field(default_factory=Guardian)
    locale: str | None = None
    min_term_length: int | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


# --- Candidate records ---


class PostScope(str, Enum):
    """Which posts of a topic may match."""

    ALL = "all"
    FIRST_POSTS = "first_posts"


class PostRecord(BaseModel):
    """A matching post joined with its topic, plus ranking signals."""

    id: int
    topic_id: int
    post_number: int
    user_id: int | None = None
    username: str | None = None
    raw: str = ""
    topic_title: str
    topic_slug: str
    category_id: int | None = None
    bumped_at: datetime | None = None
    title_rank: float = 0.0
    body_rank: float = 0.0

    @property
    def topic_url(self) -> str:
        return f"/t/{self.topic_slug}/{self.topic_id}"

    @property
    def url(self) -> str:
        return f"{self.topic_url}/{self.post_number}"


# --- Results ---


class SearchResult(BaseModel):
    """Presentation-ready projection of one candidate record."""

    type: Facet
    id: int
    title: str
    url: str
    blurb: str | None = None
    topic_id: int | None = None
    color: str | None = None
    text_color: str | None = None
    avatar_template: str | None = None

    model_config = {"frozen": True}


class SearchResultGroup(BaseModel):
    """Results of one facet as returned to callers."""

    type: Facet
    name: str
    more: bool = False
    results: list[SearchResult] = Field(default_factory=list)

    def as_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
