"""
Relevance Ranker - Ordering of candidate records per facet.

Orderings are expressed once, as a list of ``OrderClause`` values. The
storage adapter compiles them to ORDER BY terms so LIMIT keeps the right
rows, and ``rank`` applies the same clauses in memory so the final order
never depends on how a backend breaks ties.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel

from .models import (
    CategoryContext,
    ContextEntity,
    TopicContext,
    UserContext,
)

__all__ = [
    "OUTSIDE_TOPIC_POSITION",
    "OrderClause",
    "Signal",
    "category_ordering",
    "post_ordering",
    "rank",
    "sort_key",
    "user_ordering",
]

# Position given to posts outside the context topic
OUTSIDE_TOPIC_POSITION = 999999

RecordT = TypeVar("RecordT")


class Signal(str, Enum):
    """Ordering signals a record can be sorted by."""

    AUTHOR_BAND = "author_band"
    CATEGORY_BAND = "category_band"
    TOPIC_BAND = "topic_band"
    TOPIC_POSITION = "topic_position"
    TITLE_RANK = "title_rank"
    BODY_RANK = "body_rank"
    BUMPED_AT = "bumped_at"
    TOPICS_MONTH = "topics_month"
    LAST_POSTED_AT = "last_posted_at"
    ID = "id"


class OrderClause(BaseModel):
    """One ORDER BY term. ``context_id`` parameterizes the band signals."""

    signal: Signal
    descending: bool = False
    context_id: int | None = None

    model_config = {"frozen": True}


def context_ordering(context: ContextEntity | None) -> list[OrderClause]:
    """Tie-break clauses that float posts related to the context first."""
    if context is None:
        return []
    if isinstance(context, UserContext):
        return [OrderClause(signal=Signal.AUTHOR_BAND, context_id=context.id)]
    if isinstance(context, CategoryContext):
        return [OrderClause(signal=Signal.CATEGORY_BAND, context_id=context.id)]
    if isinstance(context, TopicContext):
        return [
            OrderClause(signal=Signal.TOPIC_BAND, context_id=context.id),
            OrderClause(signal=Signal.TOPIC_POSITION, context_id=context.id),
        ]
    raise TypeError(f"Unknown search context: {type(context).__name__}")


def post_ordering(context: ContextEntity | None = None) -> list[OrderClause]:
    return [
        *context_ordering(context),
        OrderClause(signal=Signal.TITLE_RANK, descending=True),
        OrderClause(signal=Signal.BODY_RANK, descending=True),
        OrderClause(signal=Signal.BUMPED_AT, descending=True),
        OrderClause(signal=Signal.ID),
    ]


def category_ordering() -> list[OrderClause]:
    return [
        OrderClause(signal=Signal.TOPICS_MONTH, descending=True),
        OrderClause(signal=Signal.ID),
    ]


def user_ordering() -> list[OrderClause]:
    return [
        OrderClause(signal=Signal.LAST_POSTED_AT, descending=True),
        OrderClause(signal=Signal.ID),
    ]


def signal_value(record: Any, clause: OrderClause) -> Any:
    """Value of one signal for a record, as the storage layer computes it."""
    signal = clause.signal
    if signal is Signal.AUTHOR_BAND:
        return 0 if record.user_id == clause.context_id else 1
    if signal is Signal.CATEGORY_BAND:
        return 0 if record.category_id == clause.context_id else 1
    if signal is Signal.TOPIC_BAND:
        return 0 if record.topic_id == clause.context_id else 1
    if signal is Signal.TOPIC_POSITION:
        if record.topic_id == clause.context_id:
            return record.post_number
        return OUTSIDE_TOPIC_POSITION
    return getattr(record, signal.value)


def sort_key(record: Any, clauses: Sequence[OrderClause]) -> tuple[Any, ...]:
    key: list[Any] = []
    for clause in clauses:
        value = signal_value(record, clause)
        if isinstance(value, datetime):
            value = value.timestamp()
        if value is None:
            # Missing values sort last in either direction
            key.append((1, 0))
            continue
        key.append((0, -value if clause.descending else value))
    return tuple(key)


def rank(records: Iterable[RecordT], clauses: Sequence[OrderClause]) -> list[RecordT]:
    return sorted(records, key=lambda record: sort_key(record, clauses))
