"""
Forum Domain - Entities that search results are projected from.

Users, categories and topics as the storage layer hands them out.
"""

from .models import Archetype, Category, Topic, User

__all__ = [
    "Archetype",
    "User",
    "Category",
    "Topic",
]
