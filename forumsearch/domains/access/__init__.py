"""
Access Domain - Visibility decisions for searching actors.

This domain handles:
- Who the searching actor is (anonymous, member, admin)
- Which read-restricted categories the actor was granted
- Whether a topic, category or user may be shown to the actor
"""

from .contracts import ActorDirectory, VisibilityPolicy
from .guardian import Guardian, load_guardian
from .models import Actor

__all__ = [
    "ActorDirectory",
    "VisibilityPolicy",
    "Actor",
    "Guardian",
    "load_guardian",
]
