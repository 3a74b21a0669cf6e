"""
Authentication - Resolve the searching actor.

Flow:
    Caller: X-User-Id header (absent for anonymous visitors)
    Backend: Load user → load category grants → Guardian
"""

from .deps import get_current_guardian

__all__ = ["get_current_guardian"]
