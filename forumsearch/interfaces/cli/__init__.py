"""
CLI Interface - Command-line tools for ForumSearch.

Provides commands for:
- Database setup and fixture import
- Search queries
- Serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
