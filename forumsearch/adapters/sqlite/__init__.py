"""
SQLite Adapter - Forum storage with FTS5 full-text search.
"""

from .fixtures import ForumFixture, load_fixture
from .repository import STEMMER_TOKENIZERS, SQLiteRepository

__all__ = ["SQLiteRepository", "STEMMER_TOKENIZERS", "ForumFixture", "load_fixture"]
