"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of database and service objects.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from forumsearch.adapters.sqlite import SQLiteRepository
from forumsearch.config import get_settings
from forumsearch.domains.search import FacetedSearch, SearchConfig


@lru_cache
def get_sqlite_repository() -> SQLiteRepository:
    """Get SQLite repository singleton."""
    settings = get_settings()
    return SQLiteRepository(settings.db_path, stemmers=settings.installed_stemmers)


@lru_cache
def get_search_config() -> SearchConfig:
    """Get search tunables, frozen from settings."""
    return SearchConfig.from_settings(get_settings())


def get_search_engine(
    repo: SQLiteRepository = Depends(get_sqlite_repository),
    config: SearchConfig = Depends(get_search_config),
) -> FacetedSearch:
    """Get a search engine over the repository."""
    return FacetedSearch(repo, config)


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    repo = get_sqlite_repository()
    await repo.initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    repo = get_sqlite_repository()
    await repo.close()
