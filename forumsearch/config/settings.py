"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    data_dir: Path = Path("data")
    db_path: Path = Path("data/forumsearch.db")

    # Search
    default_locale: str = "en"
    search_per_facet: int = 5
    search_burst_factor: int = 3
    min_search_term_length: int = 3
    min_posts_for_search_in_topic: int = 5
    search_blurb_radius: int = 100
    # Stemmers with a dedicated FTS5 index; others are served by "simple"
    installed_stemmers: list[str] = ["english", "simple"]

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
