"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    AccessDeniedError,
    ErrorCode,
    ForumSearchError,
    InvalidFacetError,
    NotFoundError,
    QueryExecutionError,
    SearchError,
    StorageError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "ForumSearchError",
    "SearchError",
    "InvalidFacetError",
    "QueryExecutionError",
    "StorageError",
    "NotFoundError",
    "AccessDeniedError",
]
