"""
Adapters - Storage integrations.

Storage access is wrapped here to isolate domains from the database engine.
"""

from .sqlite import SQLiteRepository

__all__ = ["SQLiteRepository"]
