"""
API Interface - FastAPI REST API.

Exposes faceted search over HTTP.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
