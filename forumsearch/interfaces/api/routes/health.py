"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from forumsearch import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "forumsearch"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "ForumSearch API",
        "version": __version__,
        "description": "Faceted search over forum users, categories and topics",
        "docs": "/docs",
    }
