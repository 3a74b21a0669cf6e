"""
Actor Dependencies - Identify who is searching.

The caller passes the forum user id in the ``X-User-Id`` header. Without
the header the request is anonymous. The user's category grants are loaded
once per request into a Guardian.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from forumsearch.adapters.sqlite import SQLiteRepository
from forumsearch.domains.access import Guardian, load_guardian
from forumsearch.interfaces.api.deps import get_sqlite_repository

logger = logging.getLogger(__name__)


async def get_current_guardian(
    x_user_id: Optional[int] = Header(None),
    repo: SQLiteRepository = Depends(get_sqlite_repository),
) -> Guardian:
    """
    Resolve the acting user into a Guardian.

    Raises:
        HTTPException 401 if the header names an unknown user
    """
    guardian = await load_guardian(repo, x_user_id)
    if guardian is None:
        logger.warning("Unknown user in X-User-Id: %s", x_user_id)
        raise HTTPException(status_code=401, detail="Unknown user")
    return guardian
