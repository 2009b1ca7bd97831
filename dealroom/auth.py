"""
Identity boundary.

Authentication happens upstream (API gateway / session layer). By the time a
request reaches this service the caller has been resolved and their opaque id
is forwarded in the X-User-Id header. Nothing below this dependency looks at
the request: services receive the actor id explicitly.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Return the already-authenticated caller id"""
    if not x_user_id or not x_user_id.strip():
        logger.warning("Request without resolved user identity")
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id.strip()
