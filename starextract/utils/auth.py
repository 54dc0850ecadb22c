"""Optional shared-secret authentication for the ``/v1`` routes.

Clients send one of the configured ``ALLOWED_API_KEYS`` in the ``x-api-key``
header. With no keys configured the service is open, which is the default for
local use.
"""

from __future__ import annotations

import secrets
from typing import Annotated, Optional

import structlog
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from starextract.core.config import Settings, get_settings

__all__: list[str] = ["verify_api_key"]

logger = structlog.get_logger(__name__)

# auto_error=False: a missing header is answered by verify_api_key, not FastAPI.
_api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


async def verify_api_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    x_api_key: Annotated[Optional[str], Security(_api_key_header)] = None,
) -> Optional[str]:
    """Return the accepted key, or ``None`` when authentication is disabled.

    Raises:
        HTTPException: 401 if keys are configured and the header is absent or
            matches none of them.
    """
    if not settings.allowed_api_keys:
        return None

    accepted = False
    if x_api_key:
        # Every key is compared so timing does not reveal which one matched.
        for key in settings.allowed_api_keys:
            accepted |= secrets.compare_digest(x_api_key.encode(), key.encode())

    if not accepted:
        logger.warning("auth_failed", header_present=bool(x_api_key))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing x-api-key header.",
        )

    request.state.user = "api_key_user"
    return x_api_key
