from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rgpanel.config import get_settings
from rgpanel.services.container import get_container

if TYPE_CHECKING:
    from rgpanel.services.session import SearchSession

security = HTTPBearer()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> None:
    """Verify the bearer token matches the configured auth token."""
    if credentials.credentials != get_settings().auth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )


async def get_search_session() -> SearchSession:
    """Get the search session via dependency injection."""
    return get_container().search_session
