"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from rgpanel.version import get_version

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Liveness probe.

    Returns 200 if the service is running. No authentication required.
    """
    return {"status": "ok", "version": get_version()}
