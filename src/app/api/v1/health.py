"""Status endpoints.

``/`` is the plain liveness probe the upload clients poll; ``/health``
adds the deployment environment.
"""

from __future__ import annotations

from fastapi import APIRouter

from src.app.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/")
async def status_check():
    """Report that the archive processor is up."""
    return {"status": "Zip processor is running"}


@router.get("/health")
async def health_check():
    """Basic liveness check. No external dependencies are checked."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}
