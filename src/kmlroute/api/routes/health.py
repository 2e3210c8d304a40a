"""Health endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from ...services.routing.osrm_client import check_health as osrm_health_check

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    """Check OSRM service health."""
    healthy = osrm_health_check()
    if not healthy:
        logger.warning("OSRM health check failed")
    return {"service": "osrm", "healthy": healthy}
