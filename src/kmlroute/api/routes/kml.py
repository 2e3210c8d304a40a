"""KML import and point cleanup endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    CleanupRequest,
    CleanupResponse,
    KMLParseRequest,
    PointsResponse,
    WaypointModel,
)
from ...services.kml import parse_kml
from ...services.routing.service import cleanup_points

logger = logging.getLogger(__name__)

router = APIRouter(tags=["kml"])


@router.post("/kml/parse", response_model=PointsResponse, status_code=status.HTTP_200_OK)
def parse(payload: KMLParseRequest) -> PointsResponse:
    """Extract placemark points from a KML document."""
    try:
        points = parse_kml(payload.content)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PointsResponse(
        points=[WaypointModel.model_validate(point) for point in points],
        count=len(points),
    )


@router.post("/points/cleanup", response_model=CleanupResponse, status_code=status.HTTP_200_OK)
def cleanup(payload: CleanupRequest) -> CleanupResponse:
    """Drop consecutive points that sit closer together than the cleanup distance."""
    points = payload.to_domain()
    cleaned = cleanup_points(points, payload.min_distance)
    removed = len(points) - len(cleaned)
    if removed:
        logger.info("Cleanup removed %d of %d points", removed, len(points))
    return CleanupResponse(
        points=[WaypointModel.model_validate(point) for point in cleaned],
        count=len(cleaned),
        removed=removed,
    )
