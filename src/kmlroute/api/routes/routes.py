"""Road-snapping endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...exceptions import RemoteServiceError
from ...schemas.routing import DirectionModel, PointsRequest, ProcessRouteResponse
from ...services.routing.service import process_route

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/process", response_model=ProcessRouteResponse, status_code=status.HTTP_200_OK)
def process(payload: PointsRequest) -> ProcessRouteResponse:
    """Clean up the points and snap them to the road network."""
    try:
        result = process_route(payload.to_domain())
    except RemoteServiceError as exc:
        logging.warning(f"Routing service failure: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error processing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process route: {str(exc)}",
        ) from exc
    match = result.match
    return ProcessRouteResponse(
        distance=match.distance,
        duration=match.duration,
        confidence=match.confidence,
        method=result.method,
        geometry=match.geojson(),
        directions=[DirectionModel.model_validate(direction) for direction in result.directions],
        info=result.info,
        original_count=result.original_count,
        processed_count=result.processed_count,
        warnings=result.warnings,
    )
