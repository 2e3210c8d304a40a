"""TSP validation and solving endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    TSPConfigModel,
    TSPRequest,
    TSPSolutionResponse,
    ValidationResponse,
    WaypointModel,
)
from ...services.routing.service import optimize_route
from ...services.routing.validator import validate_tsp_config

router = APIRouter(prefix="/tsp", tags=["tsp"])


@router.post("/validate", response_model=ValidationResponse, status_code=status.HTTP_200_OK)
def validate(payload: TSPRequest) -> ValidationResponse:
    """Report configuration errors and the auto-corrected configuration."""
    result = validate_tsp_config(payload.to_domain(), payload.config.to_domain())
    return ValidationResponse(
        errors=result.errors,
        corrections=result.corrections,
        corrected_config=TSPConfigModel.model_validate(result.corrected_config),
    )


@router.post("/solve", response_model=TSPSolutionResponse, status_code=status.HTTP_200_OK)
def solve(payload: TSPRequest) -> TSPSolutionResponse:
    try:
        solution, corrected = optimize_route(payload.to_domain(), payload.config.to_domain())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error solving TSP: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to solve TSP: {str(exc)}",
        ) from exc
    return TSPSolutionResponse(
        route=[WaypointModel.model_validate(point) for point in solution.route],
        total_distance=solution.total_distance,
        total_duration=solution.total_duration,
        iterations=solution.iterations,
        execution_time=solution.execution_time,
        metadata=solution.metadata,
        config=TSPConfigModel.model_validate(corrected),
    )
