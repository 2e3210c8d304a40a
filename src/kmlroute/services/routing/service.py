"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...exceptions import RemoteServiceError, RoutingInputError
from ...models.domain import Waypoint
from ..geospatial import distance_between
from ..outputs.directions import build_directions
from .models import ProcessRouteResult, RouteMatch, TSPConfig, TSPSolution
from .osrm_client import OSRMClient
from .remote import RemoteRouter, route_in_chunks
from .simplifier import detect_gaps, find_gaps, optimize_order_conservative, simplify
from .solver import SolveBudget, solve_tsp
from .validator import validate_tsp_config

logger = logging.getLogger(__name__)


def _snap_to_roads(router: RemoteRouter, coordinates: list[tuple[float, float]]) -> tuple[str, RouteMatch]:
    if len(coordinates) <= settings.max_coordinates_route:
        logger.info("Using route service for %d points", len(coordinates))
        return "route", router.route(coordinates)
    if len(coordinates) <= settings.max_coordinates_match:
        logger.info("Using match service for %d points", len(coordinates))
        return "match", router.match(coordinates)
    return "chunked_route", route_in_chunks(router, coordinates, settings.max_coordinates_route)


def process_route(
    points: Sequence[Waypoint],
    router: RemoteRouter | None = None,
) -> ProcessRouteResult:
    """Clean up ``points`` and snap them to the road network.

    Up to ``max_coordinates_route`` points use a single route call, up to
    ``max_coordinates_match`` a single map-match call, and anything larger is
    routed in overlapping chunks that are stitched together.
    """
    if len(points) < 2:
        raise RoutingInputError("Cannot process a route with fewer than 2 points.")

    original_count = len(points)
    logger.info("Processing route with %d original points", original_count)

    processed = optimize_order_conservative(points)
    processed = detect_gaps(processed)
    warnings = [
        f"Large gap of {gap.distance / 1000:.2f}km between points {gap.index} and {gap.index + 1}"
        for gap in find_gaps(processed)
    ]
    processed = simplify(processed)
    processed_count = len(processed)
    logger.info("Original coordinates: %d, processed: %d", original_count, processed_count)

    if processed_count < 2:
        raise RoutingInputError("Fewer than 2 unique points remained after simplification.")

    router = router or OSRMClient()
    coordinates = [point.coordinate() for point in processed]
    try:
        method, match = _snap_to_roads(router, coordinates)
    except RemoteServiceError as exc:
        raise RemoteServiceError(
            f"Failed to process route: {exc}",
            status_code=exc.status_code,
            code=exc.code,
        ) from exc

    directions = build_directions(match.steps)
    logger.info("Route processed successfully: %d directions", len(directions))
    return ProcessRouteResult(
        match=match,
        directions=directions,
        info=(
            f"{processed_count} points processed "
            f"({original_count - processed_count} points removed) - continuous route"
        ),
        original_count=original_count,
        processed_count=processed_count,
        method=method,
        warnings=warnings,
    )


def optimize_route(
    points: Sequence[Waypoint],
    config: TSPConfig | None = None,
    *,
    budget: SolveBudget | None = None,
) -> tuple[TSPSolution, TSPConfig]:
    """Validate (and repair) ``config`` then solve the TSP with the corrected config."""
    validation = validate_tsp_config(points, config or TSPConfig())
    validation.raise_for_errors()
    corrected = validation.corrected_config
    solution = solve_tsp(points, corrected, budget=budget)
    if validation.corrections:
        solution.metadata["config_corrections"] = list(validation.corrections)
    return solution, corrected


def cleanup_points(points: Sequence[Waypoint], min_distance: float | None = None) -> list[Waypoint]:
    """Remove consecutive points closer than ``min_distance`` metres, keeping first and last.

    Unlike :func:`simplify` this keeps invalid coordinates untouched and leaves
    lists of fewer than three points alone.
    """
    if min_distance is None:
        min_distance = settings.cleanup_min_distance_m
    if len(points) < 3:
        return list(points)
    cleaned = [points[0]]
    for current in points[1:-1]:
        if distance_between(cleaned[-1], current) >= min_distance:
            cleaned.append(current)
    cleaned.append(points[-1])
    return cleaned
