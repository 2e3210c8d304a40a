"""Open-path TSP solver over collection areas.

The solver clusters near-duplicate waypoints, orders the area representatives
with a nearest-neighbour construction optionally refined by 2-opt, then
expands the area order back into the full point list.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Sequence

import numpy as np

from ...config import settings
from ...exceptions import RoutingInputError
from ...models.domain import Waypoint
from ..geospatial import distance_between, distance_matrix, is_valid_coordinate
from .clustering import area_index_of, create_collection_areas
from .expander import expand_route
from .models import ALGORITHMS, TSPConfig, TSPSolution

logger = logging.getLogger(__name__)

# Improvements smaller than this (metres) are treated as float noise.
IMPROVEMENT_EPSILON = 1e-9


class CancellationToken:
    """Cooperative cancellation flag checked between 2-opt passes."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(slots=True)
class SolveBudget:
    max_iterations: int | None = None
    time_limit_seconds: float | None = None
    cancel_token: CancellationToken | None = None
    _deadline: float | None = field(default=None, init=False, repr=False)

    def start(self) -> None:
        if self.time_limit_seconds is not None:
            self._deadline = time.perf_counter() + self.time_limit_seconds

    def exhausted(self) -> bool:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            return True
        return self._deadline is not None and time.perf_counter() >= self._deadline


@dataclass(slots=True)
class TwoOptResult:
    route: list[int]
    total_distance: float
    iterations: int
    stopped_early: bool = False


def _as_rows(matrix: np.ndarray | Sequence[Sequence[float]]) -> list[list[float]]:
    # Plain lists index much faster than numpy scalars in the inner loops.
    if isinstance(matrix, np.ndarray):
        return matrix.tolist()
    return [list(row) for row in matrix]


def route_distance(matrix: np.ndarray | Sequence[Sequence[float]], route: Sequence[int]) -> float:
    """Length of the open path visiting ``route`` in order."""
    rows = _as_rows(matrix) if isinstance(matrix, np.ndarray) else matrix
    return sum(rows[route[k]][route[k + 1]] for k in range(len(route) - 1))


def nearest_neighbor(
    matrix: np.ndarray | Sequence[Sequence[float]],
    start_index: int = 0,
    end_index: int | None = None,
) -> tuple[list[int], float]:
    """Greedy construction: always move to the closest unvisited index.

    ``end_index`` is held back and appended last regardless of proximity.
    Ties go to the lowest index.
    """
    rows = _as_rows(matrix)
    n = len(rows)
    if end_index == start_index:
        end_index = None

    visited = [False] * n
    visited[start_index] = True
    route = [start_index]
    total_distance = 0.0
    current = start_index

    stops = n - 1 if end_index is not None else n
    for _ in range(1, stops):
        nearest_index = -1
        nearest_distance = math.inf
        for i in range(n):
            if visited[i] or i == end_index:
                continue
            if rows[current][i] < nearest_distance:
                nearest_distance = rows[current][i]
                nearest_index = i
        if nearest_index == -1:
            break
        visited[nearest_index] = True
        route.append(nearest_index)
        total_distance += nearest_distance
        current = nearest_index

    if end_index is not None and not visited[end_index]:
        total_distance += rows[current][end_index]
        route.append(end_index)

    return route, total_distance


def _reversal_delta(rows: list[list[float]], route: list[int], i: int, j: int) -> float:
    # Reversing route[i..j] only changes the two edges around the segment
    # (the matrix is symmetric, so the segment keeps its length).
    n = len(route)
    before = 0.0
    after = 0.0
    if i > 0:
        before += rows[route[i - 1]][route[i]]
        after += rows[route[i - 1]][route[j]]
    if j < n - 1:
        before += rows[route[j]][route[j + 1]]
        after += rows[route[i]][route[j + 1]]
    return after - before


def two_opt_improve(
    matrix: np.ndarray | Sequence[Sequence[float]],
    initial_route: Sequence[int],
    *,
    fixed_start: bool = False,
    fixed_end: bool = False,
    max_iterations: int | None = None,
    budget: SolveBudget | None = None,
    log: logging.Logger | None = None,
) -> TwoOptResult:
    """Improve ``initial_route`` by reversing sub-paths while that shortens it.

    Each pass tries every position pair ``i < j`` and applies a reversal as
    soon as it strictly reduces the length. The search stops after a pass
    without improvement, after ``max_iterations`` passes (default
    ``min(1000, 2n)``) or when ``budget`` runs out; in the last case the best
    route found so far is returned with ``stopped_early`` set. Fixed start/end
    positions never take part in a reversal. Above the sampling threshold the
    loops only visit every second position.

    ``matrix`` must be symmetric.
    """
    log = log or logger
    rows = _as_rows(matrix)
    route = list(initial_route)
    n = len(route)
    initial_distance = route_distance(rows, route)
    if n < 3:
        return TwoOptResult(route=route, total_distance=initial_distance, iterations=0)

    limit = max_iterations if max_iterations is not None else min(settings.two_opt_max_iterations, n * 2)
    if budget is not None:
        budget.start()
        if budget.max_iterations is not None:
            limit = min(limit, budget.max_iterations)

    low = 1 if fixed_start else 0
    high = n - 1 if fixed_end else n
    step = 2 if n > settings.two_opt_sampling_threshold else 1

    log.debug("Starting 2-opt with %d points (max %d iterations)", n, limit)
    best_distance = initial_distance
    improved = True
    iterations = 0
    stopped_early = False

    while improved and iterations < limit:
        if budget is not None and budget.exhausted():
            stopped_early = True
            log.info("2-opt budget exhausted after %d iterations", iterations)
            break
        improved = False
        iterations += 1

        for i in range(low, high - 1, step):
            for j in range(i + 1, high, step):
                delta = _reversal_delta(rows, route, i, j)
                if delta < -IMPROVEMENT_EPSILON:
                    route[i : j + 1] = route[i : j + 1][::-1]
                    best_distance += delta
                    improved = True

        if iterations % 100 == 0 and n > 500:
            log.info("2-opt iteration %d, current distance: %.2fkm", iterations, best_distance / 1000)

    best_distance = route_distance(rows, route)
    log.debug("2-opt finished: %d iterations, final distance %.2fkm", iterations, best_distance / 1000)
    return TwoOptResult(
        route=route,
        total_distance=best_distance,
        iterations=iterations,
        stopped_early=stopped_early,
    )


def solve_tsp(
    points: Sequence[Waypoint],
    config: TSPConfig | None = None,
    *,
    budget: SolveBudget | None = None,
    log: logging.Logger | None = None,
) -> TSPSolution:
    """Order ``points`` into a short open path honouring fixed start/end points.

    The caller's waypoints are never modified: the returned route holds new
    instances annotated with ``visit_order`` (from 1) and start/end flags.
    """
    log = log or logger
    if len(points) < 2:
        raise RoutingInputError("At least 2 points are required to solve the TSP.")
    invalid = [point.id for point in points if not is_valid_coordinate(point.lat, point.lng)]
    if invalid:
        raise RoutingInputError(f"Points with invalid coordinates cannot be routed: {', '.join(invalid)}")

    config = config or TSPConfig()
    if config.algorithm not in ALGORITHMS:
        raise ValueError(f"Algorithm '{config.algorithm}' is not recognised.")

    started = time.perf_counter()
    radius = config.collection_radius if config.collection_radius is not None else settings.default_collection_radius_m
    areas = create_collection_areas(points, radius, log=log)
    representatives = [area.representative for area in areas]

    start_index = area_index_of(areas, config.start_point_id)
    end_index = area_index_of(areas, config.end_point_id)
    fixed_start = start_index is not None
    if end_index is not None and end_index == start_index:
        log.debug("Start and end points share collection area %d; leaving the end open", end_index)
        end_index = None
    fixed_end = end_index is not None

    log.debug("Building distance matrix for %d collection areas", len(representatives))
    matrix = distance_matrix(representatives).tolist()

    if budget is None and config.time_limit_seconds is not None:
        budget = SolveBudget(time_limit_seconds=config.time_limit_seconds)

    algorithm_used = config.algorithm
    stopped_early = False
    initial_route, initial_distance = nearest_neighbor(matrix, start_index or 0, end_index)
    if config.algorithm == "nearest_neighbor":
        area_route, area_distance, iterations = initial_route, initial_distance, 1
    else:
        if config.algorithm == "genetic":
            log.warning("Genetic algorithm is not implemented, falling back to 2-opt")
            algorithm_used = "2opt"
        improved = two_opt_improve(
            matrix,
            initial_route,
            fixed_start=fixed_start,
            fixed_end=fixed_end,
            max_iterations=config.max_iterations,
            budget=budget,
            log=log,
        )
        area_route, area_distance, iterations = improved.route, improved.total_distance, improved.iterations
        stopped_early = improved.stopped_early

    expanded = expand_route(
        [areas[index] for index in area_route],
        points,
        start_point_id=config.start_point_id if fixed_start else None,
        end_point_id=config.end_point_id if fixed_end else None,
        log=log,
    )
    total_distance = sum(distance_between(expanded[k], expanded[k + 1]) for k in range(len(expanded) - 1))
    route = [
        replace(
            point,
            visit_order=order,
            is_start_point=fixed_start and point.id == config.start_point_id,
            is_end_point=fixed_end and point.id == config.end_point_id,
        )
        for order, point in enumerate(expanded, start=1)
    ]

    execution_time = (time.perf_counter() - started) * 1000
    log.info(
        "TSP solved in %.2fms with %d iterations: %d areas, %d points, %.2fkm",
        execution_time,
        iterations,
        len(areas),
        len(points),
        total_distance / 1000,
    )
    return TSPSolution(
        route=route,
        total_distance=total_distance,
        total_duration=round(total_distance / settings.average_speed_kmh * 3.6),
        iterations=iterations,
        execution_time=execution_time,
        metadata={
            "algorithm_requested": config.algorithm,
            "algorithm_used": algorithm_used,
            "collection_radius": radius,
            "areas": len(areas),
            "points": len(points),
            "area_route_distance": area_distance,
            "stopped_early": stopped_early,
        },
    )
