import logging
import random

import pytest

from kmlroute.config import settings
from kmlroute.exceptions import RoutingInputError
from kmlroute.models.domain import Waypoint
from kmlroute.services.geospatial import distance_between, distance_matrix
from kmlroute.services.routing.models import TSPConfig
from kmlroute.services.routing.solver import (
    CancellationToken,
    SolveBudget,
    nearest_neighbor,
    route_distance,
    solve_tsp,
    two_opt_improve,
)


def _wp(pid: str, lat: float, lng: float) -> Waypoint:
    return Waypoint(id=pid, name=pid, lat=lat, lng=lng)


def _random_points(count: int, seed: int = 7) -> list[Waypoint]:
    rng = random.Random(seed)
    return [_wp(f"p{i}", 24.0 + rng.random() * 0.5, 46.0 + rng.random() * 0.5) for i in range(count)]


def _square() -> list[Waypoint]:
    # Scrambled on purpose.
    return [_wp("ne", 1, 1), _wp("n", 0, 1), _wp("origin", 0, 0), _wp("e", 1, 0)]


def test_nearest_neighbor_walks_square_perimeter():
    points = _square()
    solution = solve_tsp(points, TSPConfig(start_point_id="origin", algorithm="nearest_neighbor"))
    route = solution.route

    assert route[0].id == "origin"
    assert sorted(p.id for p in route) == sorted(p.id for p in points)
    for previous, current in zip(route, route[1:]):
        # Neighbours on the perimeter share one coordinate; diagonals share none.
        assert previous.lat == current.lat or previous.lng == current.lng
    side = distance_between(points[2], points[1])
    assert solution.total_distance == pytest.approx(3 * side, rel=1e-3)
    assert solution.iterations == 1


def test_route_is_annotated_without_touching_input():
    points = _square()
    solution = solve_tsp(points, TSPConfig(start_point_id="origin", end_point_id="ne"))

    assert [p.visit_order for p in solution.route] == [1, 2, 3, 4]
    assert solution.route[0].is_start_point
    assert solution.route[-1].is_end_point
    assert solution.route[-1].id == "ne"
    assert all(p.visit_order is None for p in points)
    assert not any(p.is_start_point or p.is_end_point for p in points)


def test_two_opt_never_lengthens_the_route():
    points = _random_points(40)
    matrix = distance_matrix(points)
    initial, initial_distance = nearest_neighbor(matrix)
    result = two_opt_improve(matrix, initial, fixed_start=True)

    assert result.total_distance <= initial_distance + 1e-6
    assert sorted(result.route) == list(range(40))
    assert result.total_distance == pytest.approx(route_distance(matrix, result.route))


def test_two_opt_keeps_fixed_endpoints():
    points = _random_points(25, seed=3)
    matrix = distance_matrix(points)
    initial, _ = nearest_neighbor(matrix, start_index=5, end_index=17)
    result = two_opt_improve(matrix, initial, fixed_start=True, fixed_end=True)

    assert result.route[0] == 5
    assert result.route[-1] == 17


def test_nearest_neighbor_appends_end_last():
    matrix = [
        [0, 1, 5, 9],
        [1, 0, 1, 5],
        [5, 1, 0, 1],
        [9, 5, 1, 0],
    ]
    route, total = nearest_neighbor(matrix, start_index=0, end_index=1)

    assert route == [0, 2, 3, 1]
    assert total == 5 + 1 + 5


def test_solver_honours_start_and_end_ids():
    points = _random_points(30)
    solution = solve_tsp(points, TSPConfig(start_point_id="p12", end_point_id="p3"))

    assert solution.route[0].id == "p12"
    assert solution.route[-1].id == "p3"
    assert sorted(p.id for p in solution.route) == sorted(p.id for p in points)


def test_two_opt_beats_or_matches_nearest_neighbor():
    points = _random_points(30, seed=11)
    nn = solve_tsp(points, TSPConfig(start_point_id="p0", end_point_id="p29", algorithm="nearest_neighbor"))
    opt = solve_tsp(points, TSPConfig(start_point_id="p0", end_point_id="p29", algorithm="2opt"))

    assert opt.total_distance <= nn.total_distance + 1e-6


def test_duplicate_points_are_visited_once_each():
    points = [_wp("a", 24.0, 46.0), _wp("a-copy", 24.0, 46.0), _wp("b", 24.1, 46.0), _wp("c", 24.2, 46.0)]
    solution = solve_tsp(points, TSPConfig(start_point_id="a"))

    assert len(solution.route) == 4
    assert solution.route[0].id == "a"
    assert solution.metadata["areas"] == 3


def test_genetic_falls_back_to_two_opt(caplog):
    with caplog.at_level(logging.WARNING):
        solution = solve_tsp(_random_points(10), TSPConfig(algorithm="genetic"))

    assert solution.metadata["algorithm_requested"] == "genetic"
    assert solution.metadata["algorithm_used"] == "2opt"
    assert "Genetic algorithm is not implemented" in caplog.text


def test_unknown_algorithm_is_rejected():
    with pytest.raises(ValueError):
        solve_tsp(_random_points(3), TSPConfig(algorithm="simulated_annealing"))


def test_fewer_than_two_points_is_rejected():
    with pytest.raises(RoutingInputError):
        solve_tsp([_wp("a", 0, 0)])


def test_cancelled_solve_returns_best_effort_route():
    token = CancellationToken()
    token.cancel()
    points = _random_points(50)
    solution = solve_tsp(points, TSPConfig(), budget=SolveBudget(cancel_token=token))

    assert solution.metadata["stopped_early"] is True
    assert solution.iterations == 0
    assert sorted(p.id for p in solution.route) == sorted(p.id for p in points)


def test_iteration_budget_caps_passes():
    points = _random_points(60)
    matrix = distance_matrix(points)
    initial, _ = nearest_neighbor(matrix)
    result = two_opt_improve(matrix, initial, budget=SolveBudget(max_iterations=1))

    assert result.iterations <= 1


def test_duration_is_estimated_from_average_speed():
    solution = solve_tsp(_random_points(8))

    assert solution.total_duration == round(solution.total_distance / 50 * 3.6)
    assert solution.execution_time >= 0


def test_antipodal_points_can_be_solved():
    points = [_wp("south", -82, 0), _wp("north", 82, 180), _wp("equator", 0, 0)]
    solution = solve_tsp(points, TSPConfig(start_point_id="south"))

    assert solution.route[0].id == "south"
    assert sorted(p.id for p in solution.route) == ["equator", "north", "south"]


@pytest.mark.parametrize(("lat", "lng"), [(float("nan"), 0.0), (95.0, 0.0), (0.0, -181.0)])
def test_invalid_coordinates_are_rejected_by_id(lat, lng):
    points = [_wp("a", 0, 0), _wp("b", 0, 1), _wp("broken", lat, lng)]

    with pytest.raises(RoutingInputError, match="broken"):
        solve_tsp(points)


def test_sampled_two_opt_above_threshold(monkeypatch):
    monkeypatch.setattr(settings, "two_opt_sampling_threshold", 10)
    points = _random_points(40, seed=5)
    matrix = distance_matrix(points)
    initial, initial_distance = nearest_neighbor(matrix, start_index=0, end_index=39)
    result = two_opt_improve(matrix, initial, fixed_start=True, fixed_end=True)

    assert sorted(result.route) == list(range(40))
    assert result.route[0] == 0
    assert result.route[-1] == 39
    assert result.total_distance <= initial_distance + 1e-6


def test_expired_time_limit_returns_best_effort_route():
    points = _random_points(30)
    solution = solve_tsp(points, TSPConfig(), budget=SolveBudget(time_limit_seconds=0.0))

    assert solution.metadata["stopped_early"] is True
    assert solution.iterations == 0
    assert sorted(p.id for p in solution.route) == sorted(p.id for p in points)
