import logging

import pytest

from kmlroute.exceptions import ConfigError
from kmlroute.models.domain import Waypoint
from kmlroute.services.routing.models import TSPConfig
from kmlroute.services.routing.validator import validate_tsp_config


def _points(count: int) -> list[Waypoint]:
    return [Waypoint(id=f"p{i}", name=f"P{i}", lat=24.0 + i * 0.01, lng=46.0) for i in range(count)]


def test_deleted_start_point_falls_back_to_first_point():
    points = _points(4)
    result = validate_tsp_config(points, TSPConfig(start_point_id="deleted", end_point_id="p2"))

    assert result.errors == []
    assert result.corrected_config.start_point_id == points[0].id
    assert result.corrected_config.end_point_id == "p2"
    assert len(result.corrections) == 1


def test_deleted_end_point_falls_back_to_last_point():
    points = _points(4)
    result = validate_tsp_config(points, TSPConfig(start_point_id="p1", end_point_id="gone"))

    assert result.errors == []
    assert result.corrected_config.start_point_id == "p1"
    assert result.corrected_config.end_point_id == points[-1].id


def test_equal_start_and_end_use_first_and_last():
    points = _points(3)
    result = validate_tsp_config(points, TSPConfig(start_point_id="p1", end_point_id="p1"))

    assert result.corrected_config.start_point_id == "p0"
    assert result.corrected_config.end_point_id == "p2"


def test_missing_start_and_end_default_to_first_and_last():
    points = _points(3)
    result = validate_tsp_config(points, TSPConfig())

    assert result.corrected_config.start_point_id == "p0"
    assert result.corrected_config.end_point_id == "p2"


def test_valid_config_is_kept():
    points = _points(3)
    config = TSPConfig(start_point_id="p2", end_point_id="p0", algorithm="nearest_neighbor")
    result = validate_tsp_config(points, config)

    assert result.corrected_config == config
    assert result.corrections == []


def test_input_config_is_not_modified():
    config = TSPConfig(start_point_id="deleted")
    validate_tsp_config(_points(3), config)

    assert config.start_point_id == "deleted"


def test_too_few_points_is_an_error():
    result = validate_tsp_config(_points(1), TSPConfig())

    assert result.errors == ["At least 2 points are required to solve the TSP"]
    with pytest.raises(ConfigError):
        result.raise_for_errors()


def test_corrections_are_logged(caplog):
    with caplog.at_level(logging.WARNING):
        validate_tsp_config(_points(3), TSPConfig(start_point_id="deleted", end_point_id="p2"))

    assert "Start point not found" in caplog.text


def test_empty_string_ids_are_corrected():
    points = _points(3)
    result = validate_tsp_config(points, TSPConfig(start_point_id="", end_point_id=""))

    assert result.errors == []
    assert result.corrected_config.start_point_id == "p0"
    assert result.corrected_config.end_point_id == "p2"


def test_empty_start_id_alone_falls_back_to_first_point():
    points = _points(3)
    result = validate_tsp_config(points, TSPConfig(start_point_id="", end_point_id="p1"))

    assert result.corrected_config.start_point_id == "p0"
    assert result.corrected_config.end_point_id == "p1"
