"""TSP configuration validation with auto-correction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Sequence

from ...config import settings
from ...exceptions import ConfigError
from ...models.domain import Waypoint
from .models import TSPConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ValidationResult:
    errors: List[str]
    corrected_config: TSPConfig
    corrections: List[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ConfigError("; ".join(self.errors))


def validate_tsp_config(
    points: Sequence[Waypoint],
    config: TSPConfig,
    *,
    log: logging.Logger | None = None,
) -> ValidationResult:
    """Repair a TSP configuration against the current point list.

    Start/end ids that no longer exist fall back to the first/last point, and a
    start equal to the end is replaced by first/last so the route never
    collapses to a single point. Only a list with fewer than two points is
    reported as an error; the input config is never modified.
    """
    log = log or logger
    errors: list[str] = []
    corrections: list[str] = []
    known_ids = {point.id for point in points}
    first_id = points[0].id if points else None
    last_id = points[-1].id if points else None

    start_id = config.start_point_id
    end_id = config.end_point_id

    if start_id is not None and start_id not in known_ids:
        start_id = first_id
        corrections.append("Start point not found, using the first available point")

    if end_id is not None and end_id not in known_ids:
        end_id = last_id
        corrections.append("End point not found, using the last available point")

    if start_id == end_id and len(points) > 1:
        start_id, end_id = first_id, last_id
        corrections.append("Start and end points were equal, using the first and last points")

    if len(points) < 2:
        errors.append("At least 2 points are required to solve the TSP")

    if len(points) > settings.large_dataset_warning_points:
        log.warning("Processing %d points - this may take a few minutes", len(points))

    for message in corrections:
        log.warning(message)

    corrected = replace(config, start_point_id=start_id, end_point_id=end_id)
    return ValidationResult(errors=errors, corrected_config=corrected, corrections=corrections)
