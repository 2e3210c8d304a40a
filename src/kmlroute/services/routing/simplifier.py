"""Waypoint preprocessing applied before routing.

These helpers clean up raw KML data without second-guessing the order the
user curated: invalid coordinates and near-duplicates are dropped, large gaps
are reported, and points are only reordered when the sequence is clearly
scrambled (e.g. several KML files pasted together).
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Waypoint
from ..geospatial import distance_between, is_valid_coordinate
from .models import Gap

logger = logging.getLogger(__name__)


def simplify(
    points: Sequence[Waypoint],
    min_distance: float | None = None,
) -> list[Waypoint]:
    """Drop invalid coordinates and points closer than ``min_distance`` metres.

    A point is kept only if it is at least ``min_distance`` away from the last
    kept point. The first and last valid points are always kept. When fewer
    than two valid points remain they are returned as-is and the caller must
    treat the result as unusable.
    """
    if min_distance is None:
        min_distance = settings.simplify_min_distance_m

    valid = [point for point in points if is_valid_coordinate(point.lat, point.lng)]
    if len(valid) <= 2:
        return valid

    simplified = [valid[0]]
    for current in valid[1:-1]:
        if distance_between(simplified[-1], current) >= min_distance:
            simplified.append(current)
    simplified.append(valid[-1])
    return simplified


def find_gaps(points: Sequence[Waypoint], max_gap: float | None = None) -> list[Gap]:
    """Return every consecutive pair whose distance exceeds ``max_gap`` metres."""
    if max_gap is None:
        max_gap = settings.gap_warning_distance_m
    gaps: list[Gap] = []
    for index in range(len(points) - 1):
        distance = distance_between(points[index], points[index + 1])
        if distance > max_gap:
            gaps.append(Gap(index=index, distance=distance))
    return gaps


def detect_gaps(
    points: Sequence[Waypoint],
    max_gap: float | None = None,
    *,
    log: logging.Logger | None = None,
) -> list[Waypoint]:
    """Log large gaps between consecutive points and return the points unchanged."""
    log = log or logger
    if len(points) <= 2:
        return list(points)
    for gap in find_gaps(points, max_gap):
        log.warning(
            "Large gap detected: %.2fkm between points %d and %d",
            gap.distance / 1000,
            gap.index,
            gap.index + 1,
        )
    return list(points)


def optimize_order_conservative(
    points: Sequence[Waypoint],
    gap_threshold: float | None = None,
    keep_order_distance: float | None = None,
    *,
    log: logging.Logger | None = None,
) -> list[Waypoint]:
    """Reorder points with a nearest-neighbour pass, but only when needed.

    Nothing changes unless some consecutive pair is more than ``gap_threshold``
    metres apart. In that case the walk starts at the first point and keeps the
    original next point whenever it lies within ``keep_order_distance``;
    otherwise it jumps to the closest remaining point.
    """
    log = log or logger
    if gap_threshold is None:
        gap_threshold = settings.reorder_gap_threshold_m
    if keep_order_distance is None:
        keep_order_distance = settings.reorder_keep_order_distance_m

    if len(points) <= 2:
        return list(points)

    if not find_gaps(points, gap_threshold):
        log.debug("Keeping original order: no large gaps detected")
        return list(points)

    log.info("Large gaps detected: reordering %d points conservatively", len(points))
    optimized = [points[0]]
    remaining = list(points[1:])
    while remaining:
        current = optimized[-1]
        best_index = 0
        best_distance = distance_between(current, remaining[0])
        if best_distance < keep_order_distance:
            optimized.append(remaining.pop(0))
            continue

        for index in range(1, len(remaining)):
            distance = distance_between(current, remaining[index])
            if distance < best_distance:
                best_distance = distance
                best_index = index
        optimized.append(remaining.pop(best_index))
    return optimized
