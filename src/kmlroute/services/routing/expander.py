"""Reconstruct the full waypoint sequence from an ordered list of collection areas."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from ...models.domain import Waypoint
from ..geospatial import distance_between
from .models import CollectionArea

logger = logging.getLogger(__name__)


def _ordered_members(
    members: Sequence[Waypoint],
    anchor: Waypoint,
    first_id: str | None = None,
    last_id: str | None = None,
) -> list[Waypoint]:
    ordered = sorted(members, key=lambda member: distance_between(anchor, member))
    if first_id is not None:
        head = [member for member in ordered if member.id == first_id]
        ordered = head + [member for member in ordered if member.id != first_id]
    if last_id is not None:
        tail = [member for member in ordered if member.id == last_id]
        ordered = [member for member in ordered if member.id != last_id] + tail
    return ordered


def expand_route(
    ordered_areas: Sequence[CollectionArea],
    original_points: Sequence[Waypoint],
    *,
    start_point_id: str | None = None,
    end_point_id: str | None = None,
    log: logging.Logger | None = None,
) -> list[Waypoint]:
    """Emit every member of every area, following the solved area order.

    Members of a multi-point area are chained by proximity to the last emitted
    point. The first area is anchored on ``start_point_id`` when it contains
    it, and the last area emits ``end_point_id`` last when it contains it.

    Raises:
        ValueError: If the areas do not cover ``original_points`` exactly once.
    """
    log = log or logger
    expanded: list[Waypoint] = []
    last_position = len(ordered_areas) - 1

    for position, area in enumerate(ordered_areas):
        if len(area.members) == 1:
            expanded.append(area.members[0])
            continue

        first_id = start_point_id if not expanded else None
        anchor = expanded[-1] if expanded else area.members[0]
        if first_id is not None:
            anchor = next((m for m in area.members if m.id == first_id), anchor)
        last_id = end_point_id if position == last_position else None
        expanded.extend(_ordered_members(area.members, anchor, first_id, last_id))

    expected = Counter(point.id for point in original_points)
    produced = Counter(point.id for point in expanded)
    if expected != produced:
        missing = sorted((expected - produced).keys())
        extra = sorted((produced - expected).keys())
        raise ValueError(
            f"Expanded route does not match the original points (missing={missing}, unexpected={extra})."
        )

    log.debug("Expanded %d areas into %d points", len(ordered_areas), len(expanded))
    return expanded
