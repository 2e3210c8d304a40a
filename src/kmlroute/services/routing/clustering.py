"""Collection-area clustering of near-duplicate waypoints."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from ...config import settings
from ...models.domain import Waypoint
from ..geospatial import haversine_m
from .models import CollectionArea

logger = logging.getLogger(__name__)


def _closest_to_center(members: Sequence[Waypoint], center_lat: float, center_lng: float) -> Waypoint:
    best = members[0]
    best_distance = haversine_m(best.lat, best.lng, center_lat, center_lng)
    for member in members[1:]:
        distance = haversine_m(member.lat, member.lng, center_lat, center_lng)
        if distance < best_distance:
            best_distance = distance
            best = member
    return best


def create_collection_areas(
    points: Sequence[Waypoint],
    max_radius: float | None = None,
    *,
    log: logging.Logger | None = None,
) -> list[CollectionArea]:
    """Group points lying within ``max_radius`` metres of a running centroid.

    Points are scanned in input order. Each unassigned point seeds a new area
    which absorbs every later unassigned point within ``max_radius`` of the
    area's current centroid; the centroid moves after each absorption. The
    member closest to the final centroid becomes the representative, renamed
    ``"Area N (k points)"`` when the area holds more than one point.
    """
    log = log or logger
    if max_radius is None:
        max_radius = settings.default_collection_radius_m

    areas: list[CollectionArea] = []
    assigned: set[int] = set()

    for i, seed in enumerate(points):
        if i in assigned:
            continue
        assigned.add(i)

        members = [seed]
        sum_lat, sum_lng = seed.lat, seed.lng
        center_lat, center_lng = seed.lat, seed.lng
        radius = 0.0

        for j in range(i + 1, len(points)):
            if j in assigned:
                continue
            candidate = points[j]
            distance_to_center = haversine_m(candidate.lat, candidate.lng, center_lat, center_lng)
            if distance_to_center > max_radius:
                continue

            members.append(candidate)
            assigned.add(j)
            sum_lat += candidate.lat
            sum_lng += candidate.lng
            center_lat = sum_lat / len(members)
            center_lng = sum_lng / len(members)
            radius = max(radius, distance_to_center)

        area_number = len(areas) + 1
        best = _closest_to_center(members, center_lat, center_lng)
        if len(members) > 1:
            representative = replace(best, name=f"Area {area_number} ({len(members)} points)")
        else:
            representative = best

        areas.append(
            CollectionArea(
                id=f"area-{area_number}",
                representative=representative,
                members=members,
                center_lat=center_lat,
                center_lng=center_lng,
                radius=radius,
            )
        )

    grouped = [area for area in areas if len(area.members) > 1]
    log.info(
        "Created %d collection areas from %d points (radius %.1fm, reduction %d)",
        len(areas),
        len(points),
        max_radius,
        len(points) - len(areas),
    )
    for area in grouped:
        log.debug("%s: %d points, radius %.1fm", area.id, len(area.members), area.radius)
    return areas


def area_index_of(areas: Sequence[CollectionArea], point_id: str | None) -> int | None:
    """Return the index of the area containing ``point_id``, if any."""
    if point_id is None:
        return None
    for index, area in enumerate(areas):
        if any(member.id == point_id for member in area.members):
            return index
    return None
