"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..models.domain import Waypoint

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in metres between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push antipodal pairs just above 1.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_between(a: Waypoint, b: Waypoint) -> float:
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def is_valid_coordinate(lat: float | None, lng: float | None) -> bool:
    """Return True for finite latitude/longitude pairs inside the WGS84 range."""

    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def distance_matrix(points: Sequence[Waypoint]) -> np.ndarray:
    """Build the symmetric haversine distance matrix (metres) for ``points``.

    The diagonal is zero and the lower triangle mirrors the upper one, so
    ``matrix[i, j] == matrix[j, i]`` holds exactly.
    """

    n = len(points)
    if n == 0:
        return np.zeros((0, 0))

    lat = np.radians(np.array([p.lat for p in points], dtype=float))
    lng = np.radians(np.array([p.lng for p in points], dtype=float))

    d_phi = lat[None, :] - lat[:, None]
    d_lambda = lng[None, :] - lng[:, None]
    a = np.sin(d_phi / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(d_lambda / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    matrix = EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    upper = np.triu(matrix, k=1)
    return upper + upper.T
