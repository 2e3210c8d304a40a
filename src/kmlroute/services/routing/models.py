"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from ...models.domain import Waypoint

Algorithm = Literal["nearest_neighbor", "2opt", "genetic"]
ALGORITHMS: tuple[str, ...] = ("nearest_neighbor", "2opt", "genetic")

# (lng, lat), the coordinate order of OSRM URLs and GeoJSON geometries.
Coordinate = tuple[float, float]


@dataclass(slots=True)
class CollectionArea:
    """A group of near-duplicate waypoints visited as a single stop."""

    id: str
    representative: Waypoint
    members: List[Waypoint]
    center_lat: float
    center_lng: float
    radius: float = 0.0


@dataclass(slots=True)
class TSPConfig:
    start_point_id: Optional[str] = None
    end_point_id: Optional[str] = None
    algorithm: Algorithm = "2opt"
    max_iterations: Optional[int] = None
    collection_radius: float = 20.0
    time_limit_seconds: Optional[float] = None


@dataclass(slots=True)
class TSPSolution:
    route: List[Waypoint]
    total_distance: float
    total_duration: float
    iterations: int
    execution_time: float
    metadata: dict = field(default_factory=dict)


@dataclass(slots=True)
class Gap:
    """A pair of consecutive waypoints further apart than the gap threshold."""

    index: int
    distance: float


@dataclass(slots=True)
class RouteStep:
    distance: float
    duration: float
    name: str
    instruction: str
    maneuver_type: str
    modifier: Optional[str] = None
    location: Optional[Coordinate] = None


@dataclass(slots=True)
class RouteLeg:
    steps: List[RouteStep]
    distance: float
    duration: float
    summary: str = ""


@dataclass(slots=True)
class RouteMatch:
    """Normalized answer of a route or map-match call."""

    distance: float
    duration: float
    geometry: List[Coordinate]
    legs: List[RouteLeg]
    confidence: float = 1.0
    tracepoints: list = field(default_factory=list)

    @property
    def steps(self) -> List[RouteStep]:
        return [step for leg in self.legs for step in leg.steps]

    def geojson(self) -> dict:
        return {"type": "LineString", "coordinates": [list(coord) for coord in self.geometry]}


@dataclass(slots=True)
class Direction:
    text: str
    distance: str
    duration: str


@dataclass(slots=True)
class ProcessRouteResult:
    match: RouteMatch
    directions: List[Direction]
    info: str
    original_count: int
    processed_count: int
    method: str
    warnings: List[str] = field(default_factory=list)

    @property
    def geometry(self) -> dict:
        return self.match.geojson()
