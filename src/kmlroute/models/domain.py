"""Domain models for waypoints loaded from KML files."""

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class Waypoint:
    """A named point of a route as loaded from KML or placed by the user."""

    id: str
    name: str
    lat: float
    lng: float
    is_start_point: bool = False
    is_end_point: bool = False
    visit_order: Optional[int] = None

    def coordinate(self) -> tuple[float, float]:
        """Return the point as a ``(lng, lat)`` pair, the order used by OSRM and GeoJSON."""
        return (self.lng, self.lat)
