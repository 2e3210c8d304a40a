"""Route group exports."""

from . import health, kml, routes, tsp

__all__ = ["health", "kml", "routes", "tsp"]
