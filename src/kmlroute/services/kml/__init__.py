"""KML ingestion helpers."""

from .parser import parse_kml

__all__ = ["parse_kml"]
