"""Route optimization backend for the KML route editor."""

__version__ = "0.1.0"
