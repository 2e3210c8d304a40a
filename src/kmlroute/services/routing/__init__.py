"""Route optimization and road-snapping services."""
