"""Turn-by-turn direction formatting for processed routes."""

from __future__ import annotations

import math
from typing import Sequence

from ..routing.models import Direction, RouteStep

ARRIVAL_TEXT = "You have arrived at your destination"


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def format_duration(seconds: float) -> str:
    return f"{math.floor(seconds / 60 + 0.5)} min"


def build_directions(steps: Sequence[RouteStep]) -> list[Direction]:
    """One direction per step, closed by an arrival entry when there are any steps."""
    directions = [
        Direction(
            text=step.instruction,
            distance=format_distance(step.distance),
            duration=format_duration(step.duration),
        )
        for step in steps
    ]
    if directions:
        directions.append(Direction(text=ARRIVAL_TEXT, distance="0 m", duration="0 min"))
    return directions
