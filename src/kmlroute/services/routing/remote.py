"""Routing-service contract plus the chunking and stitching built on top of it."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ...exceptions import RemoteServiceError
from .models import Coordinate, RouteLeg, RouteMatch

logger = logging.getLogger(__name__)


class RemoteRouter(Protocol):
    """Snaps an ordered list of ``(lng, lat)`` coordinates to the road network."""

    def route(self, coordinates: Sequence[Coordinate]) -> RouteMatch:
        ...

    def match(self, coordinates: Sequence[Coordinate]) -> RouteMatch:
        ...


def split_coordinates(coordinates: Sequence[Coordinate], chunk_size: int) -> list[list[Coordinate]]:
    """Split into chunks of at most ``chunk_size`` that share their boundary point."""
    if chunk_size < 2:
        raise ValueError("chunk_size must be >= 2")
    if len(coordinates) <= chunk_size:
        return [list(coordinates)]

    chunks: list[list[Coordinate]] = []
    start = 0
    while start < len(coordinates):
        end = min(start + chunk_size, len(coordinates))
        chunks.append(list(coordinates[start:end]))
        if end == len(coordinates):
            break
        start = end - 1
    return chunks


def stitch_matches(matches: Sequence[RouteMatch]) -> RouteMatch:
    """Combine per-chunk results into one route with a single synthetic leg.

    Geometries are concatenated, dropping the first coordinate of every later
    chunk (it repeats the previous chunk's last one). Distances and durations
    are summed and all steps are kept in order.
    """
    if not matches:
        raise ValueError("At least one route result is required to stitch.")
    if len(matches) == 1:
        return matches[0]

    geometry: list[Coordinate] = []
    steps = []
    tracepoints: list = []
    total_distance = 0.0
    total_duration = 0.0
    for index, match in enumerate(matches):
        total_distance += match.distance
        total_duration += match.duration
        geometry.extend(match.geometry if index == 0 else match.geometry[1:])
        steps.extend(match.steps)
        tracepoints.extend(match.tracepoints)

    return RouteMatch(
        distance=total_distance,
        duration=total_duration,
        geometry=geometry,
        legs=[RouteLeg(steps=steps, distance=total_distance, duration=total_duration)],
        confidence=matches[0].confidence,
        tracepoints=tracepoints,
    )


def route_in_chunks(
    router: RemoteRouter,
    coordinates: Sequence[Coordinate],
    chunk_size: int,
    *,
    log: logging.Logger | None = None,
) -> RouteMatch:
    """Route ``coordinates`` through sequential chunk requests and stitch the answers.

    A failing chunk is logged and left out of the result.

    Raises:
        RemoteServiceError: If every chunk fails or the stitched geometry has
            fewer than two coordinates.
    """
    log = log or logger
    chunks = split_coordinates(coordinates, chunk_size)
    log.info("Splitting %d coordinates into %d route segments", len(coordinates), len(chunks))

    results: list[RouteMatch] = []
    failures: list[str] = []
    for index, chunk in enumerate(chunks, start=1):
        log.debug("Processing segment %d/%d with %d coordinates", index, len(chunks), len(chunk))
        try:
            results.append(router.route(chunk))
        except RemoteServiceError as exc:
            failures.append(str(exc))
            log.warning("Route segment %d/%d failed and was skipped: %s", index, len(chunks), exc)

    if not results:
        raise RemoteServiceError(f"No route segment could be processed ({len(chunks)} failed).")

    stitched = stitch_matches(results)
    if len(stitched.geometry) < 2:
        raise RemoteServiceError("Route segments returned too little geometry to build a route.")
    if failures:
        log.warning("Partial failure: %d/%d route segments skipped", len(failures), len(chunks))
    return stitched
