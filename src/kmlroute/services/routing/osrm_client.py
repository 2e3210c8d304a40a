"""HTTP client for interacting with OSRM route and match services."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from ...config import settings
from ...exceptions import RemoteServiceError
from .models import Coordinate, RouteLeg, RouteMatch, RouteStep

logger = logging.getLogger(__name__)

ROUTE_PARAMS = {
    "steps": "true",
    "geometries": "geojson",
    "overview": "full",
    "continue_straight": "false",
}
MATCH_PARAMS = {
    "steps": "true",
    "geometries": "geojson",
    "overview": "full",
    "annotations": "true",
    "gaps": "ignore",
}

_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd"}


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self.transport,
        )

    def _get(self, service: str, coordinates: Sequence[Coordinate], params: dict[str, str]) -> dict:
        """GET one OSRM service call and return the decoded body of an ``Ok`` answer."""
        coordinate_str = ";".join(f"{lng},{lat}" for lng, lat in coordinates)
        url = f"{self.base_url}/{service}/v1/{self.profile}/{coordinate_str}"
        logger.debug("OSRM %s URL length: %d, coordinates: %d", service, len(url), len(coordinates))

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    break
                except httpx.HTTPStatusError as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        status_code = exc.response.status_code
                        logger.error("OSRM %s error %d: %s", service, status_code, exc.response.text[:500])
                        raise RemoteServiceError(
                            f"Failed to reach the OSRM {service} service. Status: {status_code}",
                            status_code=status_code,
                        ) from exc
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.HTTPError as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RemoteServiceError(
                            f"Failed to connect to OSRM service at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        "OSRM network error, retrying in %.1fs (attempt %d/%d): %s",
                        wait_time,
                        attempt,
                        self.max_retries,
                        exc,
                    )
                    time.sleep(wait_time)
                except ValueError as exc:
                    raise RemoteServiceError(f"OSRM {service} returned an invalid JSON body.") from exc
        finally:
            client.close()

        code = data.get("code")
        if code != "Ok":
            message = data.get("message", "Unknown error")
            logger.error("OSRM %s response: %s", service, data)
            raise RemoteServiceError(
                f"OSRM {service} could not process the route: {code} - {message}",
                code=code,
            )
        return data

    def route(self, coordinates: Sequence[Coordinate]) -> RouteMatch:
        """Build a continuous driving route through ``coordinates``."""
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")
        data = self._get("route", coordinates, ROUTE_PARAMS)
        routes = data.get("routes") or []
        if not routes:
            raise RemoteServiceError("OSRM route returned Ok but no route was found.", code="Ok")
        route = routes[0]
        return _parse_route_match(route, confidence=1.0)

    def match(self, coordinates: Sequence[Coordinate]) -> RouteMatch:
        """Map-match ``coordinates`` as a trace onto the road network."""
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM match.")
        data = self._get("match", coordinates, MATCH_PARAMS)
        matchings = data.get("matchings") or []
        if not matchings:
            raise RemoteServiceError("OSRM match returned Ok but no matching was found.", code="Ok")
        if len(matchings) > 1:
            logger.warning("OSRM match split the trace into %d matchings; using the first", len(matchings))
        matching = matchings[0]
        return _parse_route_match(
            matching,
            confidence=float(matching.get("confidence", 1.0)),
            tracepoints=data.get("tracepoints") or [],
        )


def describe_maneuver(maneuver: dict[str, Any], name: str = "") -> str:
    """Build a readable instruction for an OSRM maneuver without one."""
    kind = maneuver.get("type", "")
    modifier = maneuver.get("modifier")
    onto = f" onto {name}" if name else ""

    if kind == "depart":
        heading = f"Head {modifier}" if modifier else "Depart"
        return f"{heading}{' on ' + name if name else ''}"
    if kind == "arrive":
        return "Arrive at your destination"
    if kind in ("roundabout", "rotary"):
        exit_number = maneuver.get("exit")
        if exit_number:
            ordinal = _ORDINALS.get(exit_number, f"{exit_number}th")
            return f"Enter the roundabout and take the {ordinal} exit{onto}"
        return f"Enter the roundabout{onto}"
    if kind in ("new name", "continue"):
        direction = f" {modifier}" if modifier and modifier != "straight" else ""
        return f"Continue{direction}{onto}"
    if kind == "turn" and modifier:
        if modifier == "uturn":
            return f"Make a U-turn{onto}"
        if modifier == "straight":
            return f"Go straight{onto}"
        return f"Turn {modifier}{onto}"

    label = kind.capitalize() if kind else "Continue"
    direction = f" {modifier}" if modifier else ""
    return f"{label}{direction}{onto}"


def _parse_step(step: dict[str, Any]) -> RouteStep:
    maneuver = step.get("maneuver") or {}
    name = step.get("name") or ""
    location = maneuver.get("location")
    return RouteStep(
        distance=float(step.get("distance", 0.0)),
        duration=float(step.get("duration", 0.0)),
        name=name,
        instruction=maneuver.get("instruction") or describe_maneuver(maneuver, name),
        maneuver_type=maneuver.get("type", ""),
        modifier=maneuver.get("modifier"),
        location=(float(location[0]), float(location[1])) if location else None,
    )


def _parse_route_match(payload: dict[str, Any], *, confidence: float, tracepoints: list | None = None) -> RouteMatch:
    geometry = payload.get("geometry") or {}
    legs = [
        RouteLeg(
            steps=[_parse_step(step) for step in leg.get("steps") or []],
            distance=float(leg.get("distance", 0.0)),
            duration=float(leg.get("duration", 0.0)),
            summary=leg.get("summary", ""),
        )
        for leg in payload.get("legs") or []
    ]
    return RouteMatch(
        distance=float(payload.get("distance", 0.0)),
        duration=float(payload.get("duration", 0.0)),
        geometry=[(float(lng), float(lat)) for lng, lat, *_ in geometry.get("coordinates", [])],
        legs=legs,
        confidence=confidence,
        tracepoints=list(tracepoints or []),
    )


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
