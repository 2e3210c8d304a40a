import pytest

from kmlroute.exceptions import RemoteServiceError
from kmlroute.services.routing.models import RouteLeg, RouteMatch, RouteStep


def fake_match(coordinates, confidence: float = 1.0) -> RouteMatch:
    segments = len(coordinates) - 1
    steps = [
        RouteStep(
            distance=100.0 * segments,
            duration=60.0 * segments,
            name="Main Street",
            instruction="Head north on Main Street",
            maneuver_type="depart",
            modifier="north",
            location=tuple(coordinates[0]),
        )
    ]
    return RouteMatch(
        distance=100.0 * segments,
        duration=60.0 * segments,
        geometry=[tuple(coord) for coord in coordinates],
        legs=[RouteLeg(steps=steps, distance=100.0 * segments, duration=60.0 * segments)],
        confidence=confidence,
    )


class FakeRouter:
    """In-memory router echoing the requested coordinates as geometry."""

    def __init__(self, fail_on=(), fail_all: bool = False):
        self.fail_on = set(fail_on)
        self.fail_all = fail_all
        self.route_calls = []
        self.match_calls = []

    def _maybe_fail(self, call_number: int) -> None:
        if self.fail_all or call_number in self.fail_on:
            raise RemoteServiceError(f"chunk {call_number} failed", status_code=500)

    def route(self, coordinates):
        self.route_calls.append(list(coordinates))
        self._maybe_fail(len(self.route_calls))
        return fake_match(coordinates)

    def match(self, coordinates):
        self.match_calls.append(list(coordinates))
        self._maybe_fail(len(self.match_calls))
        return fake_match(coordinates, confidence=0.9)


@pytest.fixture
def fake_router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def router_factory():
    return FakeRouter
