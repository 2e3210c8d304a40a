import httpx
import pytest

from kmlroute.exceptions import RemoteServiceError
from kmlroute.services.routing.osrm_client import OSRMClient, describe_maneuver

COORDS = [(13.388860, 52.517037), (13.397634, 52.529407), (13.428555, 52.523219)]


def _route_payload() -> dict:
    return {
        "code": "Ok",
        "routes": [
            {
                "distance": 1520.4,
                "duration": 240.2,
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in COORDS]},
                "legs": [
                    {
                        "distance": 1520.4,
                        "duration": 240.2,
                        "summary": "Unter den Linden",
                        "steps": [
                            {
                                "distance": 900.0,
                                "duration": 120.0,
                                "name": "Unter den Linden",
                                "maneuver": {"type": "depart", "modifier": "north", "location": list(COORDS[0])},
                            },
                            {
                                "distance": 620.4,
                                "duration": 120.2,
                                "name": "",
                                "maneuver": {"type": "arrive", "location": list(COORDS[-1])},
                            },
                        ],
                    }
                ],
            }
        ],
    }


def _client(handler, **kwargs) -> OSRMClient:
    return OSRMClient(
        base_url="http://osrm.test",
        profile="driving",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_route_parses_geometry_and_steps():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_route_payload())

    result = _client(handler).route(COORDS)

    assert seen[0].url.path.startswith("/route/v1/driving/")
    assert seen[0].url.params["steps"] == "true"
    assert seen[0].url.params["geometries"] == "geojson"
    assert result.distance == pytest.approx(1520.4)
    assert result.geometry == COORDS
    assert result.confidence == 1.0
    assert [step.instruction for step in result.steps] == [
        "Head north on Unter den Linden",
        "Arrive at your destination",
    ]
    assert result.geojson()["type"] == "LineString"


def test_match_uses_first_matching():
    payload = {
        "code": "Ok",
        "matchings": [
            {
                "distance": 100.0,
                "duration": 20.0,
                "confidence": 0.75,
                "geometry": {"coordinates": [list(c) for c in COORDS]},
                "legs": [],
            }
        ],
        "tracepoints": [None, {"location": list(COORDS[1])}, None],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.startswith("/match/v1/driving/")
        assert request.url.params["gaps"] == "ignore"
        return httpx.Response(200, json=payload)

    result = _client(handler).match(COORDS)

    assert result.confidence == pytest.approx(0.75)
    assert len(result.tracepoints) == 3
    assert result.steps == []


def test_http_error_raises_remote_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(RemoteServiceError) as excinfo:
        _client(handler).route(COORDS)

    assert excinfo.value.status_code == 500


def test_non_ok_code_raises_remote_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"})

    with pytest.raises(RemoteServiceError, match="NoRoute") as excinfo:
        _client(handler).route(COORDS)

    assert excinfo.value.code == "NoRoute"


def test_network_error_raises_remote_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteServiceError, match="Failed to connect"):
        _client(handler).match(COORDS)


def test_retries_transient_failures_when_configured():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json=_route_payload())

    result = _client(handler, max_retries=1).route(COORDS)

    assert len(calls) == 2
    assert result.distance == pytest.approx(1520.4)


def test_route_requires_two_coordinates():
    with pytest.raises(ValueError):
        _client(lambda request: httpx.Response(200)).route(COORDS[:1])


@pytest.mark.parametrize(
    ("maneuver", "name", "expected"),
    [
        ({"type": "depart"}, "", "Depart"),
        ({"type": "turn", "modifier": "left"}, "Main Street", "Turn left onto Main Street"),
        ({"type": "turn", "modifier": "uturn"}, "", "Make a U-turn"),
        ({"type": "roundabout", "exit": 2}, "Ring Road", "Enter the roundabout and take the 2nd exit onto Ring Road"),
        ({"type": "new name", "modifier": "straight"}, "High Street", "Continue onto High Street"),
        ({"type": "merge", "modifier": "right"}, "A1", "Merge right onto A1"),
    ],
)
def test_describe_maneuver(maneuver, name, expected):
    assert describe_maneuver(maneuver, name) == expected


def test_default_client_does_not_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, text="busy")

    client = OSRMClient(base_url="http://osrm.test", transport=httpx.MockTransport(handler))
    with pytest.raises(RemoteServiceError):
        client.route(COORDS)

    assert client.max_retries == 0
    assert len(calls) == 1
