import httpx
import pytest

from conftest import json_client, mock_client, provider_route
from saferoute.agents import directions
from saferoute.agents.directions import compute_routes, format_duration, safest_route_index, select_route
from saferoute.errors import DecodeError, IndexOutOfRange, RouteFetchError
from saferoute.models import Coordinate, HazardReport, TravelMode

ORIGIN = Coordinate(latitude=52.9545, longitude=-1.1587)
HAZARDS = [HazardReport(latitude=52.9545, longitude=-1.1587, severity=3, description="Assault reported")]

CITY_ROUTE  = [(52.9545, -1.1587), (52.9600, -1.1500)]
RIVER_ROUTE = [(52.9400, -1.1700), (52.9500, -1.1800)]
PARK_ROUTE  = [(52.9300, -1.1900), (52.9350, -1.1950)]


@pytest.mark.parametrize("seconds, text", [
    (0, "0 mins"), (59, "0 mins"), (90, "1 mins"), (3599, "59 mins"),
    (3600, "1 hr 0 min"), (3661, "1 hr 1 min"), (7200, "2 hr 0 min"), (9000, "2 hr 30 min"),
])
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text


def test_routes_are_annotated_in_provider_order():
    payload = {"status": "OK", "routes": [
        provider_route(CITY_ROUTE, durations=(1800, 1861), summary="A52"),
        provider_route(RIVER_ROUTE, durations=(90,)),
        provider_route(PARK_ROUTE, durations=(0,)),
    ]}
    routes = compute_routes(ORIGIN, "Nottingham Station", TravelMode.WALKING, HAZARDS,
                            client=json_client(payload))

    assert [r.risk_score for r in routes] == [3, 0, 0]
    assert [r.color for r in routes] == ["red", "green", "orange"]
    assert [r.duration for r in routes] == ["1 hr 1 min", "1 mins", "0 mins"]
    assert routes[0].duration_seconds == 3661
    assert routes[0].summary == "A52"
    assert routes[1].coordinates[0].latitude == pytest.approx(52.94)


def test_palette_cycles_when_no_route_is_high_risk():
    payload = {"status": "OK", "routes": [provider_route(RIVER_ROUTE)] * 6}
    routes = compute_routes(ORIGIN, "x", "walking", [], client=json_client(payload))
    assert [r.color for r in routes] == ["blue", "green", "orange", "purple", "teal", "blue"]


@pytest.mark.parametrize("bad", [
    provider_route(RIVER_ROUTE, durations=(-60,)),
    {"overview_polyline": {"points": 42}, "legs": []},
])
def test_invalid_provider_route_is_a_fetch_error(bad):
    payload = {"status": "OK", "routes": [bad]}
    with pytest.raises(RouteFetchError):
        compute_routes(ORIGIN, "x", "walking", [], client=json_client(payload))


def test_missing_summary_becomes_empty():
    raw = provider_route(RIVER_ROUTE)
    raw["summary"] = None
    payload = {"status": "OK", "routes": [raw]}
    assert compute_routes(ORIGIN, "x", "walking", [], client=json_client(payload))[0].summary == ""


def test_request_parameters():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"status": "OK", "routes": [provider_route(RIVER_ROUTE)]})

    compute_routes(ORIGIN, "  Old Market Square ", TravelMode.CYCLING, [], client=mock_client(handler))
    assert seen["origin"] == "52.9545,-1.1587"
    assert seen["destination"] == "Old Market Square"
    assert seen["alternatives"] == "true"
    assert seen["mode"] == "bicycling"


def test_non_ok_status_raises_with_provider_status():
    with pytest.raises(RouteFetchError) as info:
        compute_routes(ORIGIN, "Nowhere", "walking", HAZARDS,
                       client=json_client({"status": "ZERO_RESULTS", "routes": []}))
    assert info.value.status == "ZERO_RESULTS"


def test_http_error_raises():
    with pytest.raises(RouteFetchError) as info:
        compute_routes(ORIGIN, "x", "driving", [], client=json_client({}, status_code=503))
    assert info.value.status == "503"


def test_network_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RouteFetchError):
        compute_routes(ORIGIN, "x", "driving", [], client=mock_client(handler))


def test_malformed_polyline_fails_whole_search():
    bad = {"overview_polyline": {"points": "_p~i"}, "legs": [{"duration": {"value": 60}}]}
    payload = {"status": "OK", "routes": [provider_route(RIVER_ROUTE), bad]}
    with pytest.raises(DecodeError):
        compute_routes(ORIGIN, "x", "walking", [], client=json_client(payload))


def test_blank_destination_rejected_before_fetch(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("provider should not be called")

    monkeypatch.setattr(directions, "fetch_directions", fail)
    with pytest.raises(ValueError):
        compute_routes(ORIGIN, "   ", "walking", [])


def test_select_route():
    payload = {"status": "OK", "routes": [provider_route(CITY_ROUTE), provider_route(RIVER_ROUTE)]}
    routes = compute_routes(ORIGIN, "x", "walking", HAZARDS, client=json_client(payload))

    assert select_route(routes, 1) is routes[1]
    for index in (-1, 2):
        with pytest.raises(IndexOutOfRange):
            select_route(routes, index)
    with pytest.raises(IndexOutOfRange):
        select_route([], 0)


def test_safest_route_index():
    payload = {"status": "OK", "routes": [
        provider_route(CITY_ROUTE, durations=(60,)),
        provider_route(RIVER_ROUTE, durations=(900,)),
        provider_route(PARK_ROUTE, durations=(600,)),
    ]}
    routes = compute_routes(ORIGIN, "x", "walking", HAZARDS, client=json_client(payload))
    assert safest_route_index(routes) == 2
    assert safest_route_index([]) is None
