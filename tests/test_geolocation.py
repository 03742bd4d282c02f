from saferoute.agents.geolocation import FALLBACK, fixed_location, resolve_origin
from saferoute.errors import PermissionDenied
from saferoute.models import Coordinate


def test_granted_location_is_used():
    here = Coordinate(latitude=51.5072, longitude=-0.1276)
    assert resolve_origin(fixed_location(here)) == here


def test_denied_permission_falls_back():
    assert resolve_origin(fixed_location(None)) == FALLBACK
    assert (FALLBACK.latitude, FALLBACK.longitude) == (52.9545, -1.1587)


def test_custom_fallback():
    def denied():
        raise PermissionDenied("no")

    elsewhere = Coordinate(latitude=0, longitude=0)
    assert resolve_origin(denied, fallback=elsewhere) == elsewhere
