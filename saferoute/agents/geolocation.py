import logging
from typing import Callable

from saferoute import config
from saferoute.errors import PermissionDenied
from saferoute.models import Coordinate

log = logging.getLogger(__name__)

FALLBACK = Coordinate(latitude=config.FALLBACK_LOCATION[0], longitude=config.FALLBACK_LOCATION[1])


def resolve_origin(read_location: Callable[[], Coordinate], fallback: Coordinate = FALLBACK) -> Coordinate:
    """One permissioned location read; a refusal falls back to a fixed point."""
    try:
        return read_location()
    except PermissionDenied as exc:
        log.warning("Location unavailable (%s); using fallback %s", exc, fallback.as_param())
        return fallback


def fixed_location(coord):
    """Location reader for a position the client already sent; None means no permission."""
    def read() -> Coordinate:
        if coord is None:
            raise PermissionDenied("Location permission is required.")
        return coord
    return read
