"""
SafeRoute – encoded polyline codec
Decodes the directions provider's `overview_polyline.points` wire format.
"""

from typing import Iterable, List, Tuple

import polyline

from saferoute.errors import DecodeError
from saferoute.models import Coordinate

PRECISION = 1e5
_OFFSET = 63
_CHUNK_MASK = 0x1F
_CONTINUE = 0x20


def _read_value(encoded: str, index: int) -> Tuple[int, int]:
    """Read one zig-zag varint starting at *index*; return (value, next index)."""
    result = shift = 0
    while True:
        if index >= len(encoded):
            raise DecodeError(f"polyline ends mid-value at offset {index}")
        b = ord(encoded[index]) - _OFFSET
        if not 0 <= b <= 0x3F:
            raise DecodeError(f"invalid polyline character {encoded[index]!r} at offset {index}")
        index += 1
        result |= (b & _CHUNK_MASK) << shift
        shift += 5
        if b < _CONTINUE:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(encoded: str) -> List[Coordinate]:
    """Decode an encoded polyline into a list of coordinates (1e5 precision)."""
    if not encoded:
        raise DecodeError("empty polyline")

    coords = []
    index = lat = lng = 0
    while index < len(encoded):
        dlat, index = _read_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError("polyline ends between latitude and longitude")
        dlng, index = _read_value(encoded, index)
        lat += dlat
        lng += dlng

        latitude, longitude = lat / PRECISION, lng / PRECISION
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise DecodeError(f"decoded point out of range: ({latitude}, {longitude})")
        coords.append(Coordinate(latitude=latitude, longitude=longitude))
    return coords


def encode_polyline(coords: Iterable[Coordinate]) -> str:
    """Inverse of `decode_polyline`, used when routes are handed back to clients."""
    return polyline.encode([(c.latitude, c.longitude) for c in coords], 5)
