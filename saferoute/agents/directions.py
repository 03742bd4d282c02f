"""
SafeRoute – directions agent
Fetches route alternatives, decodes them and annotates each with a risk
score, a display colour and a readable duration.
"""

from typing import Iterable, List, Optional, Sequence, Union
import logging

import httpx
from pydantic import ValidationError

from saferoute import config
from saferoute.agents.codec import decode_polyline
from saferoute.agents.risk import Aggregation, risk_level, score_route
from saferoute.errors import DecodeError, IndexOutOfRange, RouteFetchError
from saferoute.models import Coordinate, HazardReport, RiskLevel, Route, TravelMode

log = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

PROVIDER_MODES = {
    TravelMode.WALKING: "walking",
    TravelMode.DRIVING: "driving",
    TravelMode.CYCLING: "bicycling",
}

PALETTE      = ["blue", "green", "orange", "purple", "teal"]
HAZARD_COLOR = "red"


def format_duration(seconds: int) -> str:
    """`"M mins"` under an hour, else `"H hr M min"` whatever the hour count."""
    minutes = int(seconds) // 60
    hours = minutes // 60
    if not hours:
        return f"{minutes} mins"
    return f"{hours} hr {minutes % 60} min"


def route_color(index: int, level: RiskLevel) -> str:
    if level is RiskLevel.HIGH:
        return HAZARD_COLOR
    return PALETTE[index % len(PALETTE)]


def fetch_directions(
    origin: Coordinate,
    destination_text: str,
    mode: TravelMode,
    client: Optional[httpx.Client] = None,
) -> list:
    """Raw provider route alternatives, provider order. Raises RouteFetchError."""
    params = {
        "origin": origin.as_param(),
        "destination": destination_text,
        "alternatives": "true",
        "mode": PROVIDER_MODES[TravelMode(mode)],
        "key": config.GOOGLE_MAPS_API_KEY,
    }
    http = client or httpx.Client(timeout=config.HTTP_TIMEOUT)
    try:
        resp = http.get(DIRECTIONS_URL, params=params)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as exc:
        code = exc.response.status_code
        raise RouteFetchError(f"Directions API returned HTTP {code}", status=str(code)) from exc
    except httpx.HTTPError as exc:
        raise RouteFetchError(f"Failed to fetch route: {exc}") from exc
    except ValueError as exc:
        raise RouteFetchError("Directions API returned invalid JSON") from exc
    finally:
        if client is None:
            http.close()

    if not isinstance(data, dict):
        raise RouteFetchError("Unexpected Directions API payload structure")
    status = data.get("status")
    if status != "OK":
        log.warning("Directions status %s for %r", status, destination_text)
        raise RouteFetchError(
            data.get("error_message") or f"Directions API status {status}", status=status
        )
    return data.get("routes", [])


def build_route(
    index: int,
    raw: dict,
    hazards: Sequence[HazardReport],
    policy: Aggregation = Aggregation.MAX,
) -> Route:
    try:
        encoded = raw["overview_polyline"]["points"]
        if not isinstance(encoded, str):
            raise TypeError("overview_polyline.points is not a string")
        seconds = sum(int(leg["duration"]["value"]) for leg in raw.get("legs", []))
    except (KeyError, TypeError, ValueError) as exc:
        raise RouteFetchError(f"Route {index} is missing geometry or durations") from exc

    coords = decode_polyline(encoded)
    if len(coords) < 2:
        raise DecodeError(f"route {index} has fewer than two points")

    score = score_route(coords, hazards, policy)
    level = risk_level(score)
    try:
        return Route(
            coordinates=coords,
            risk_score=score,
            risk_level=level,
            color=route_color(index, level),
            duration_seconds=seconds,
            duration=format_duration(seconds),
            summary=str(raw.get("summary") or ""),
        )
    except ValidationError as exc:
        raise RouteFetchError(f"Route {index} failed validation: {exc}") from exc


def compute_routes(
    origin: Coordinate,
    destination_text: str,
    mode: Union[TravelMode, str],
    hazards: Iterable[HazardReport],
    policy: Union[Aggregation, str] = config.RISK_POLICY,
    client: Optional[httpx.Client] = None,
) -> List[Route]:
    """
    Risk-annotated alternatives in provider order. Nothing is re-sorted;
    picking the safest is left to the caller.
    """
    if not destination_text or not destination_text.strip():
        raise ValueError("destination is required")

    hazards = list(hazards)
    policy = Aggregation(policy)
    raw_routes = fetch_directions(origin, destination_text.strip(), TravelMode(mode), client=client)

    routes = [build_route(i, r, hazards, policy) for i, r in enumerate(raw_routes)]
    log.info(
        "%d route(s) to %r, risk scores %s",
        len(routes), destination_text, [r.risk_score for r in routes],
    )
    return routes


def select_route(routes: Sequence[Route], index: int) -> Route:
    if not 0 <= index < len(routes):
        raise IndexOutOfRange(f"route index {index} out of range (0..{len(routes) - 1})")
    return routes[index]


def safest_route_index(routes: Sequence[Route]) -> Optional[int]:
    """Lowest risk, then shortest duration; ties keep provider order."""
    if not routes:
        return None
    return min(range(len(routes)), key=lambda i: (routes[i].risk_score, routes[i].duration_seconds))
