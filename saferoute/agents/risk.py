from enum import Enum
from typing import Iterable, Sequence

from geopy.distance import great_circle

from saferoute import config
from saferoute.models import Coordinate, HazardReport, RiskLevel


class Aggregation(str, Enum):
    MAX = "max"    # worst hazard touching the route
    SUM = "sum"    # total severity of every hazard touching the route


def _distance_m(point: Coordinate, hazard: HazardReport) -> float:
    return great_circle(
        (point.latitude, point.longitude), (hazard.latitude, hazard.longitude)
    ).meters


def hazard_hits_route(
    route: Sequence[Coordinate],
    hazard: HazardReport,
    threshold_m: float = config.PROXIMITY_THRESHOLD_M,
) -> bool:
    """True once any route point lies within *threshold_m* of the hazard."""
    return any(_distance_m(p, hazard) < threshold_m for p in route)


def score_route(
    route: Sequence[Coordinate],
    hazards: Iterable[HazardReport],
    policy: Aggregation = Aggregation.MAX,
    threshold_m: float = config.PROXIMITY_THRESHOLD_M,
) -> int:
    """
    Risk score for one route. 0 means no hazard lies within range of any
    point; otherwise the max (or sum, per *policy*) of hitting severities.
    """
    policy = Aggregation(policy)
    hits = [h.severity for h in hazards if hazard_hits_route(route, h, threshold_m)]
    if not hits:
        return 0
    if policy is Aggregation.SUM:
        return sum(hits)
    return max(hits)


def risk_level(score: int) -> RiskLevel:
    if score <= 0:
        return RiskLevel.NONE
    if score == 1:
        return RiskLevel.LOW
    if score == 2:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH
