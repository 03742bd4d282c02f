"""
SafeRoute domain values shared by the agents, the API and the map UI.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TravelMode(str, Enum):
    WALKING = "walking"
    DRIVING = "driving"
    CYCLING = "cycling"


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def as_param(self) -> str:
        """`lat,lng` form used in provider query strings and map links."""
        return f"{self.latitude},{self.longitude}"


class HazardReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    severity: int = Field(ge=1)
    description: str = ""
    timestamp: Optional[int] = None          # ms since epoch, archive records only
    source: Literal["live", "archive"] = "live"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: List[Coordinate] = Field(min_length=2)
    risk_score: int = Field(ge=0)
    risk_level: RiskLevel
    color: str
    duration_seconds: int = Field(ge=0)
    duration: str
    summary: str = ""

    @property
    def destination(self) -> Coordinate:
        return self.coordinates[-1]


class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: Coordinate
    destination_text: str = Field(min_length=1)
    travel_mode: TravelMode = TravelMode.WALKING


class CommunityReport(BaseModel):
    id: str
    postcode: str
    message: str
    user: str = "Anonymous"
    severity: str = "Low"
    latitude: float
    longitude: float
    timestamp: int


class EmergencyContact(BaseModel):
    name: str
    phone: str
