"""
Hazard report normalisation and the merged, owned hazard collection.

Records arrive from two places: the live `danger_zones` feed (full snapshot
on every change) and the community-report archive. Both shapes are loose,
so everything goes through `parse_hazard` before it reaches the scorer.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from saferoute.errors import HazardParseError
from saferoute.models import HazardReport

log = logging.getLogger(__name__)

SEVERITY_LEVELS = {"low": 1, "medium": 2, "high": 3}
ARCHIVE_DEFAULT_SEVERITY = 1
ARCHIVE_DEFAULT_DESCRIPTION = "Community report"


def parse_severity(raw: Union[str, int, float, None]) -> int:
    """Map `low|medium|high` to 1/2/3; whole positive numbers pass through."""
    if isinstance(raw, bool) or raw is None:
        raise HazardParseError(f"unusable severity {raw!r}")
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in SEVERITY_LEVELS:
            return SEVERITY_LEVELS[text]
        try:
            raw = float(text)
        except ValueError:
            raise HazardParseError(f"unknown severity {raw!r}") from None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise HazardParseError(f"unusable severity {raw!r}") from None
    if not math.isfinite(value) or value != int(value) or value < 1:
        raise HazardParseError(f"severity must be a whole number >= 1, got {raw!r}")
    return int(value)


def _coordinate(record: Mapping, key: str) -> float:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        raise HazardParseError(f"hazard record missing {key}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HazardParseError(f"hazard {key} is not numeric: {value!r}") from None


def parse_hazard(record: Mapping, source: str = "live") -> HazardReport:
    if source == "archive":
        severity = record.get("severity")
        severity = ARCHIVE_DEFAULT_SEVERITY if severity is None else parse_severity(severity)
        description = record.get("description") or record.get("message") or ARCHIVE_DEFAULT_DESCRIPTION
    else:
        severity = parse_severity(record.get("severity"))
        description = record.get("description") or ""

    lat, lng = _coordinate(record, "latitude"), _coordinate(record, "longitude")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise HazardParseError(f"hazard coordinate out of range: ({lat}, {lng})")

    timestamp = record.get("timestamp")
    return HazardReport(
        latitude=lat,
        longitude=lng,
        severity=severity,
        description=str(description),
        timestamp=int(timestamp) if timestamp is not None else None,
        source=source,
    )


def dedup_key(h: HazardReport) -> Tuple[float, float, Union[int, str]]:
    tag = h.timestamp if h.timestamp is not None else h.description
    return round(h.latitude, 5), round(h.longitude, 5), tag


class HazardStore:
    """Hazards for one session: the latest live snapshot plus archive records."""

    def __init__(self):
        self._live: List[HazardReport] = []
        self._archive: List[HazardReport] = []

    def replace_live(self, records: Iterable[Mapping]) -> None:
        self._live = [parse_hazard(r, "live") for r in records]
        log.info("Live hazards replaced (%d records)", len(self._live))

    def add_archive(self, records: Iterable[Mapping]) -> None:
        added = [parse_hazard(r, "archive") for r in records]
        self._archive.extend(added)
        log.info("Archive hazards added (%d records)", len(added))

    def reports(self) -> List[HazardReport]:
        merged: Dict[tuple, HazardReport] = {}
        for h in self._live + self._archive:
            key = dedup_key(h)
            kept = merged.get(key)
            if kept is None or h.severity > kept.severity:
                merged[key] = h
        return list(merged.values())

    def __len__(self) -> int:
        return len(self.reports())
