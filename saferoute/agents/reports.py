"""
Community reports: postcode lookup, submission and the on-disk archive the
route scorer reads as its second hazard source.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional
import json
import logging
import threading
import time
import uuid

import httpx

from saferoute import config
from saferoute.agents.hazard import parse_severity
from saferoute.errors import HazardParseError, ReportError
from saferoute.models import CommunityReport, Coordinate

log = logging.getLogger(__name__)

POSTCODE_URL = "https://api.getthedata.com/postcode/{postcode}"

# one lock for every archive instance; several may share a file
_write_lock = threading.Lock()


class ReportArchive:
    """Append-only JSON file of community reports, oldest first."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or config.DATA_DIR / "reports" / "community_reports.json"

    def fetch(self) -> List[dict]:
        if not self.path.exists():
            return []
        return json.loads(self.path.read_text())

    def append(self, report: CommunityReport) -> None:
        with _write_lock:
            rows = self.fetch()
            rows.append(report.model_dump())
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(json.dumps(rows, indent=2))
            tmp.replace(self.path)

    def reports(self) -> List[CommunityReport]:
        rows = sorted(self.fetch(), key=lambda r: r.get("timestamp", 0))
        return [CommunityReport(**r) for r in rows]


def lookup_postcode(postcode: str, client: Optional[httpx.Client] = None) -> Coordinate:
    formatted = "".join(postcode.split())
    url = POSTCODE_URL.format(postcode=formatted)
    http = client or httpx.Client(timeout=config.HTTP_TIMEOUT)
    try:
        resp = http.get(url)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise ReportError(f"Failed to fetch coordinates for {postcode}: {exc}") from exc
    finally:
        if client is None:
            http.close()

    if data.get("status") == "match" and data.get("data"):
        try:
            return Coordinate(
                latitude=float(data["data"]["latitude"]),
                longitude=float(data["data"]["longitude"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ReportError(f"Unusable postcode data for {postcode}") from exc
    raise ReportError(f"Invalid postcode: {postcode}")


def submit_report(
    postcode: str,
    message: str,
    user: str = "Anonymous",
    severity: str = "Low",
    archive: Optional[ReportArchive] = None,
    client: Optional[httpx.Client] = None,
) -> CommunityReport:
    """Geocode the postcode and store the report; it scores routes from then on."""
    if not postcode.strip() or not message.strip():
        raise ReportError("Postcode and message required.")
    try:
        parse_severity(severity)
    except HazardParseError as exc:
        raise ReportError(str(exc)) from exc

    coords = lookup_postcode(postcode, client=client)
    report = CommunityReport(
        id=uuid.uuid4().hex,
        postcode=postcode.strip(),
        message=message.strip(),
        user=user.strip() or "Anonymous",
        severity=severity,
        latitude=coords.latitude,
        longitude=coords.longitude,
        timestamp=int(time.time() * 1000),
    )
    (archive or ReportArchive()).append(report)
    log.info("Report %s stored for %s", report.id, report.postcode)
    return report


def filter_reports(
    reports: Iterable[CommunityReport],
    search: str = "",
    on_date: Optional[date] = None,
) -> List[CommunityReport]:
    needle = search.lower()
    out = []
    for r in reports:
        if needle and needle not in r.postcode.lower():
            continue
        if on_date and datetime.fromtimestamp(r.timestamp / 1000).date() != on_date:
            continue
        out.append(r)
    return out
