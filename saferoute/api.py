from datetime import date
from typing import List, Optional
import logging

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from saferoute.agents import alert, assistant, directions, ingest
from saferoute.agents.codec import encode_polyline
from saferoute.agents.geolocation import fixed_location, resolve_origin
from saferoute.agents.navigation import LinkVariant, build_external_navigation_link, build_navigation_links
from saferoute.agents.reports import ReportArchive, filter_reports, submit_report
from saferoute.agents.session import SearchSession
from saferoute.errors import AlertError, DecodeError, HazardParseError, IndexOutOfRange, ReportError, RouteFetchError
from saferoute.models import Coordinate, EmergencyContact, RiskLevel, Route, SearchRequest, TravelMode
from saferoute import kpi

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(title="SafeRoute API")

session = SearchSession()
archive = ReportArchive()


class RouteSearchBody(BaseModel):
    origin: Optional[Coordinate] = None       # omitted when location permission was refused
    destination: str = Field(min_length=1)
    mode: TravelMode = TravelMode.WALKING


class ReportBody(BaseModel):
    postcode: str
    message: str
    user: str = "Anonymous"
    severity: str = "Low"


class AlertBody(BaseModel):
    contacts: List[EmergencyContact]
    transcript: Optional[str] = None
    trigger_words: Optional[List[str]] = None
    sender_name: str = ""
    location: Optional[Coordinate] = None


class AssistantBody(BaseModel):
    question: str


def _route_json(index: int, route: Route) -> dict:
    return {
        "index": index,
        **route.model_dump(mode="json", exclude={"coordinates"}),
        "polyline": encode_polyline(route.coordinates),
        "coordinates": [[c.latitude, c.longitude] for c in route.coordinates],
    }


def _hazard_store():
    try:
        return ingest.load_store(archive)
    except HazardParseError as exc:
        log.error("Hazard data rejected: %s", exc)
        raise HTTPException(500, f"Hazard data rejected: {exc}")


@app.get("/api/hazards")
def latest_hazards():
    hazards = _hazard_store().reports()
    if not hazards and not ingest.latest_snapshot():
        raise HTTPException(503, "No hazard snapshots yet")
    return [h.model_dump() for h in hazards]


@app.post("/api/routes")
def search_routes(body: RouteSearchBody):
    origin = resolve_origin(fixed_location(body.origin))
    request = SearchRequest(origin=origin, destination_text=body.destination, travel_mode=body.mode)
    hazards = _hazard_store().reports()

    token = session.begin_search()
    try:
        routes = directions.compute_routes(origin, body.destination, body.mode, hazards)
    except ValueError as exc:
        session.fail(token)
        raise HTTPException(400, str(exc))
    except RouteFetchError as exc:
        session.fail(token)
        kpi.bump_failure()
        log.warning("Route fetch failed (status %s): %s", exc.status, exc)
        raise HTTPException(502, {"message": "Failed to fetch route.", "status": exc.status})
    except DecodeError as exc:
        session.fail(token)
        kpi.bump_failure()
        raise HTTPException(502, {"message": f"Malformed route geometry: {exc}", "status": None})

    if not session.apply(token, routes, request):
        raise HTTPException(409, "Superseded by a newer search")

    kpi.bump_search(bool(routes) and all(r.risk_level is RiskLevel.HIGH for r in routes))
    return {
        "generation": token,
        "origin": origin.model_dump(),
        "routes": [_route_json(i, r) for i, r in enumerate(routes)],
        "safest": directions.safest_route_index(routes),
    }


@app.get("/api/routes/{index}")
def select_route(index: int):
    try:
        route = session.select(index)
    except IndexOutOfRange as exc:
        raise HTTPException(404, str(exc))
    return _route_json(index, route)


@app.get("/api/routes/{index}/navigation")
def navigation_link(index: int, platform: str = "android", variant: Optional[LinkVariant] = None):
    try:
        route, request = session.select_with_request(index)
    except IndexOutOfRange as exc:
        raise HTTPException(404, str(exc))
    origin, mode = request.origin, request.travel_mode
    try:
        if variant is None:
            links = build_navigation_links(platform, origin, route.destination, mode)
        else:
            links = [build_external_navigation_link(platform, origin, route.destination, mode, variant)]
    except ValueError as exc:
        raise HTTPException(400, str(exc))
    return {"links": links}


@app.get("/api/reports")
def list_reports(search: str = "", on_date: Optional[date] = Query(None, alias="date")):
    return [r.model_dump() for r in filter_reports(archive.reports(), search, on_date)]


@app.post("/api/reports", status_code=201)
def create_report(body: ReportBody):
    try:
        report = submit_report(body.postcode, body.message, body.user, body.severity, archive=archive)
    except ReportError as exc:
        raise HTTPException(400, str(exc))
    return report.model_dump()


@app.post("/api/alerts")
def send_alerts(body: AlertBody):
    if not body.contacts:
        raise HTTPException(400, "Missing contacts")
    if body.transcript is not None:
        word = alert.detect_trigger(body.transcript, body.trigger_words or alert.TRIGGER_WORDS)
        if word is None:
            return {"triggered": False, "results": []}
    else:
        word = None
    try:
        results = alert.notify_emergency_contacts(
            body.contacts, body.sender_name, location=body.location
        )
    except AlertError as exc:
        log.error("Alert failed: %s", exc)
        raise HTTPException(502, str(exc))
    return {"triggered": True, "trigger": word, "results": results}


@app.post("/api/assistant")
def ask_assistant(body: AssistantBody):
    try:
        return {"reply": assistant.ask(body.question)}
    except ValueError as exc:
        raise HTTPException(400, str(exc))


@app.get("/api/kpi")
def kpi_snapshot():
    return kpi.snapshot()
