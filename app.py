import threading
from datetime import datetime

import streamlit as st
from streamlit_autorefresh import st_autorefresh
import httpx, pydeck as pdk
from streamlit_searchbox import st_searchbox

from saferoute import config, kpi
from saferoute.agents import directions, ingest
from saferoute.agents.geolocation import FALLBACK, fixed_location, resolve_origin
from saferoute.agents.navigation import build_navigation_links
from saferoute.agents.session import SearchSession
from saferoute.errors import DecodeError, HazardParseError, RouteFetchError
from saferoute.models import Coordinate, SearchRequest, TravelMode

# ── 0. Page config ───────────────────────────────────────────────
st.set_page_config(page_title="SafeRoute", layout="wide")

# ── 1. Env & constants ───────────────────────────────────────────
REFRESH_SECONDS = 300    # 5 minutes
PLACES_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"

if not config.GOOGLE_MAPS_API_KEY:
    st.error("GOOGLE_MAPS_API_KEY missing in .env")
    st.stop()

COLORS = {
    "blue":   [30, 90, 255, 255],
    "green":  [0, 180, 0, 255],
    "orange": [255, 140, 0, 255],
    "purple": [140, 60, 200, 255],
    "teal":   [0, 160, 160, 255],
    "red":    [220, 0, 0, 255],
}

# ── 2. Kick-off a live-feed snapshot in background ───────────────
def _ensure_ingest():
    if config.FIREBASE_DB_URL and "ingest_thread" not in st.session_state:
        t = threading.Thread(target=ingest.main, name="hazard_ingest", daemon=True)
        t.start()
        st.session_state.ingest_thread = t

_ensure_ingest()

# ── 3. Auto-refresh the hazards every 5 min ──────────────────────
st_autorefresh(interval=REFRESH_SECONDS*1000, key="data_refresh")

# ── 4. Per-screen state ──────────────────────────────────────────
if "search" not in st.session_state:
    st.session_state.search = SearchSession()
search: SearchSession = st.session_state.search

# ── 5. Destination searchbox ─────────────────────────────────────
def search_places(q: str):
    if len(q) < 3:
        return []
    params = {"input": q, "key": config.GOOGLE_MAPS_API_KEY}
    try:
        preds = httpx.get(PLACES_URL, params=params, timeout=4).json().get("predictions", [])
    except (httpx.HTTPError, ValueError):
        preds = []
    return [q] + [p["description"] for p in preds if p.get("description") != q]

# ── 6. Helper for map zoom ──────────────────────────────────────
def _view_state_for(coords: list) -> pdk.ViewState:
    if not coords:
        return pdk.ViewState(latitude=FALLBACK.latitude, longitude=FALLBACK.longitude, zoom=12)
    lats = [c.latitude for c in coords]
    lons = [c.longitude for c in coords]
    return pdk.ViewState(
        latitude=sum(lats)/len(lats),
        longitude=sum(lons)/len(lons),
        zoom=11 if max(lats)-min(lats) > 0.1 else 13
    )

# ── 7. Sidebar UI ────────────────────────────────────────────────
st.sidebar.title("SafeRoute")
share_location = st.sidebar.checkbox("Share my location", value=False)
my_lat = st.sidebar.number_input("Latitude", -90.0, 90.0, FALLBACK.latitude, format="%.5f",
                                 disabled=not share_location)
my_lon = st.sidebar.number_input("Longitude", -180.0, 180.0, FALLBACK.longitude, format="%.5f",
                                 disabled=not share_location)
mode = st.sidebar.radio("Travel mode", [m.value for m in TravelMode], horizontal=True)
platform = st.sidebar.radio("Open in", ["android", "ios"], horizontal=True)

dest_sel = st_searchbox(search_places, key="dest_sb", placeholder="Enter destination...")
run_btn  = st.sidebar.button("Search", disabled=not dest_sel)
st.sidebar.markdown("---")

# ── 8. Main title & hazard layer ───────────────────────────────
st.title("Safe Route Map")

try:
    hazards = ingest.load_store().reports()
except HazardParseError as exc:
    st.error(f"Hazard data rejected: {exc}")
    hazards = []

haz_layer = pdk.Layer(
    "ScatterplotLayer",
    [{"coords": [h.longitude, h.latitude], "severity": h.severity, "description": h.description,
      "c": [220, 0, 0, 180] if h.severity >= 3 else [255, 140, 0, 180]} for h in hazards],
    get_position="coords",
    get_fill_color="c",
    get_radius=60,
    pickable=True,
)

# ── 9. Route search ─────────────────────────────────────────────
if run_btn:
    coord = Coordinate(latitude=my_lat, longitude=my_lon) if share_location else None
    origin = resolve_origin(fixed_location(coord))
    if coord is None:
        st.warning("Location permission is required; showing routes from the default location.")

    token = search.begin_search()
    with st.spinner("Fetching routes..."):
        try:
            routes = directions.compute_routes(origin, dest_sel, mode, hazards)
        except (RouteFetchError, DecodeError) as exc:
            search.fail(token)
            kpi.bump_failure()
            st.error(f"Failed to fetch route. ({exc})")
        else:
            if search.apply(token, routes, SearchRequest(origin=origin, destination_text=dest_sel,
                                                          travel_mode=mode)):
                kpi.bump_search(bool(routes) and all(r.risk_level.value == "high" for r in routes))

# ── 10. Map drawing ─────────────────────────────────────────────
layers = [haz_layer]
if search.routes:
    cards = st.columns(len(search.routes))
    for i, (r, card) in enumerate(zip(search.routes, cards)):
        with card:
            st.markdown(f"**Route {i + 1}** ({r.color})")
            st.caption(f"Duration: {r.duration}  \nRisk Score: {r.risk_score}")
            if st.button("Select", key=f"select_{i}"):
                search.select(i)

    for i, r in enumerate(search.routes):
        layers.append(pdk.Layer(
            "PathLayer",
            data=[{"path": [[c.longitude, c.latitude] for c in r.coordinates]}],
            get_width=8 if i == search.selected_index else 4,
            width_units="pixels",
            get_color=COLORS.get(r.color, [30, 30, 30, 255]),
            opacity=1,
        ))
    origin = search.request.origin
    layers.append(pdk.Layer(
        "ScatterplotLayer",
        data=[{"coords": [origin.longitude, origin.latitude], "c": [0, 255, 255]}],
        get_position="coords", get_fill_color="c", get_radius=40,
    ))

selected = search.selected
st.pydeck_chart(pdk.Deck(
    map_provider="carto",
    map_style="dark",
    initial_view_state=_view_state_for(selected.coordinates if selected else []),
    layers=layers,
    tooltip={"text": "Severity {severity}\n{description}"},
))

if selected:
    app_link, web_link = build_navigation_links(
        platform, search.request.origin, selected.destination, search.request.travel_mode
    )
    st.link_button("Navigate", web_link)
    st.caption(f"App link: `{app_link}`")

    safest = directions.safest_route_index(search.routes)
    st.info(f"Lowest-risk option: Route {safest + 1} (risk {search.routes[safest].risk_score}).")

# ── 11. Footer ─────────────────────────────────────────────────
stats = kpi.snapshot()
st.caption(f"{len(hazards)} hazards loaded · {stats['searches']} searches · "
           f"Last refreshed {datetime.now():%H:%M:%S}")
