"""
SafeRoute – hazard ingest agent
Pulls the live `danger_zones` feed and snapshots it to data/hazards/.
"""

from datetime import datetime, timezone
from typing import List, Optional
import json
import logging
import time

import httpx

from saferoute import config
from saferoute.agents.hazard import HazardStore
from saferoute.agents.reports import ReportArchive

log = logging.getLogger(__name__)

FEED_PATH = "danger_zones"
OUT_DIR   = config.DATA_DIR / "hazards"

POLL_SECONDS  = 900
RETRY_SECONDS = 60


# ───────────────────────── Live feed fetcher ──────────────
def _fetch_from_api(client: Optional[httpx.Client] = None) -> list:
    """Read the whole `danger_zones` node and return a *list* of records."""
    if not config.FIREBASE_DB_URL:
        raise RuntimeError("FIREBASE_DB_URL not set")
    url = f"{config.FIREBASE_DB_URL}/{FEED_PATH}.json"
    http = client or httpx.Client(timeout=config.HTTP_TIMEOUT)
    try:
        resp = http.get(url)
        resp.raise_for_status()
        data = resp.json()
    finally:
        if client is None:
            http.close()

    # an empty node comes back as null; keyed children as an object
    if data is None:
        return []
    if isinstance(data, dict):
        return [dict(v) for v in data.values() if isinstance(v, dict)]
    if isinstance(data, list):
        return [v for v in data if isinstance(v, dict)]
    raise RuntimeError("Unexpected danger_zones payload structure")


def fetch_live(client: Optional[httpx.Client] = None) -> list:
    """Live hazard records. Tests monkey-patch this symbol."""
    return _fetch_from_api(client)


# ───────────────────────── Snapshot writer ─────────────────
def _to_feature(record: dict) -> dict:
    props = {k: v for k, v in record.items() if k not in ("latitude", "longitude")}
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [record.get("longitude"), record.get("latitude")]},
        "properties": props,
    }


def snapshot() -> None:
    """Call `fetch_live()` and write ONE timestamped snapshot file."""
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    records = fetch_live()

    ts  = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
    out = OUT_DIR / f"{ts}.geojson"
    out.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [_to_feature(r) for r in records],
    }))

    log.info("Saved %s (%d hazards)", out.name, len(records))


def latest_snapshot() -> List[dict]:
    """Records from the newest snapshot, back in `{latitude, longitude, ...}` shape."""
    snaps = sorted(OUT_DIR.glob("*.geojson"))
    if not snaps:
        return []
    features = json.loads(snaps[-1].read_text()).get("features", [])
    records = []
    for f in features:
        lon, lat = f["geometry"]["coordinates"]
        records.append({**f.get("properties", {}), "latitude": lat, "longitude": lon})
    return records


def load_store(archive: Optional[ReportArchive] = None) -> HazardStore:
    """A fresh HazardStore from the latest live snapshot plus the report archive."""
    store = HazardStore()
    store.replace_live(latest_snapshot())
    store.add_archive((archive or ReportArchive()).fetch())
    return store


# ───────────────────────── CLI entry ───────────────────────
def main():
    """Single-shot snapshot."""
    snapshot()


# ───────────────────────── Main loop (prod) ───────────────
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    log.info("Ingest loop running — Ctrl-C to stop")
    try:
        while True:
            try:
                snapshot()
            except (httpx.HTTPError, RuntimeError) as exc:
                log.error("Fetch failed – %s", exc)
                time.sleep(RETRY_SECONDS)
            else:
                time.sleep(POLL_SECONDS)
    except KeyboardInterrupt:
        log.info("Stopped by user")
