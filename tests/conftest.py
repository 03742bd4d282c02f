import json

import httpx
import polyline
import pytest

from saferoute.agents import ingest
from saferoute.agents.reports import ReportArchive


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_client(payload, status_code=200):
    return mock_client(lambda request: httpx.Response(
        status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"}))


def provider_route(points, durations=(600,), summary=""):
    return {
        "summary": summary,
        "overview_polyline": {"points": polyline.encode(points)},
        "legs": [{"duration": {"value": d}} for d in durations],
    }


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(ingest, "OUT_DIR", tmp_path / "hazards")
    return tmp_path


@pytest.fixture
def archive(data_dir):
    return ReportArchive(data_dir / "reports" / "community_reports.json")
