import math

import pytest
from starlette.testclient import TestClient

import recycleright.api.routes as routes
from recycleright.api.app import app
from recycleright.bins.nearest import BinLocator
from recycleright.core.geo import GeoPoint
from recycleright.domain.models import WalkingRoute
from recycleright.routing.mapbox import DirectionsUnavailableError

LOCATOR = BinLocator(bins=(GeoPoint(lon=103.8198, lat=1.3521), GeoPoint(lon=103.7771, lat=1.2949)))


class _StubAssistant:
    def __init__(self):
        self.messages = None

    def chat(self, messages):
        self.messages = messages
        return "Rinse and recycle."

    def recognise_image(self, image_base64, mime_type="image/jpeg"):
        if image_base64 == "boom":
            raise RuntimeError("vision failed")
        return {"name": "Glass jar", "canBeRecycled": True, "mime": mime_type}


class _StubDirections:
    def __init__(self, route=None):
        self._route = route

    def walking_route(self, start, end):
        if self._route is None:
            raise DirectionsUnavailableError("MAPBOX_ACCESS_TOKEN is not configured")
        return self._route


@pytest.fixture
def stub_assistant(monkeypatch):
    assistant = _StubAssistant()
    monkeypatch.setattr(routes, "_locator", lambda: LOCATOR)
    monkeypatch.setattr(routes, "_assistant", lambda: assistant)
    return assistant


@pytest.fixture
def client(stub_assistant):
    with TestClient(app) as c:
        yield c


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.text == "ALIVE"


def test_nearest_bins_endpoint(client):
    resp = client.post("/bin/nearest", json={"longitude": 103.8198, "latitude": 1.3521})

    assert resp.status_code == 200
    data = resp.json()
    assert data["meta"] == {"k": 3, "within_service_area": True}
    locations = data["locations"]
    assert len(locations) == 3
    assert locations[0] == {"longitude": 103.8198, "latitude": 1.3521, "distance": 0.0}
    # Only two bins: the third slot is the (0, 0) sentinel with an infinite (null) distance.
    assert locations[2] == {"longitude": 0.0, "latitude": 0.0, "distance": None}


def test_nearest_bins_outside_singapore_is_answered(client):
    resp = client.post("/bin/nearest", json={"longitude": 0.0, "latitude": 0.0})

    assert resp.status_code == 200
    data = resp.json()
    assert data["meta"]["within_service_area"] is False
    assert data["locations"][0]["distance"] > 10_000_000


def test_nearest_bins_requires_numbers(client):
    resp = client.post("/bin/nearest", json={"longitude": "east"})

    assert resp.status_code == 422


def test_gemini_chat(client, stub_assistant):
    payload = {
        "messages": [
            {"type": "image", "role": "user", "content": "aGVsbG8=", "mimeType": "image/jpeg"},
            {"type": "text", "role": "user", "content": "Can I recycle this?"},
        ]
    }

    resp = client.post("/gemini", json=payload)

    assert resp.status_code == 200
    assert resp.json() == {"nextMsg": "Rinse and recycle."}
    assert stub_assistant.messages[0].mime_type == "image/jpeg"


def test_gemini_rejects_image_without_mime_type(client):
    payload = {"messages": [{"type": "image", "role": "user", "content": "aGVsbG8="}]}

    resp = client.post("/gemini", json=payload)

    assert resp.status_code == 422


def test_gemini_demo_mode_without_api_key(monkeypatch):
    monkeypatch.setattr(routes, "_locator", lambda: LOCATOR)
    routes._assistant.cache_clear()
    try:
        with TestClient(app) as c:
            resp = c.post("/gemini", json={"messages": [{"type": "text", "role": "user", "content": "hello"}]})
    finally:
        routes._assistant.cache_clear()

    assert resp.status_code == 200
    assert resp.json()["nextMsg"].startswith("[DEMO MODE]")


def test_image_recognise_requires_image(client):
    resp = client.post("/image/recognise", json={})

    assert resp.status_code == 400
    assert resp.json() == {"error": "No image provided"}


def test_image_recognise(client):
    resp = client.post("/image/recognise", json={"image": "aGVsbG8=", "mimeType": "image/png"})

    assert resp.status_code == 200
    assert resp.json() == {"name": "Glass jar", "canBeRecycled": True, "mime": "image/png"}


def test_image_recognise_failure_body(client):
    resp = client.post("/image/recognise", json={"image": "boom"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to process image recognition request", "message": "vision failed"}


def test_bin_route_unavailable(client, monkeypatch):
    monkeypatch.setattr(routes, "_directions", lambda: _StubDirections())

    resp = client.post("/bin/route", json={"start": {"lon": 103.8, "lat": 1.3}, "end": {"lon": 103.81, "lat": 1.31}})

    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "DIRECTIONS_UNAVAILABLE"


def test_bin_route(client, monkeypatch):
    route = WalkingRoute(distance_m=812.5, duration_s=640.0, coordinates=[[103.8, 1.3], [103.81, 1.31]])
    monkeypatch.setattr(routes, "_directions", lambda: _StubDirections(route))

    resp = client.post("/bin/route", json={"start": {"lon": 103.8, "lat": 1.3}, "end": {"lon": 103.81, "lat": 1.31}})

    assert resp.status_code == 200
    data = resp.json()
    assert math.isclose(data["distance_m"], 812.5)
    assert data["coordinates"][-1] == [103.81, 1.31]


def test_nearest_bins_with_infinite_coordinate(client):
    resp = client.post(
        "/bin/nearest",
        content='{"longitude": Infinity, "latitude": 1.3}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["meta"]["within_service_area"] is False
    assert [loc["distance"] for loc in data["locations"]] == [None, None, None]
