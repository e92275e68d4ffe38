from __future__ import annotations

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from beanthere.app import app
from beanthere.cafes.config import PlacesConfig
from beanthere.cafes.geolocation import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    UNSUPPORTED,
    GeolocationError,
    LocationReport,
    PositionAttempt,
    ReportedPositionSource,
    error_message,
    locate,
)
from beanthere.cafes.places import PlacesClient
from beanthere.models import Coordinates

HOME = Coordinates(lat=37.8044, lng=-122.2712)
DEFAULT = Coordinates(lat=37.7749, lng=-122.4194)


class ScriptedSource:
    """Answers each request from a queue of fixes or error codes."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def get_position(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, int):
            raise GeolocationError(outcome)
        return outcome


def test_error_messages():
    assert error_message(PERMISSION_DENIED) == (
        "Unable to get your location. Please allow location access in your browser settings."
    )
    assert error_message(POSITION_UNAVAILABLE) == "Unable to get your location. Location information is unavailable."
    assert error_message(TIMEOUT) == "Unable to get your location. Location request timed out."
    assert error_message(99) == "Unable to get your location. Please try again."
    assert error_message(UNSUPPORTED) == "Geolocation is not supported by your browser."


def test_high_accuracy_fix_is_used_first():
    source = ScriptedSource(HOME)
    result = locate(source)
    assert result.location == HOME
    assert result.accuracy == "high"
    assert result.message is None
    assert source.requests[0].high_accuracy is True
    assert source.requests[0].timeout_ms == 20000
    assert source.requests[0].maximum_age_ms == 300000


def test_falls_back_to_low_accuracy_once():
    source = ScriptedSource(TIMEOUT, HOME)
    result = locate(source)
    assert result.accuracy == "low"
    assert result.location == HOME
    low = source.requests[1]
    assert (low.high_accuracy, low.timeout_ms, low.maximum_age_ms) == (False, 15000, 600000)


def test_denied_twice_uses_default_location():
    source = ScriptedSource(PERMISSION_DENIED, PERMISSION_DENIED)
    result = locate(source)
    assert result.is_default
    assert result.location == DEFAULT
    assert result.message == (
        "Unable to get your location. Please allow location access in your browser settings. "
        "Using San Francisco."
    )
    assert len(source.requests) == 2


def test_unsupported_skips_retry():
    source = ScriptedSource(UNSUPPORTED)
    result = locate(source)
    assert result.is_default
    assert len(source.requests) == 1
    assert result.message.startswith("Geolocation is not supported")


def test_reported_source_reuses_high_attempt_for_low():
    report = LocationReport(high_accuracy=PositionAttempt(error_code=PERMISSION_DENIED))
    result = locate(ReportedPositionSource(report))
    assert result.is_default


def test_reported_source_low_accuracy_success():
    report = LocationReport(
        high_accuracy=PositionAttempt(error_code=TIMEOUT),
        low_accuracy=PositionAttempt(coordinates=HOME),
    )
    result = locate(ReportedPositionSource(report))
    assert result.accuracy == "low"
    assert result.location == HOME


# ── Routes ───────────────────────────────────────────────────────────────


def test_location_endpoint_denied():
    resp = TestClient(app).post("/location", json={"highAccuracy": {"errorCode": PERMISSION_DENIED}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["accuracy"] == "default"
    assert body["location"] == {"lat": 37.7749, "lng": -122.4194}
    assert "allow location access" in body["message"]


def test_explore_redirects_before_onboarding():
    resp = TestClient(app).get("/explore", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"


@patch("beanthere.app.get_places_client", return_value=PlacesClient(PlacesConfig(api_key="test-key")))
@patch("beanthere.cafes.places.requests.get")
def test_explore_after_denied_location_searches_default(mock_get, _mock_client):
    resp = MagicMock()
    resp.json.return_value = {
        "status": "OK",
        "results": [
            {
                "name": "Peet's Coffee",
                "vicinity": "2124 Vine St",
                "types": ["cafe"],
                "geometry": {"location": {"lat": 37.88, "lng": -122.27}},
            },
            {
                "name": "Random Cafe",
                "vicinity": "1 Elm St",
                "types": ["cafe"],
                "geometry": {"location": {"lat": 37.78, "lng": -122.41}},
            },
        ],
    }
    mock_get.return_value = resp

    c = TestClient(app)
    c.put("/preferences", json={"vibe": ["quiet"], "milkType": "oat", "budget": "budget"})
    body = c.get("/explore", params={"geoError": PERMISSION_DENIED}).json()

    assert body["location"]["accuracy"] == "default"
    assert "Using San Francisco." in body["location"]["message"]
    assert mock_get.call_args.kwargs["params"]["location"] == "37.7749,-122.4194"
    assert [s["name"] for s in body["recommended"]] == ["Peet's Coffee"]
    assert body["recommended"][0]["matchScore"] == 3
    assert [s["name"] for s in body["other"]] == ["Random Cafe"]
    # No user marker when falling back to the default location
    kinds = [m["kind"] for m in body["map"]["markers"]]
    assert kinds == ["cafe", "cafe"]
