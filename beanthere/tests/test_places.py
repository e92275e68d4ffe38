from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from beanthere.app import app
from beanthere.cafes.config import PlacesConfig
from beanthere.cafes.places import (
    PlacesClient,
    is_cafe,
    normalize_place,
    search_by_text,
    search_nearby,
    synthesize_tags,
)
from beanthere.errors import ConfigurationError, InvalidInputError, PlacesError
from beanthere.models import Coordinates
from beanthere.preferences.models import UserPreferences

CONFIG = PlacesConfig(api_key="test-key")
CLIENT = PlacesClient(CONFIG)
SF = Coordinates(lat=37.7749, lng=-122.4194)

RAW_PLACES = [
    {
        "place_id": "p1",
        "name": "Sightglass Coffee",
        "vicinity": "270 7th St, San Francisco",
        "rating": 4.6,
        "user_ratings_total": 1200,
        "types": ["cafe", "food", "point_of_interest", "establishment"],
        "geometry": {"location": {"lat": 37.777, "lng": -122.408}},
        "photos": [{"photo_reference": "ref-1"}],
        "price_level": 2,
    },
    {
        "place_id": "p2",
        "name": "Corner Hardware",
        "formatted_address": "1 Tool St",
        "types": ["hardware_store", "establishment"],
        "geometry": {"location": {"lat": 37.7, "lng": -122.4}},
    },
    {
        "place_id": "p3",
        "name": "Morning Coffee Kiosk",
        "formatted_address": "2 Market St",
        "rating": 3.9,
        "types": ["store"],
    },
]


def _response(payload: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


# ── Client ───────────────────────────────────────────────────────────────


@patch("beanthere.cafes.places.requests.get")
def test_nearby_search_sends_price_bounds_and_keyword(mock_get):
    mock_get.return_value = _response({"status": "OK", "results": RAW_PLACES})
    prefs = UserPreferences(coffee_types=["latte", "cold-brew"], budget="premium")

    cafes = search_nearby(CLIENT, SF, prefs)

    params = mock_get.call_args.kwargs["params"]
    assert params["location"] == "37.7749,-122.4194"
    assert params["radius"] == 5000
    assert params["type"] == "cafe"
    assert params["keyword"] == "latte cold-brew"
    assert (params["minprice"], params["maxprice"]) == (2, 3)
    assert params["key"] == "test-key"
    assert mock_get.call_args.args[0].endswith("/nearbysearch/json")
    assert [c.name for c in cafes] == ["Sightglass Coffee", "Morning Coffee Kiosk"]


@patch("beanthere.cafes.places.requests.get")
def test_text_search_appends_suffix(mock_get):
    mock_get.return_value = _response({"status": "OK", "results": RAW_PLACES[:1]})
    cafes = search_by_text(CLIENT, "  mission  ", SF)
    params = mock_get.call_args.kwargs["params"]
    assert params["query"] == "mission coffee shops"
    assert mock_get.call_args.args[0].endswith("/textsearch/json")
    assert len(cafes) == 1


def test_text_search_rejects_blank_query():
    with pytest.raises(InvalidInputError) as exc_info:
        search_by_text(CLIENT, "   ")
    assert exc_info.value.field == "query"


@patch("beanthere.cafes.places.requests.get")
def test_zero_results_is_empty(mock_get):
    mock_get.return_value = _response({"status": "ZERO_RESULTS", "results": []})
    assert search_by_text(CLIENT, "nothing") == []


@patch("beanthere.cafes.places.requests.get")
def test_provider_error_status_raises_from_client(mock_get):
    mock_get.return_value = _response({"status": "REQUEST_DENIED", "error_message": "bad key"})
    with pytest.raises(PlacesError, match="bad key"):
        CLIENT.text_search("x", SF, 5000)


@patch("beanthere.cafes.places.requests.get")
def test_provider_errors_become_empty_lists(mock_get):
    mock_get.return_value = _response({"status": "OVER_QUERY_LIMIT"})
    assert search_nearby(CLIENT, SF, UserPreferences()) == []
    mock_get.side_effect = requests.ConnectionError("offline")
    assert search_by_text(CLIENT, "latte") == []
    assert mock_get.call_count == 2


def test_missing_api_key_is_configuration_error():
    client = PlacesClient(PlacesConfig(api_key=""))
    with pytest.raises(ConfigurationError) as exc_info:
        search_nearby(client, SF, UserPreferences())
    assert exc_info.value.missing == ["GOOGLE_MAPS_API_KEY"]


# ── Normalisation ────────────────────────────────────────────────────────


def test_is_cafe():
    assert is_cafe(RAW_PLACES[0])
    assert not is_cafe(RAW_PLACES[1])
    assert is_cafe(RAW_PLACES[2])
    assert not is_cafe({"name": "Coffee Cart", "types": []})


def test_synthesize_tags():
    assert synthesize_tags(RAW_PLACES[0]) == [
        "serves-food", "lively", "great-espresso", "trendy", "cozy", "good-for-friends",
    ]
    assert synthesize_tags({"types": ["cafe"], "rating": 3.0}) == ["cozy"]


def test_normalize_place():
    cafe = normalize_place(RAW_PLACES[0], CLIENT)
    assert cafe.id == "Sightglass_Coffee_"
    assert cafe.place_id == "p1"
    assert cafe.address == "270 7th St, San Francisco"
    assert cafe.review_count == 1200
    assert cafe.coordinates == Coordinates(lat=37.777, lng=-122.408)
    assert cafe.price_level == 2
    assert "photo_reference=ref-1" in cafe.photos[0]


def test_cafe_id_uses_formatted_address_only():
    place = {"name": "Ritual", "formatted_address": "1026 Valencia St", "vicinity": "Valencia St"}
    cafe = normalize_place(place)
    assert cafe.id == "Ritual_1026_Valencia_St"
    assert cafe.address == "1026 Valencia St"


# ── Routes ───────────────────────────────────────────────────────────────


@patch("beanthere.app.get_places_client", return_value=CLIENT)
@patch("beanthere.cafes.places.requests.get")
def test_places_search_endpoint(mock_get, _mock_client):
    mock_get.return_value = _response({"status": "OK", "results": RAW_PLACES})
    c = TestClient(app)
    resp = c.get("/places/search", params={"q": "sightglass"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == 'Found 2 coffee shops matching "sightglass"!'
    assert body["center"] == {"lat": 37.777, "lng": -122.408}
    assert body["cafes"][0]["placeId"] == "p1"


@patch("beanthere.app.get_places_client", return_value=CLIENT)
@patch("beanthere.cafes.places.requests.get")
def test_places_search_endpoint_no_results(mock_get, _mock_client):
    mock_get.return_value = _response({"status": "ZERO_RESULTS"})
    body = TestClient(app).get("/places/search", params={"q": "zzz"}).json()
    assert body["cafes"] == []
    assert body["message"] == 'No coffee shops found matching "zzz". Try a different search term.'


def test_places_search_endpoint_blank_query():
    resp = TestClient(app).get("/places/search", params={"q": " "})
    assert resp.status_code == 400
    assert resp.json() == {
        "error": "validation",
        "message": "Please enter a search query.",
        "field": "query",
    }


@patch("beanthere.app.get_places_client", return_value=PlacesClient(PlacesConfig(api_key="")))
def test_explore_without_api_key_reports_setup(_mock_client):
    c = TestClient(app)
    c.put("/preferences", json={"vibe": ["quiet"]})
    resp = c.get("/explore", params={"lat": 37.7, "lng": -122.4})
    assert resp.status_code == 503
    assert resp.json()["error"] == "configuration"
    assert resp.json()["missing"] == ["GOOGLE_MAPS_API_KEY"]
