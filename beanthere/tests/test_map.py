from __future__ import annotations

from fastapi.testclient import TestClient

from beanthere.app import app
from beanthere.cafes.map_view import MarkerPlan, info_window_for, render_cafe_map
from beanthere.cafes.models import Cafe
from beanthere.models import Coordinates

CENTER = Coordinates(lat=37.7749, lng=-122.4194)

CAFES = [
    Cafe(
        id="a",
        name="Four Barrel Coffee",
        address="375 Valencia St",
        rating=4.5,
        review_count=412,
        coordinates=Coordinates(lat=37.767, lng=-122.422),
        tags=["good-for-work", "great-espresso", "fast-wifi", "lively"],
    ),
    Cafe(id="b", name="No Location", address="?"),
]


def test_render_places_user_and_cafe_markers():
    plan = MarkerPlan()
    placed = render_cafe_map(plan, CENTER, CAFES, user_location=CENTER)
    assert placed == 1
    assert plan.center == CENTER
    assert plan.zoom == 12
    assert [m.kind for m in plan.markers] == ["user", "cafe"]
    assert plan.markers[0].title == "Your Location"
    assert plan.markers[1].cafe_id == "a"


def test_render_clears_previous_markers():
    plan = MarkerPlan()
    render_cafe_map(plan, CENTER, CAFES, user_location=CENTER)
    render_cafe_map(plan, CENTER, CAFES[:1], zoom=14)
    assert len(plan.markers) == 1
    assert plan.zoom == 14


def test_info_window_shows_three_tags_without_dashes():
    window = info_window_for(CAFES[0])
    assert window.tags == ["good for work", "great espresso", "fast wifi"]
    assert window.review_count == 412


def test_map_endpoint():
    payload = {
        "center": {"lat": 37.7749, "lng": -122.4194},
        "cafes": [CAFES[0].model_dump(by_alias=True)],
        "userLocation": {"lat": 37.77, "lng": -122.41},
    }
    resp = TestClient(app).post("/map", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert [m["kind"] for m in body["markers"]] == ["user", "cafe"]
    assert body["markers"][1]["infoWindow"]["name"] == "Four Barrel Coffee"
