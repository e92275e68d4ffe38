from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from beanthere.app import app
from beanthere.cafes.config import PlacesConfig
from beanthere.config import AppConfig, missing_settings
from beanthere.errors import ConfigurationError, StoreError
from beanthere.store.config import FirebaseConfig

client = TestClient(app)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_static_pages():
    assert client.get("/about").json()["title"] == "About BeanThere"
    assert client.get("/support").json()["supportUrl"].startswith("https://www.buymeacoffee.com/")


def test_setup_lists_missing_settings():
    with patch("beanthere.app.missing_settings", return_value=["GOOGLE_MAPS_API_KEY"]):
        body = client.get("/setup").json()
    assert body == {"configured": False, "missing": ["GOOGLE_MAPS_API_KEY"]}


@patch("beanthere.store.config.DEFAULT_FIREBASE_CONFIG", FirebaseConfig(credentials_path="", web_api_key="", storage_bucket=""))
@patch("beanthere.cafes.config.DEFAULT_PLACES_CONFIG", PlacesConfig(api_key=""))
def test_missing_settings_for_firebase_backend():
    assert missing_settings(AppConfig(backend="memory")) == ["GOOGLE_MAPS_API_KEY"]
    assert missing_settings(AppConfig(backend="firebase")) == [
        "GOOGLE_MAPS_API_KEY",
        "FIREBASE_CREDENTIALS",
        "FIREBASE_API_KEY",
        "FIREBASE_STORAGE_BUCKET",
    ]


def test_configuration_error_is_503():
    with patch(
        "beanthere.app.get_review_store",
        side_effect=ConfigurationError("Firebase is not configured.", missing=["FIREBASE_API_KEY"]),
    ):
        resp = client.get("/cafes/x/reviews")
    assert resp.status_code == 503
    assert resp.json() == {
        "error": "configuration",
        "message": "Firebase is not configured.",
        "missing": ["FIREBASE_API_KEY"],
    }


def test_generic_store_error_is_502():
    with patch("beanthere.app.get_review_store", side_effect=StoreError("Failed to query documents. Please try again later.")):
        resp = client.get("/cafes/x/rating")
    assert resp.status_code == 502
    assert resp.json()["error"] == "store"


def test_unexpected_error_asks_for_reload():
    c = TestClient(app, raise_server_exceptions=False)
    with patch("beanthere.app.get_review_store", side_effect=RuntimeError("kaboom")):
        resp = c.get("/cafes/x/reviews")
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "unexpected",
        "message": "Something went wrong. Please reload the page.",
        "action": "reload",
    }
