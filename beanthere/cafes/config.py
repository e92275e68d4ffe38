from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class PlacesConfig:
    api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    base_url: str = "https://maps.googleapis.com/maps/api/place"
    search_radius_m: int = 5000
    nearby_limit: int = 10
    photo_max_width: int = 400
    timeout: float = 10.0
    default_lat: float = float(os.getenv("DEFAULT_LAT", "37.7749"))
    default_lng: float = float(os.getenv("DEFAULT_LNG", "-122.4194"))
    default_location_name: str = os.getenv("DEFAULT_LOCATION_NAME", "San Francisco")


@dataclass(frozen=True)
class GeolocationConfig:
    high_accuracy_timeout_ms: int = 20000
    high_accuracy_max_age_ms: int = 300000
    low_accuracy_timeout_ms: int = 15000
    low_accuracy_max_age_ms: int = 600000
    nearby_radius_miles: float = 50.0


DEFAULT_PLACES_CONFIG = PlacesConfig()
DEFAULT_GEOLOCATION_CONFIG = GeolocationConfig()
