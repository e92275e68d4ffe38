from __future__ import annotations

import logging
from typing import Any

import requests

from ..errors import ConfigurationError, InvalidInputError, PlacesError
from ..models import Coordinates
from ..preferences.models import UserPreferences
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .matching import budget_to_price_level
from .models import Cafe, derive_cafe_id

logger = logging.getLogger(__name__)

TEXT_QUERY_SUFFIX = "coffee shops"


class PlacesClient:
    """Minimal Google Places Web Service client (nearby and text search)."""

    def __init__(self, config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> None:
        self.config = config

    def _get(self, endpoint: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        if not self.config.api_key:
            raise ConfigurationError(
                "Google Maps API key is not configured.",
                missing=["GOOGLE_MAPS_API_KEY"],
            )

        url = f"{self.config.base_url}/{endpoint}/json"
        try:
            r = requests.get(
                url,
                params={**params, "key": self.config.api_key},
                timeout=self.config.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise PlacesError(f"Places request failed: {exc}") from exc

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise PlacesError(data.get("error_message") or f"Places request failed with status {status}")
        return data.get("results", [])

    def nearby_search(
        self,
        location: Coordinates,
        radius: int,
        keyword: str = "",
        place_type: str = "cafe",
        min_price: int | None = None,
        max_price: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "location": f"{location.lat},{location.lng}",
            "radius": radius,
            "type": place_type,
        }
        if keyword:
            params["keyword"] = keyword
        if min_price is not None:
            params["minprice"] = min_price
        if max_price is not None:
            params["maxprice"] = max_price
        return self._get("nearbysearch", params)

    def text_search(self, query: str, location: Coordinates, radius: int) -> list[dict[str, Any]]:
        return self._get(
            "textsearch",
            {"query": query, "location": f"{location.lat},{location.lng}", "radius": radius},
        )

    def photo_url(self, photo_reference: str) -> str:
        return (
            f"{self.config.base_url}/photo?maxwidth={self.config.photo_max_width}"
            f"&photo_reference={photo_reference}&key={self.config.api_key}"
        )


_client: PlacesClient | None = None


def get_places_client() -> PlacesClient:
    global _client
    if _client is None:
        _client = PlacesClient()
    return _client


# ── Normalisation ────────────────────────────────────────────────────────


def is_cafe(place: dict[str, Any]) -> bool:
    types = place.get("types") or []
    if not types:
        return False
    name = (place.get("name") or "").lower()
    return "cafe" in types or "coffee" in name or "cafe" in name


def synthesize_tags(place: dict[str, Any]) -> list[str]:
    types = place.get("types") or []
    rating = place.get("rating")
    tags: list[str] = []

    if "food" in types:
        tags.append("serves-food")
    if "establishment" in types:
        tags.append("lively")
    if rating and rating >= 4.5:
        tags.append("great-espresso")
    if "point_of_interest" in types:
        tags.append("trendy")

    tags.append("cozy")
    if rating and rating >= 4.0:
        tags.append("good-for-friends")
    return tags


def normalize_place(place: dict[str, Any], client: PlacesClient | None = None) -> Cafe:
    name = place.get("name") or ""
    # nearby results carry only ``vicinity``; the id uses the full address alone
    formatted_address = place.get("formatted_address") or ""
    address = formatted_address or place.get("vicinity") or ""

    loc = (place.get("geometry") or {}).get("location") or {}
    coordinates = (
        Coordinates(lat=loc["lat"], lng=loc["lng"])
        if loc.get("lat") is not None and loc.get("lng") is not None
        else None
    )

    photos: list[str] = []
    if client is not None:
        photos = [
            client.photo_url(p["photo_reference"])
            for p in place.get("photos") or []
            if p.get("photo_reference")
        ]

    return Cafe(
        id=derive_cafe_id(name, formatted_address),
        name=name,
        address=address,
        rating=place.get("rating"),
        review_count=place.get("user_ratings_total"),
        coordinates=coordinates,
        tags=synthesize_tags(place),
        place_id=place.get("place_id"),
        photos=photos,
        types=place.get("types") or [],
        price_level=place.get("price_level"),
    )


def _normalize_all(raw: list[dict[str, Any]], client: PlacesClient) -> list[Cafe]:
    return [normalize_place(p, client) for p in raw if is_cafe(p)]


# ── Queries ──────────────────────────────────────────────────────────────


def search_by_text(
    client: PlacesClient,
    query: str,
    location: Coordinates | None = None,
) -> list[Cafe]:
    """Free-text search biased towards ``location``.

    Provider failures are logged and yield an empty list; the caller decides
    what to tell the user.
    """
    query = query.strip()
    if not query:
        raise InvalidInputError("query", "Please enter a search query.")

    config = client.config
    center = location or Coordinates(lat=config.default_lat, lng=config.default_lng)
    try:
        raw = client.text_search(f"{query} {TEXT_QUERY_SUFFIX}", center, config.search_radius_m)
    except PlacesError:
        logger.warning("Text search for %r failed", query, exc_info=True)
        return []
    return _normalize_all(raw, client)


def search_nearby(
    client: PlacesClient,
    location: Coordinates,
    preferences: UserPreferences,
) -> list[Cafe]:
    min_price, max_price = budget_to_price_level(preferences.budget)
    try:
        raw = client.nearby_search(
            location,
            radius=client.config.search_radius_m,
            keyword=" ".join(preferences.coffee_types),
            min_price=min_price,
            max_price=max_price,
        )
    except PlacesError:
        logger.warning("Nearby search around %s failed", location, exc_info=True)
        return []
    return _normalize_all(raw, client)
