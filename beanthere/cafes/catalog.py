from __future__ import annotations

import math
from collections.abc import Iterable

from ..models import Coordinates
from .models import Cafe, NearbyCafe, NearbyResponse

EARTH_RADIUS_MILES = 3959.0


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def filter_cafes(cafes: Iterable[Cafe], tags: list[str] | None = None, query: str = "") -> list[Cafe]:
    """Keep cafes carrying every selected tag whose name or address contains the query."""
    tags = tags or []
    needle = query.strip().lower()
    result: list[Cafe] = []
    for cafe in cafes:
        if not all(tag in cafe.tags for tag in tags):
            continue
        if needle and needle not in cafe.name.lower() and needle not in cafe.address.lower():
            continue
        result.append(cafe)
    return result


def cafes_near(
    cafes: Iterable[Cafe],
    location: Coordinates,
    radius_miles: float = 50.0,
) -> NearbyResponse:
    shops: list[NearbyCafe] = []
    for cafe in cafes:
        if cafe.coordinates is None:
            continue
        distance = haversine_miles(location, cafe.coordinates)
        if distance <= radius_miles:
            shops.append(NearbyCafe(cafe=cafe, distance_miles=round(distance, 2)))

    if not shops:
        return NearbyResponse(
            shops=[],
            message=f"No coffee shops found within {radius_miles:g} miles. Try expanding your search area.",
        )

    closest = min(shops, key=lambda s: s.distance_miles)
    return NearbyResponse(
        shops=shops,
        closest=closest,
        message=(
            f"Found {len(shops)} coffee shops within {radius_miles:g} miles! "
            f"Closest: {closest.cafe.name} ({closest.distance_miles:.1f} miles away)"
        ),
    )
