from __future__ import annotations

import re

from pydantic import Field

from ..models import CamelModel, Coordinates

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def derive_cafe_id(name: str, address: str) -> str:
    """``<name>-<address>`` with every non-alphanumeric character replaced by ``_``.

    Not unique: two cafes whose name and address only differ in punctuation
    collide.
    """
    return _NON_ALNUM_RE.sub("_", f"{name}-{address or ''}")


class Cafe(CamelModel):
    id: str
    name: str
    address: str = ""
    rating: float | None = None
    review_count: int | None = None
    coordinates: Coordinates | None = None
    tags: list[str] = Field(default_factory=list)
    place_id: str | None = None
    photos: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    price_level: int | None = None


class MatchedPreferences(CamelModel):
    vibes: list[str] = Field(default_factory=list)
    flavors: list[str] = Field(default_factory=list)
    milk: list[str] = Field(default_factory=list)


class ScoredCafe(Cafe):
    match_score: int = 0
    matched_preferences: MatchedPreferences = Field(default_factory=MatchedPreferences)


class NearbyCafe(CamelModel):
    cafe: Cafe
    distance_miles: float


class NearbyResponse(CamelModel):
    shops: list[NearbyCafe]
    closest: NearbyCafe | None = None
    message: str


class PlacesSearchResponse(CamelModel):
    cafes: list[Cafe]
    center: Coordinates | None = None
    message: str
