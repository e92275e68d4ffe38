"""
Match engine
============

Scores a cafe against the user's onboarding answers using a fixed table of
well-known Bay Area cafe names.

How a cafe is looked up
-----------------------
Both the cafe name and the table keys are lower-cased and stripped of
punctuation, so ``"Peet's Coffee (Original)"`` is matched by the key
``"peets"``. The *first* key (in table order) contained in the name wins;
names matching no key score zero.

How the score is built
----------------------
* ``2`` points per preferred vibe listed for the cafe
* ``1`` point when the favourite flavour is listed
* ``1`` point when the milk (``"dairy"`` if unset) is offered

The matched lists mirror exactly the preferences that earned points. Cafes
scoring above zero are *recommended*; the rest are *other*.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from ..preferences.models import Budget, UserPreferences
from .models import Cafe, MatchedPreferences, ScoredCafe

DEFAULT_MILK = "dairy"
VIBE_WEIGHT = 2


@dataclass(frozen=True)
class CafeTraits:
    vibes: frozenset[str]
    flavors: frozenset[str]
    milk: frozenset[str]
    budget: Budget


def _traits(vibes: list[str], flavors: list[str], milk: list[str], budget: Budget) -> CafeTraits:
    return CafeTraits(frozenset(vibes), frozenset(flavors), frozenset(milk), budget)


# Insertion order is the tie-break when several keys occur in one name.
CAFE_METADATA: dict[str, CafeTraits] = {
    "starbucks": _traits(["quick-grab", "study-friendly"], ["chocolatey", "fruity", "nutty"],
                         ["dairy", "oat", "almond", "soy"], "moderate"),
    "peets": _traits(["study-friendly", "quiet"], ["chocolatey", "nutty"],
                     ["dairy", "oat", "almond"], "moderate"),
    "blue bottle": _traits(["aesthetic", "trendy"], ["fruity", "chocolatey"], ["dairy", "oat"], "premium"),
    "philz": _traits(["cozy", "study-friendly"], ["chocolatey", "spicy"], ["dairy", "oat", "almond"], "moderate"),
    "ritual": _traits(["aesthetic", "trendy"], ["fruity", "chocolatey"], ["dairy", "oat"], "premium"),
    "sightglass": _traits(["aesthetic", "date-spot"], ["fruity", "chocolatey"], ["dairy", "oat"], "premium"),
    "verve": _traits(["aesthetic", "trendy"], ["fruity", "chocolatey"], ["dairy", "oat", "almond"], "premium"),
    "four barrel": _traits(["aesthetic", "trendy"], ["fruity", "chocolatey"], ["dairy", "oat"], "premium"),
    "equator": _traits(["cozy", "study-friendly"], ["chocolatey", "nutty"], ["dairy", "oat", "almond"], "moderate"),
    "spro": _traits(["quick-grab", "study-friendly"], ["chocolatey", "nutty"], ["dairy", "oat"], "budget"),
    "coffee bar": _traits(["study-friendly", "quiet"], ["chocolatey", "fruity"],
                          ["dairy", "oat", "almond"], "moderate"),
    "sweet maria": _traits(["cozy", "quiet"], ["chocolatey", "nutty"], ["dairy", "oat"], "budget"),
    "cafe triste": _traits(["aesthetic", "date-spot"], ["chocolatey", "fruity"], ["dairy", "oat"], "premium"),
    "andytown": _traits(["cozy", "study-friendly"], ["chocolatey", "fruity"], ["dairy", "oat"], "moderate"),
    "saint frank": _traits(["aesthetic", "trendy"], ["fruity", "chocolatey"], ["dairy", "oat"], "premium"),
}

_PUNCT_RE = re.compile(r"[^\w\s]")


def _normalize_name(name: str) -> str:
    return _PUNCT_RE.sub("", name.lower())


@dataclass(frozen=True)
class MatchResult:
    score: int
    matched_preferences: MatchedPreferences


def find_traits(cafe_name: str, metadata: dict[str, CafeTraits] = CAFE_METADATA) -> CafeTraits | None:
    name = _normalize_name(cafe_name)
    for key, traits in metadata.items():
        if _normalize_name(key) in name:
            return traits
    return None


def calculate_match_score(
    cafe_name: str,
    preferences: UserPreferences,
    metadata: dict[str, CafeTraits] = CAFE_METADATA,
) -> MatchResult:
    traits = find_traits(cafe_name, metadata)
    if traits is None:
        return MatchResult(score=0, matched_preferences=MatchedPreferences())

    vibes = [v for v in preferences.vibe if v in traits.vibes]
    flavors = (
        [preferences.favorite_flavor]
        if preferences.favorite_flavor and preferences.favorite_flavor in traits.flavors
        else []
    )
    milk_type = preferences.milk_type or DEFAULT_MILK
    milk = [milk_type] if milk_type in traits.milk else []

    score = VIBE_WEIGHT * len(vibes) + len(flavors) + len(milk)
    return MatchResult(
        score=score,
        matched_preferences=MatchedPreferences(vibes=vibes, flavors=flavors, milk=milk),
    )


def budget_to_price_level(budget: str | None) -> tuple[int, int]:
    """Provider price-level bounds (0 cheapest .. 4) for a budget answer."""
    if budget == "budget":
        return 0, 1
    if budget == "moderate":
        return 1, 2
    if budget == "premium":
        return 2, 3
    return 0, 3


def score_cafe(cafe: Cafe, preferences: UserPreferences) -> ScoredCafe:
    result = calculate_match_score(cafe.name, preferences)
    return ScoredCafe(
        **cafe.model_dump(),
        match_score=result.score,
        matched_preferences=result.matched_preferences,
    )


def rank_cafes(cafes: Iterable[Cafe], preferences: UserPreferences, limit: int = 10) -> list[ScoredCafe]:
    """Score the first ``limit`` cafes and order them best match first (stable)."""
    scored = [score_cafe(cafe, preferences) for cafe in list(cafes)[:limit]]
    scored.sort(key=lambda shop: shop.match_score, reverse=True)
    return scored


def classify(shops: Iterable[ScoredCafe]) -> tuple[list[ScoredCafe], list[ScoredCafe]]:
    """Split into ``(recommended, other)``."""
    recommended: list[ScoredCafe] = []
    other: list[ScoredCafe] = []
    for shop in shops:
        (recommended if shop.match_score > 0 else other).append(shop)
    return recommended, other
