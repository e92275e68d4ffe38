from __future__ import annotations

from beanthere.cafes.matching import (
    CAFE_METADATA,
    budget_to_price_level,
    calculate_match_score,
    classify,
    rank_cafes,
)
from beanthere.cafes.models import Cafe, derive_cafe_id
from beanthere.preferences.models import UserPreferences


def _cafe(name: str) -> Cafe:
    return Cafe(id=derive_cafe_id(name, "1 Main St"), name=name, address="1 Main St")


# ── calculate_match_score ────────────────────────────────────────────────


def test_peets_quiet_oat_scores_three():
    prefs = UserPreferences(vibe=["quiet"], milk_type="oat")
    result = calculate_match_score("Peet's Coffee (Original)", prefs)
    assert result.score == 3
    assert result.matched_preferences.vibes == ["quiet"]
    assert result.matched_preferences.flavors == []
    assert result.matched_preferences.milk == ["oat"]


def test_unknown_cafe_scores_zero():
    prefs = UserPreferences(vibe=["quiet", "aesthetic"], favorite_flavor="nutty", milk_type="oat")
    result = calculate_match_score("Corner Bakery", prefs)
    assert result.score == 0
    assert result.matched_preferences.vibes == []
    assert result.matched_preferences.flavors == []
    assert result.matched_preferences.milk == []


def test_lookup_is_case_insensitive():
    prefs = UserPreferences(vibe=["aesthetic"])
    assert calculate_match_score("BLUE BOTTLE COFFEE", prefs).score == 3


def test_milk_defaults_to_dairy():
    result = calculate_match_score("Philz Coffee", UserPreferences())
    assert result.score == 1
    assert result.matched_preferences.milk == ["dairy"]


def test_flavor_adds_one_point():
    prefs = UserPreferences(favorite_flavor="spicy", milk_type="none")
    result = calculate_match_score("Philz Coffee", prefs)
    assert result.score == 1
    assert result.matched_preferences.flavors == ["spicy"]


def test_each_matching_vibe_adds_two():
    prefs = UserPreferences(vibe=["cozy", "study-friendly", "lively"], milk_type="none")
    result = calculate_match_score("Equator Coffees", prefs)
    assert result.score == 4
    assert result.matched_preferences.vibes == ["cozy", "study-friendly"]


def test_first_table_key_wins():
    # "starbucks" precedes "coffee bar" in the table
    prefs = UserPreferences(vibe=["quick-grab"], milk_type="none")
    assert calculate_match_score("Starbucks Coffee Bar", prefs).score == 2


def test_score_is_positive_for_known_cafe_with_overlap():
    for key, traits in CAFE_METADATA.items():
        prefs = UserPreferences(vibe=sorted(traits.vibes)[:1], milk_type="none")
        assert calculate_match_score(f"{key} downtown", prefs).score >= 2


# ── Ranking / classification ─────────────────────────────────────────────


def test_rank_cafes_sorts_descending_and_is_stable():
    prefs = UserPreferences(vibe=["quiet"], milk_type="oat")
    cafes = [_cafe("Unknown A"), _cafe("Peet's Coffee"), _cafe("Unknown B"), _cafe("Spro Coffee")]
    ranked = rank_cafes(cafes, prefs)
    assert [c.name for c in ranked] == ["Peet's Coffee", "Spro Coffee", "Unknown A", "Unknown B"]
    assert ranked[0].match_score == 3


def test_rank_cafes_scores_only_first_ten():
    cafes = [_cafe(f"Shop {i}") for i in range(15)]
    assert len(rank_cafes(cafes, UserPreferences())) == 10


def test_classify_splits_on_positive_score():
    prefs = UserPreferences(vibe=["quiet"])
    ranked = rank_cafes([_cafe("Peet's"), _cafe("Nowhere Cafe")], prefs)
    recommended, other = classify(ranked)
    assert [c.name for c in recommended] == ["Peet's"]
    assert [c.name for c in other] == ["Nowhere Cafe"]


def test_budget_to_price_level():
    assert budget_to_price_level("budget") == (0, 1)
    assert budget_to_price_level("moderate") == (1, 2)
    assert budget_to_price_level("premium") == (2, 3)
    assert budget_to_price_level(None) == (0, 3)
