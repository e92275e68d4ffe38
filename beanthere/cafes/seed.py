from __future__ import annotations

from ..models import Coordinates
from .models import Cafe, derive_cafe_id

VIBE_TAGS = [
    "good-for-work",
    "quiet",
    "lively",
    "good-for-date",
    "outdoor-seating",
    "fast-wifi",
    "cozy",
    "serves-food",
    "great-espresso",
]

# name, address, rating, review count, tags, (lat, lng)
_SEED_ROWS = [
    # South Bay / Peninsula
    ("Voyager Craft Coffee", "398 S 1st St, San Jose, CA 95113", 4.6, 855,
     ["trendy", "good-for-date", "unique-drinks", "lively"], (37.3305, -121.8889)),
    ("Academic Coffee", "499 S 2nd St, San Jose, CA 95113", 4.7, 410,
     ["good-for-work", "quiet", "minimalist", "fast-wifi", "great-espresso"], (37.3308, -121.8885)),
    ("Chromatic Coffee", "460 Lincoln Ave, San Jose, CA 95126", 4.5, 980,
     ["good-for-work", "lively", "outdoor-seating", "serves-food", "great-espresso"], (37.3389, -121.9147)),
    ("Verve Coffee Roasters", "1620 El Camino Real, Palo Alto, CA 94306", 4.4, 758,
     ["good-for-work", "trendy", "outdoor-seating", "minimalist"], (37.4419, -122.1430)),
    ("Red Rock Coffee", "201 Castro St, Mountain View, CA 94041", 4.3, 1213,
     ["good-for-friends", "lively", "outdoor-seating", "serves-food", "cozy"], (37.3944, -122.0789)),
    # San Francisco
    ("Four Barrel Coffee", "375 Valencia St, San Francisco, CA 94103", 4.5, 412,
     ["trendy", "lively", "great-espresso", "minimalist"], (37.7675, -122.4219)),
    ("Ritual Coffee Roasters", "1026 Valencia St, San Francisco, CA 94110", 4.4, 876,
     ["great-espresso", "trendy", "lively", "outdoor-seating"], (37.7569, -122.4206)),
    ("Blue Bottle Coffee", "66 Mint St, San Francisco, CA 94103", 4.6, 235,
     ["minimalist", "great-espresso", "quiet", "good-for-date"], (37.7833, -122.4167)),
    ("The Mill", "736 Divisadero St, San Francisco, CA 94117", 4.5, 875,
     ["trendy", "serves-food", "lively", "minimalist"], (37.7769, -122.4372)),
    ("Andytown Coffee Roasters", "3655 Lawton St, San Francisco, CA 94122", 4.7, 959,
     ["cozy", "unique-drinks", "great-espresso", "good-for-friends"], (37.7289, -122.5039)),
    ("Saint Frank Coffee", "2340 Polk St, San Francisco, CA 94109", 4.6, 880,
     ["minimalist", "good-for-work", "great-espresso", "quiet"], (37.7974, -122.4224)),
    # East Bay
    ("Peet's Coffee (Original)", "2124 Vine St, Berkeley, CA 94709", 4.5, 1300,
     ["cozy", "great-espresso", "good-for-friends"], (37.8716, -122.2727)),
    ("Cole Coffee", "6255 College Ave, Oakland, CA 94618", 4.4, 650,
     ["lively", "outdoor-seating", "good-for-friends", "cash-only"], (37.8476, -122.2519)),
    ("Timeless Coffee", "4252 Piedmont Ave, Oakland, CA 94611", 4.6, 770,
     ["serves-food", "lively", "trendy", "vegan"], (37.8285, -122.2484)),
    ("Artís Coffee", "1717B Fourth St, Berkeley, CA 94710", 4.5, 550,
     ["good-for-work", "minimalist", "great-espresso", "trendy"], (37.8696, -122.2997)),
    ("Red Bay Coffee Roasters", "3098 E 10th St, Oakland, CA 94601", 4.6, 430,
     ["outdoor-seating", "lively", "good-for-friends", "trendy"], (37.7986, -122.2347)),
]

SEED_CAFES: list[Cafe] = [
    Cafe(
        id=derive_cafe_id(name, address),
        name=name,
        address=address,
        rating=rating,
        review_count=review_count,
        tags=tags,
        coordinates=Coordinates(lat=lat, lng=lng),
    )
    for name, address, rating, review_count, tags, (lat, lng) in _SEED_ROWS
]
