from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from beanthere.app import app
from beanthere.auth.users import reset_users
from beanthere.reviews.models import Review
from beanthere.reviews.taste import build_taste_profile, describe_recent_activity
from beanthere.store.documents import clear_documents

NOW = datetime(2024, 7, 15, 18, 0, tzinfo=timezone.utc)


def _review(rating: int, days_ago: float, cafe: str = "c") -> Review:
    return Review(
        id=f"{cafe}-{rating}-{days_ago}",
        cafe_id=cafe,
        cafe_name=cafe.upper(),
        user_id="u1",
        user_name="Jo",
        rating=rating,
        review="ok",
        created_at=NOW - timedelta(days=days_ago),
    )


def test_empty_profile():
    profile = build_taste_profile([], NOW)
    assert profile.total_reviews == 0
    assert profile.average_rating == 0
    assert profile.recent_activity == "No reviews yet"
    assert [b.count for b in profile.rating_distribution] == [0, 0, 0, 0, 0]


def test_profile_statistics():
    reviews = [_review(5, 0.1, "a"), _review(4, 3, "b"), _review(4, 40, "c")]
    profile = build_taste_profile(reviews, NOW)
    assert profile.total_reviews == 3
    assert profile.average_rating == 4.3
    assert [(b.rating, b.count) for b in profile.rating_distribution] == [
        (1, 0), (2, 0), (3, 0), (4, 2), (5, 1),
    ]
    assert [r.cafe_id for r in profile.today_reviews] == ["a"]
    assert profile.recent_activity == "Reviewed today"


def test_recent_activity_wording():
    assert describe_recent_activity(NOW - timedelta(hours=3), NOW) == "Reviewed today"
    assert describe_recent_activity(NOW - timedelta(days=1, hours=2), NOW) == "Reviewed yesterday"
    assert describe_recent_activity(NOW - timedelta(days=5), NOW) == "Reviewed 5 days ago"
    assert describe_recent_activity(NOW - timedelta(days=15), NOW) == "Reviewed 2 weeks ago"
    assert describe_recent_activity(NOW - timedelta(days=65), NOW) == "Reviewed 2 months ago"


def test_taste_route_and_account_dashboard():
    clear_documents()
    reset_users()
    c = TestClient(app)
    c.post("/auth/signin", json={"email": "demo@beanthere.app", "password": "coffee123"})
    c.post("/cafes/a/reviews", json={"cafeName": "A", "rating": 5, "review": "Superb"})
    c.post("/cafes/b/reviews", json={"cafeName": "B", "rating": 3, "review": "Fine"})

    taste = c.get("/account/taste").json()
    assert taste["totalReviews"] == 2
    assert taste["averageRating"] == 4
    assert taste["recentActivity"] == "Reviewed today"
    assert len(taste["todayReviews"]) == 2

    account = c.get("/account").json()
    assert account["user"]["email"] == "demo@beanthere.app"
    assert account["displayName"] == "Demo Drinker"
    assert [r["cafeId"] for r in account["reviews"]] == ["b", "a"]
    assert account["profile"]["uid"] == account["user"]["uid"]
    assert account["favorites"] == []
