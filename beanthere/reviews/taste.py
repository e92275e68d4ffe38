from __future__ import annotations

from datetime import datetime

from ..store.documents import utcnow
from .models import RatingBucket, Review, TasteProfile
from .store import average_rating


def describe_recent_activity(last_review: datetime, now: datetime) -> str:
    days = (now - last_review).days
    if days <= 0:
        return "Reviewed today"
    if days == 1:
        return "Reviewed yesterday"
    if days < 7:
        return f"Reviewed {days} days ago"
    if days < 30:
        return f"Reviewed {days // 7} weeks ago"
    return f"Reviewed {days // 30} months ago"


def build_taste_profile(reviews: list[Review], now: datetime | None = None) -> TasteProfile:
    """Summarise one user's reviews for the account dashboard."""
    now = now or utcnow()
    ratings = [r.rating for r in reviews]
    distribution = [RatingBucket(rating=n, count=ratings.count(n)) for n in range(1, 6)]
    if not reviews:
        return TasteProfile(
            total_reviews=0,
            average_rating=0,
            rating_distribution=distribution,
            recent_activity="No reviews yet",
            today_reviews=[],
        )

    today = now.date()
    today_reviews = [r for r in reviews if r.created_at.astimezone(now.tzinfo).date() == today]
    latest = max(r.created_at for r in reviews)
    return TasteProfile(
        total_reviews=len(reviews),
        average_rating=average_rating(ratings),
        rating_distribution=distribution,
        recent_activity=describe_recent_activity(latest, now),
        today_reviews=today_reviews,
    )
