from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from ..models import CamelModel

MAX_REVIEW_LENGTH = 500


class Review(CamelModel):
    id: str
    cafe_id: str
    cafe_name: str
    user_id: str
    user_name: str
    rating: int = Field(..., ge=1, le=5)
    review: str
    created_at: datetime
    updated_at: datetime | None = None


def _check_rating(value: int | None) -> int:
    # The star picker sends 0 until a star is chosen
    if not value or not 1 <= value <= 5:
        raise ValueError("Please select a rating")
    return value


def _check_text(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("Please write a review")
    if len(value) > MAX_REVIEW_LENGTH:
        raise ValueError(f"Review must be {MAX_REVIEW_LENGTH} characters or fewer")
    return value.strip()


class ReviewSubmission(CamelModel):
    cafe_name: str = Field(..., min_length=1)
    rating: int = Field(default=0, validate_default=True)
    review: str = Field(default="", validate_default=True)

    @field_validator("rating")
    @classmethod
    def _rating(cls, value: int) -> int:
        return _check_rating(value)

    @field_validator("review")
    @classmethod
    def _review(cls, value: str) -> str:
        return _check_text(value)


class ReviewUpdate(CamelModel):
    rating: int | None = None
    review: str | None = None

    @field_validator("rating")
    @classmethod
    def _rating(cls, value: int | None) -> int | None:
        return None if value is None else _check_rating(value)

    @field_validator("review")
    @classmethod
    def _review(cls, value: str | None) -> str | None:
        return None if value is None else _check_text(value)


class CafeRating(CamelModel):
    average_rating: float
    total_reviews: int
    reviews: list[Review]


class RatingBucket(CamelModel):
    rating: int
    count: int


class TasteProfile(CamelModel):
    total_reviews: int
    average_rating: float
    rating_distribution: list[RatingBucket]
    recent_activity: str
    today_reviews: list[Review]
