"""
Review persistence over the ``reviews`` collection.

A user holds at most one review per cafe: the document id is derived from
(cafeId, userId), so a concurrent second submission collides instead of
creating a duplicate, and ``submit`` turns a resubmission into an update.
Callers re-query after every mutation; nothing here caches.
"""
from __future__ import annotations

import logging
import math
from typing import Any

from ..errors import DuplicateDocumentError, NotFoundError, PermissionDeniedError
from ..store.documents import SERVER_TIMESTAMP, DocumentStore, get_document_store, to_datetime
from .models import CafeRating, Review, ReviewSubmission, ReviewUpdate

logger = logging.getLogger(__name__)

COLLECTION = "reviews"


def review_doc_id(cafe_id: str, user_id: str) -> str:
    return f"{cafe_id}--{user_id}".replace("/", "_")


def _to_review(doc: dict[str, Any]) -> Review:
    return Review(
        id=doc["id"],
        cafe_id=doc.get("cafeId", ""),
        cafe_name=doc.get("cafeName", ""),
        user_id=doc.get("userId", ""),
        user_name=doc.get("userName") or "Anonymous",
        rating=int(doc.get("rating", 0)),
        review=doc.get("review", ""),
        created_at=to_datetime(doc.get("createdAt")),
        updated_at=to_datetime(doc["updatedAt"]) if doc.get("updatedAt") else None,
    )


def average_rating(ratings: list[int]) -> float:
    """Mean rating to one decimal, halves rounded up (4.25 -> 4.3)."""
    if not ratings:
        return 0
    return math.floor(sum(ratings) / len(ratings) * 10 + 0.5) / 10


class ReviewStore:
    def __init__(self, store: DocumentStore | None = None) -> None:
        self._store = store

    @property
    def documents(self) -> DocumentStore:
        return self._store or get_document_store()

    # ── Mutations ────────────────────────────────────────────────────────

    def add(self, draft: dict[str, Any]) -> str:
        """Create a review from ``cafeId, cafeName, userId, userName, rating, review``."""
        data = {**draft, "createdAt": SERVER_TIMESTAMP}
        doc_id = self.documents.add(
            COLLECTION, data, doc_id=review_doc_id(draft["cafeId"], draft["userId"]),
        )
        logger.info("Review %s added for cafe %s", doc_id, draft["cafeId"])
        return doc_id

    def _owned(self, review_id: str, user_id: str | None, action: str) -> dict[str, Any]:
        doc = self.documents.get(COLLECTION, review_id)
        if doc is None:
            raise NotFoundError("Review not found")
        if user_id is not None and doc.get("userId") != user_id:
            raise PermissionDeniedError(f"You can only {action} your own reviews")
        return doc

    def update(self, review_id: str, fields: dict[str, Any], user_id: str | None = None) -> None:
        self._owned(review_id, user_id, "edit")
        changes = {k: v for k, v in fields.items() if k in ("rating", "review") and v is not None}
        self.documents.update(COLLECTION, review_id, {**changes, "updatedAt": SERVER_TIMESTAMP})

    def delete(self, review_id: str, user_id: str | None = None) -> None:
        self._owned(review_id, user_id, "delete")
        self.documents.delete(COLLECTION, review_id)
        logger.info("Review %s deleted", review_id)

    def submit(
        self,
        user_id: str,
        user_name: str,
        cafe_id: str,
        submission: ReviewSubmission,
    ) -> Review:
        """Create the user's review of ``cafe_id`` or update the one they have."""
        fields = {"rating": submission.rating, "review": submission.review}
        existing = self.get_user_review(cafe_id, user_id)
        if existing is not None:
            self.update(existing.id, fields, user_id=user_id)
            review_id = existing.id
        else:
            draft = {
                "cafeId": cafe_id,
                "cafeName": submission.cafe_name,
                "userId": user_id,
                "userName": user_name,
                **fields,
            }
            try:
                review_id = self.add(draft)
            except DuplicateDocumentError:
                review_id = review_doc_id(cafe_id, user_id)
                self.update(review_id, fields, user_id=user_id)
        return self.get(review_id)

    def apply_update(self, review_id: str, user_id: str, update: ReviewUpdate) -> Review:
        self.update(review_id, update.model_dump(), user_id=user_id)
        return self.get(review_id)

    # ── Reads ────────────────────────────────────────────────────────────

    def get(self, review_id: str) -> Review:
        doc = self.documents.get(COLLECTION, review_id)
        if doc is None:
            raise NotFoundError("Review not found")
        return _to_review(doc)

    def list_for_cafe(self, cafe_id: str) -> list[Review]:
        docs = self.documents.query(COLLECTION, {"cafeId": cafe_id}, order_by="createdAt")
        return [_to_review(d) for d in docs]

    def list_for_user(self, user_id: str) -> list[Review]:
        docs = self.documents.query(COLLECTION, {"userId": user_id}, order_by="createdAt")
        return [_to_review(d) for d in docs]

    def get_user_review(self, cafe_id: str, user_id: str) -> Review | None:
        docs = self.documents.query(COLLECTION, {"cafeId": cafe_id, "userId": user_id})
        return _to_review(docs[0]) if docs else None

    def get_cafe_rating(self, cafe_id: str) -> CafeRating:
        reviews = self.list_for_cafe(cafe_id)
        return CafeRating(
            average_rating=average_rating([r.rating for r in reviews]),
            total_reviews=len(reviews),
            reviews=reviews,
        )


_reviews: ReviewStore | None = None


def get_review_store() -> ReviewStore:
    global _reviews
    if _reviews is None:
        _reviews = ReviewStore()
    return _reviews
