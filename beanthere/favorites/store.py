from __future__ import annotations

import logging
import threading
from typing import Any

from ..errors import NotFoundError, PermissionDeniedError, StoreError
from ..store.documents import SERVER_TIMESTAMP, DocumentStore, get_document_store, to_datetime, utcnow
from .models import FavoriteCafe

logger = logging.getLogger(__name__)

COLLECTION = "favorites"

# uid -> loaded favorites list, for signed-in users only
_lists: dict[str, FavoritesList] = {}
_lock = threading.Lock()


def _to_favorite(doc: dict[str, Any]) -> FavoriteCafe:
    return FavoriteCafe(
        id=doc["id"],
        user_id=doc.get("userId", ""),
        cafe_id=doc.get("cafeId", ""),
        cafe_name=doc.get("cafeName", ""),
        cafe_address=doc.get("cafeAddress", ""),
        added_at=to_datetime(doc.get("addedAt")),
    )


def list_for_user(user_id: str, store: DocumentStore | None = None) -> list[FavoriteCafe]:
    """All of a user's favorites, newest first."""
    docs = (store or get_document_store()).query(COLLECTION, {"userId": user_id})
    favorites = [_to_favorite(d) for d in docs]
    favorites.sort(key=lambda f: f.added_at, reverse=True)
    return favorites


class FavoritesList:
    """A user's favorites as loaded at sign-in, kept in step with local edits.

    There is no live subscription: changes made elsewhere show up after
    ``refresh`` or the next sign-in. Requests for the same user share one
    instance, so local edits go through the module lock.
    """

    def __init__(self, user_id: str, store: DocumentStore | None = None) -> None:
        self.user_id = user_id
        self._store = store
        self.favorites: list[FavoriteCafe] = []
        self.error = ""

    @property
    def documents(self) -> DocumentStore:
        return self._store or get_document_store()

    def refresh(self) -> list[FavoriteCafe]:
        self.error = ""
        try:
            loaded = list_for_user(self.user_id, self.documents)
        except StoreError:
            self.error = "Failed to load favorites"
            raise
        with _lock:
            self.favorites = loaded
        return loaded

    def add(self, cafe_id: str, cafe_name: str, cafe_address: str | None = None) -> FavoriteCafe:
        address = cafe_address or cafe_name
        doc_id = self.documents.add(
            COLLECTION,
            {
                "userId": self.user_id,
                "cafeId": cafe_id,
                "cafeName": cafe_name,
                "cafeAddress": address,
                "addedAt": SERVER_TIMESTAMP,
            },
        )
        favorite = FavoriteCafe(
            id=doc_id,
            user_id=self.user_id,
            cafe_id=cafe_id,
            cafe_name=cafe_name,
            cafe_address=address,
            added_at=utcnow(),
        )
        with _lock:
            self.favorites.insert(0, favorite)
        return favorite

    def remove(self, favorite_id: str) -> None:
        doc = self.documents.get(COLLECTION, favorite_id)
        if doc is None:
            raise NotFoundError("Favorite not found")
        if doc.get("userId") != self.user_id:
            raise PermissionDeniedError("You can only remove your own favorites")
        self.documents.delete(COLLECTION, favorite_id)
        with _lock:
            self.favorites = [f for f in self.favorites if f.id != favorite_id]

    def is_favorite(self, cafe_id: str) -> bool:
        with _lock:
            return any(f.cafe_id == cafe_id for f in self.favorites)


def _load(favorites: FavoritesList) -> FavoritesList:
    try:
        favorites.refresh()
    except StoreError:
        logger.warning("Could not load favorites for %s", favorites.user_id, exc_info=True)
    return favorites


def get_favorites(user_id: str) -> FavoritesList:
    """Return the user's list, loading it if this process has not yet."""
    with _lock:
        favorites = _lists.get(user_id)
        if favorites is not None:
            return favorites
        favorites = FavoritesList(user_id)
        _lists[user_id] = favorites
    return _load(favorites)


def on_session_change(previous: dict[str, Any] | None, user: dict[str, Any] | None) -> None:
    """Sign-in/sign-out listener: drop the old user's list, reload the new one."""
    with _lock:
        if previous:
            _lists.pop(previous["uid"], None)
        if not user:
            return
        favorites = FavoritesList(user["uid"])
        _lists[user["uid"]] = favorites
    _load(favorites)


def clear_favorites() -> None:
    with _lock:
        _lists.clear()
