"""
Document store used by the review, favorite and profile façades.

Two implementations share one small protocol: an in-memory store (the
default, also used by the tests) and a Firestore-backed store. Queries are
limited to what the app needs: equality filters, optionally ordered by one
field descending.
"""
from __future__ import annotations

import itertools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from ..config import DEFAULT_APP_CONFIG
from ..errors import (
    BackendUnavailableError,
    DuplicateDocumentError,
    NotFoundError,
    StoreError,
    is_backend_unavailable,
)

logger = logging.getLogger(__name__)

FIRESTORE_UNAVAILABLE_MESSAGE = (
    "Firestore is not available. Please enable Firestore in your Firebase Console."
)


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# Placeholder resolved by the store at write time
SERVER_TIMESTAMP = _ServerTimestamp()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> datetime:
    """Normalise a stored timestamp (datetime, epoch seconds or ISO string)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            return to_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.debug("Unparseable timestamp %r, using now", value)
    return utcnow()


class DocumentStore(Protocol):
    def add(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> str: ...

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None: ...

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def query(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]: ...


# ── In-memory store ──────────────────────────────────────────────────────


class InMemoryDocumentStore:
    """Thread-safe dict-of-dicts store. Returned documents carry their ``id``."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._order: dict[tuple[str, str], int] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        now = utcnow()
        return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    def add(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> str:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            doc_id = doc_id or uuid.uuid4().hex[:20]
            if doc_id in docs:
                raise DuplicateDocumentError(f"Document {collection}/{doc_id} already exists")
            docs[doc_id] = self._resolve(data)
            self._order[(collection, doc_id)] = next(self._seq)
            return doc_id

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return {**doc, "id": doc_id} if doc is not None else None

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            resolved = self._resolve(data)
            if merge and doc_id in docs:
                docs[doc_id].update(resolved)
            else:
                docs[doc_id] = resolved
            self._order.setdefault((collection, doc_id), next(self._seq))

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise NotFoundError(f"Document {collection}/{doc_id} not found")
            docs[doc_id].update(self._resolve(fields))

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(doc_id, None)
            self._order.pop((collection, doc_id), None)

    def query(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            matches = [
                (doc_id, doc)
                for doc_id, doc in self._collections.get(collection, {}).items()
                if all(doc.get(field) == value for field, value in filters.items())
            ]
            if order_by:
                # Newest first; later writes win ties on identical timestamps
                matches.sort(
                    key=lambda item: (
                        to_datetime(item[1].get(order_by)),
                        self._order.get((collection, item[0]), 0),
                    ),
                    reverse=True,
                )
            return [{**doc, "id": doc_id} for doc_id, doc in matches]

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()
            self._order.clear()


# ── Firestore store ──────────────────────────────────────────────────────


def _translate(exc: Exception, action: str) -> StoreError:
    logger.warning("Firestore %s failed", action, exc_info=True)
    if is_backend_unavailable(exc):
        return BackendUnavailableError(FIRESTORE_UNAVAILABLE_MESSAGE)
    return StoreError(f"Failed to {action}. Please try again later.")


class FirestoreDocumentStore:
    def __init__(self, client: Any) -> None:
        self._db = client

    @staticmethod
    def _prepare(data: dict[str, Any]) -> dict[str, Any]:
        from firebase_admin import firestore

        return {k: (firestore.SERVER_TIMESTAMP if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    def add(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> str:
        from google.api_core.exceptions import AlreadyExists

        try:
            if doc_id:
                self._db.collection(collection).document(doc_id).create(self._prepare(data))
                return doc_id
            _, ref = self._db.collection(collection).add(self._prepare(data))
            return ref.id
        except AlreadyExists as exc:
            raise DuplicateDocumentError(f"Document {collection}/{doc_id} already exists") from exc
        except Exception as exc:
            raise _translate(exc, "save document") from exc

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        try:
            snap = self._db.collection(collection).document(doc_id).get()
        except Exception as exc:
            raise _translate(exc, "load document") from exc
        if not snap.exists:
            return None
        return {**snap.to_dict(), "id": snap.id}

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        try:
            self._db.collection(collection).document(doc_id).set(self._prepare(data), merge=merge)
        except Exception as exc:
            raise _translate(exc, "save document") from exc

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        from google.api_core.exceptions import NotFound

        try:
            self._db.collection(collection).document(doc_id).update(self._prepare(fields))
        except NotFound as exc:
            raise NotFoundError(f"Document {collection}/{doc_id} not found") from exc
        except Exception as exc:
            raise _translate(exc, "update document") from exc

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self._db.collection(collection).document(doc_id).delete()
        except Exception as exc:
            raise _translate(exc, "delete document") from exc

    def query(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        from firebase_admin import firestore
        from google.cloud.firestore_v1.base_query import FieldFilter

        try:
            q = self._db.collection(collection)
            for field, value in filters.items():
                q = q.where(filter=FieldFilter(field, "==", value))
            if order_by:
                q = q.order_by(order_by, direction=firestore.Query.DESCENDING)
            return [{**snap.to_dict(), "id": snap.id} for snap in q.stream()]
        except Exception as exc:
            raise _translate(exc, "query documents") from exc


# ── Process-wide instance ────────────────────────────────────────────────

_store: DocumentStore | None = None


def _build_store() -> DocumentStore:
    if DEFAULT_APP_CONFIG.uses_firebase:
        from firebase_admin import firestore

        from .firebase import get_firebase_app

        return FirestoreDocumentStore(firestore.client(app=get_firebase_app()))
    return InMemoryDocumentStore()


def get_document_store() -> DocumentStore:
    """Return the configured document store, creating it on first call."""
    global _store
    if _store is None:
        _store = _build_store()
    return _store


def set_document_store(store: DocumentStore | None) -> None:
    global _store
    _store = store


def clear_documents() -> None:
    if isinstance(_store, InMemoryDocumentStore):
        _store.clear()
