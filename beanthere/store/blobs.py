from __future__ import annotations

import logging
import threading
from typing import Any, Protocol
from urllib.parse import unquote, urlparse

from ..config import DEFAULT_APP_CONFIG
from ..errors import BackendUnavailableError, StoreError, is_backend_unavailable

logger = logging.getLogger(__name__)

STORAGE_UNAVAILABLE_MESSAGE = (
    "Firebase Storage is not available. Please enable Storage in your Firebase Console."
)


class BlobStore(Protocol):
    def upload(self, path: str, data: bytes, content_type: str) -> str: ...

    def delete(self, url: str) -> None: ...


class InMemoryBlobStore:
    """Keeps uploads in a dict; URLs use the ``memory://`` scheme."""

    scheme = "memory://"

    def __init__(self) -> None:
        self._blobs: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        with self._lock:
            self._blobs[path] = (data, content_type)
        return f"{self.scheme}{path}"

    def delete(self, url: str) -> None:
        with self._lock:
            self._blobs.pop(url.removeprefix(self.scheme), None)

    def read(self, url: str) -> tuple[bytes, str] | None:
        return self._blobs.get(url.removeprefix(self.scheme))

    def paths(self) -> list[str]:
        return sorted(self._blobs)

    def clear(self) -> None:
        with self._lock:
            self._blobs.clear()


class FirebaseBlobStore:
    def __init__(self, bucket: Any) -> None:
        self._bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            blob = self._bucket.blob(path)
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
            return blob.public_url
        except Exception as exc:
            logger.warning("Storage upload to %s failed", path, exc_info=True)
            if is_backend_unavailable(exc):
                raise BackendUnavailableError(STORAGE_UNAVAILABLE_MESSAGE) from exc
            raise StoreError(str(exc)) from exc

    def _path_from_url(self, url: str) -> str:
        # https://storage.googleapis.com/<bucket>/<path>
        parsed = urlparse(url)
        path = unquote(parsed.path.lstrip("/"))
        prefix = f"{self._bucket.name}/"
        return path[len(prefix):] if path.startswith(prefix) else path

    def delete(self, url: str) -> None:
        try:
            self._bucket.blob(self._path_from_url(url)).delete()
        except Exception as exc:
            raise StoreError(str(exc)) from exc


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        if DEFAULT_APP_CONFIG.uses_firebase:
            from firebase_admin import storage

            from .firebase import get_firebase_app

            _blob_store = FirebaseBlobStore(storage.bucket(app=get_firebase_app()))
        else:
            _blob_store = InMemoryBlobStore()
    return _blob_store


def set_blob_store(store: BlobStore | None) -> None:
    global _blob_store
    _blob_store = store


def clear_blobs() -> None:
    if isinstance(_blob_store, InMemoryBlobStore):
        _blob_store.clear()
