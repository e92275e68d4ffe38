from __future__ import annotations

import io
import logging
import time
from typing import Any

from PIL import Image, UnidentifiedImageError

from ..auth.identity import IdentityService
from ..errors import (
    AuthError,
    BackendUnavailableError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
)
from ..store.blobs import BlobStore, get_blob_store
from ..store.documents import DocumentStore, get_document_store, to_datetime, utcnow
from .models import ProfileUpdate, UserProfile

logger = logging.getLogger(__name__)

COLLECTION = "users"
MAX_PICTURE_BYTES = 5 * 1024 * 1024
MIN_PICTURE_SIDE = 50
# Provider-hosted avatars are not ours to delete
EXTERNAL_PHOTO_HOST = "googleusercontent.com"


def _to_profile(doc: dict[str, Any]) -> UserProfile:
    return UserProfile(
        uid=doc.get("uid") or doc["id"],
        display_name=doc.get("displayName") or "",
        email=doc.get("email") or "",
        photo_url=doc.get("photoURL") or "",
        bio=doc.get("bio") or "",
        location=doc.get("location") or "",
        preferences=doc.get("preferences") or {},
        created_at=to_datetime(doc.get("createdAt")),
        updated_at=to_datetime(doc.get("updatedAt")),
    )


def get_user_profile(uid: str, store: DocumentStore | None = None) -> UserProfile | None:
    doc = (store or get_document_store()).get(COLLECTION, uid)
    return _to_profile(doc) if doc else None


def create_user_profile(
    user: dict[str, Any],
    overrides: ProfileUpdate | None = None,
    store: DocumentStore | None = None,
) -> UserProfile:
    """Write the user's profile, filling blanks from the auth record.

    Merges into an existing document; ``createdAt`` is only set once.
    """
    store = store or get_document_store()
    overrides = overrides or ProfileUpdate()
    now = utcnow()
    data: dict[str, Any] = {
        "uid": user["uid"],
        "displayName": overrides.display_name or user.get("display_name") or "",
        "email": user.get("email") or "",
        "photoURL": user.get("photo_url") or "",
        "bio": overrides.bio or "",
        "location": overrides.location or "",
        "preferences": overrides.preferences.model_dump(by_alias=True) if overrides.preferences else {},
        "updatedAt": now,
    }
    if store.get(COLLECTION, user["uid"]) is None:
        data["createdAt"] = now
    store.set(COLLECTION, user["uid"], data, merge=True)
    return get_user_profile(user["uid"], store)


def update_user_profile(
    uid: str,
    update: ProfileUpdate | dict[str, Any],
    store: DocumentStore | None = None,
) -> UserProfile:
    store = store or get_document_store()
    if isinstance(update, ProfileUpdate):
        fields = update.model_dump(by_alias=True, exclude_none=True)
    else:
        fields = dict(update)
    try:
        store.update(COLLECTION, uid, {**fields, "updatedAt": utcnow()})
    except NotFoundError as exc:
        raise NotFoundError("Profile not found") from exc
    return get_user_profile(uid, store)


def validate_picture(data: bytes, content_type: str | None) -> tuple[int, int]:
    """Reject anything that is not a reasonably sized, decodable image."""
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInputError("file", "File must be an image")
    if len(data) > MAX_PICTURE_BYTES:
        raise InvalidInputError("file", "File size must be less than 5MB")
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidInputError("file", "Invalid image file") from exc
    if width == 0 or height == 0:
        raise InvalidInputError("file", "Invalid image: zero dimensions")
    if width < MIN_PICTURE_SIDE or height < MIN_PICTURE_SIDE:
        raise InvalidInputError("file", "Image too small: minimum 50x50 pixels")
    return width, height


def _upload_error(exc: StoreError) -> StoreError:
    text = exc.message.lower()
    if isinstance(exc, BackendUnavailableError):
        return BackendUnavailableError("Storage service not available. Please enable Firebase Storage.")
    if "permission" in text or "403" in text:
        return PermissionDeniedError("Permission denied. Please check Storage security rules.")
    if "network" in text or "connection" in text:
        return StoreError("Network error. Please check your internet connection.")
    return StoreError(f"Upload failed: {exc.message}")


def delete_profile_picture(url: str, blobs: BlobStore | None = None) -> None:
    """Best-effort removal of a previous upload."""
    if not url or EXTERNAL_PHOTO_HOST in url:
        return
    try:
        (blobs or get_blob_store()).delete(url)
    except StoreError:
        logger.warning("Could not delete old profile picture %s", url, exc_info=True)


def upload_profile_picture(
    identity: IdentityService,
    data: bytes,
    content_type: str | None,
    blobs: BlobStore | None = None,
    store: DocumentStore | None = None,
) -> UserProfile:
    user = identity.current_user
    if not user:
        raise AuthError("No authenticated user")
    validate_picture(data, content_type)

    blobs = blobs or get_blob_store()
    store = store or get_document_store()
    profile = get_user_profile(user["uid"], store)
    previous = (profile.photo_url if profile else "") or user.get("photo_url") or ""

    path = f"profile-pictures/{user['uid']}/{int(time.time() * 1000)}.jpg"
    logger.info("Uploading profile picture for %s to %s", user["uid"], path)
    try:
        url = blobs.upload(path, data, content_type)
    except StoreError as exc:
        raise _upload_error(exc) from exc

    updated_user = identity.update_profile(photo_url=url)
    if profile is None:
        create_user_profile(updated_user, store=store)
    profile = update_user_profile(user["uid"], {"photoURL": url}, store)

    if previous and previous != url:
        delete_profile_picture(previous, blobs)
    return profile
