from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

from fastapi import Request
from pydantic import ValidationError

from .models import UserPreferences

logger = logging.getLogger(__name__)

ONBOARDING_KEY = "beanThereOnboarding"
USER_NAME_KEY = "userName"
USER_UID_KEY = "userUID"
USER_EMAIL_KEY = "userEmail"


class ClientStore:
    """The one place that reads or writes per-client persisted values.

    Backed by the signed session cookie, so values survive reloads and are
    scoped to one browser. A missing or malformed value reads as absent.
    """

    def __init__(self, storage: MutableMapping[str, Any]) -> None:
        self._storage = storage

    # ── Onboarding preferences ───────────────────────────────────────────

    def get_preferences(self) -> UserPreferences | None:
        raw = self._storage.get(ONBOARDING_KEY)
        if not raw or not isinstance(raw, str):
            return None
        try:
            return UserPreferences.model_validate_json(raw)
        except ValidationError:
            logger.info("Ignoring malformed onboarding data in client store")
            return None

    def save_preferences(self, preferences: UserPreferences) -> None:
        self._storage[ONBOARDING_KEY] = preferences.model_dump_json(by_alias=True)

    def clear_preferences(self) -> None:
        self._storage.pop(ONBOARDING_KEY, None)

    def has_completed_onboarding(self) -> bool:
        return self.get_preferences() is not None

    # ── Display name ─────────────────────────────────────────────────────

    def get_user_name(self) -> str | None:
        value = self._storage.get(USER_NAME_KEY)
        return value if isinstance(value, str) and value.strip() else None

    def set_user_name(self, name: str) -> None:
        self._storage[USER_NAME_KEY] = name.strip()

    # ── Session mirror ───────────────────────────────────────────────────

    @property
    def cached_uid(self) -> str | None:
        return self._storage.get(USER_UID_KEY) or None

    @property
    def cached_email(self) -> str | None:
        return self._storage.get(USER_EMAIL_KEY) or None

    def mirror_session(self, user: dict[str, Any] | None) -> None:
        """Session listener: cache uid/email while signed in, drop them after."""
        if user:
            self._storage[USER_UID_KEY] = user["uid"]
            self._storage[USER_EMAIL_KEY] = user.get("email") or ""
        else:
            self._storage.pop(USER_UID_KEY, None)
            self._storage.pop(USER_EMAIL_KEY, None)

    def clear_user_data(self) -> None:
        for key in (USER_NAME_KEY, USER_UID_KEY, USER_EMAIL_KEY):
            self._storage.pop(key, None)


def get_client_store(request: Request) -> ClientStore:
    return ClientStore(request.session)


def resolve_display_name(
    store: ClientStore,
    user: dict[str, Any] | None,
    fallback: str = "Coffee Lover",
) -> str:
    """Stored name, then provider display name, then the email's local part."""
    name = store.get_user_name()
    if name:
        return name
    if user:
        if user.get("display_name"):
            return user["display_name"]
        email = user.get("email") or ""
        if email:
            return email.split("@")[0]
    return fallback
