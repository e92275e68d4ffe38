from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import requests
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from ..errors import AuthError
from ..store.config import DEFAULT_FIREBASE_CONFIG, FirebaseConfig
from ..store.firebase import get_firebase_app

logger = logging.getLogger(__name__)


class FirebaseAuthBackend:
    """Firebase Authentication.

    Email/password flows go through the Identity Toolkit REST API (the Admin
    SDK cannot check passwords); provider sign-in verifies the ID token the
    client obtained from the provider popup.
    """

    def __init__(self, config: FirebaseConfig = DEFAULT_FIREBASE_CONFIG) -> None:
        self.config = config

    def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.config.identity_toolkit_url}/accounts:{method}"
        try:
            r = requests.post(
                url,
                params={"key": self.config.web_api_key},
                json=payload,
                timeout=self.config.timeout,
            )
            data = r.json() if r.content else {}
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Identity Toolkit %s failed", method, exc_info=True)
            raise AuthError(f"Network error: {exc}") from exc

        if r.status_code != 200:
            message = (data.get("error") or {}).get("message")
            raise AuthError(message or f"Identity request failed with status {r.status_code}")
        return data

    def _user(self, uid: str, id_token: str | None) -> dict[str, Any]:
        try:
            record = auth.get_user(uid, app=get_firebase_app())
        except FirebaseError as exc:
            raise AuthError(str(exc)) from exc

        created_ms = record.user_metadata.creation_timestamp if record.user_metadata else None
        created_at = (
            datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc)
            if created_ms
            else datetime.now(timezone.utc)
        )
        user = {
            "uid": record.uid,
            "email": record.email,
            "display_name": record.display_name,
            "photo_url": record.photo_url,
            "created_at": created_at.isoformat(),
            "email_verified": record.email_verified,
        }
        if id_token:
            user["provider_token"] = id_token
        return user

    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        data = self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._user(data["localId"], data.get("idToken"))

    def sign_up_with_password(self, email: str, password: str) -> dict[str, Any]:
        data = self._call(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._user(data["localId"], data.get("idToken"))

    def sign_in_with_provider(self, id_token: str) -> dict[str, Any]:
        try:
            claims = auth.verify_id_token(id_token, app=get_firebase_app())
        except (ValueError, FirebaseError) as exc:
            raise AuthError(str(exc)) from exc
        return self._user(claims["uid"], id_token)

    def send_verification_email(self, user: dict[str, Any]) -> None:
        token = user.get("provider_token")
        if not token:
            raise AuthError("Please sign in again to resend the verification email.")
        self._call("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": token})

    def update_profile(
        self, uid: str, display_name: str | None = None, photo_url: str | None = None,
    ) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if display_name:
            changes["display_name"] = display_name
        if photo_url:
            changes["photo_url"] = photo_url
        try:
            if changes:
                auth.update_user(uid, app=get_firebase_app(), **changes)
        except FirebaseError as exc:
            raise AuthError(str(exc)) from exc
        return self._user(uid, None)
