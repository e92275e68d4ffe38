from __future__ import annotations

import re
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any

import bcrypt

from ..errors import AuthError

# email (lower-cased) -> account record
_users: dict[str, dict[str, Any]] = {}
# provider id token -> identity asserted by the provider
_provider_tokens: dict[str, dict[str, Any]] = {}
_outbox: list[dict[str, Any]] = []
_lock = threading.Lock()

MIN_PASSWORD_LENGTH = 6
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "uid": record["uid"],
        "email": record["email"],
        "display_name": record.get("display_name"),
        "photo_url": record.get("photo_url"),
        "created_at": record["created_at"],
        "email_verified": record.get("email_verified", False),
    }


def _new_record(
    email: str,
    password_hash: str | None,
    display_name: str | None = None,
    photo_url: str | None = None,
    email_verified: bool = False,
) -> dict[str, Any]:
    return {
        "uid": uuid.uuid4().hex[:28],
        "email": email,
        "password_hash": password_hash,
        "display_name": display_name,
        "photo_url": photo_url,
        "email_verified": email_verified,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def _seed_users() -> None:
    """Pre-seed a demo account on import."""
    _users["demo@beanthere.app"] = _new_record(
        "demo@beanthere.app",
        _hash_password("coffee123"),
        display_name="Demo Drinker",
        email_verified=True,
    )


def authenticate(email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the public user or ``None``."""
    record = _users.get(email.strip().lower())
    if record and record["password_hash"] and _verify_password(password, record["password_hash"]):
        return _public(record)
    return None


def create_account(email: str, password: str) -> dict[str, Any]:
    email = email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise AuthError("The email address is badly formatted.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")
    with _lock:
        if email in _users:
            raise AuthError("The email address is already in use by another account.")
        record = _new_record(email, _hash_password(password))
        _users[email] = record
    return _public(record)


def register_provider_identity(
    id_token: str,
    email: str,
    display_name: str | None = None,
    photo_url: str | None = None,
) -> None:
    """Make ``id_token`` acceptable to ``verify_provider_token`` (local/dev sign-in)."""
    _provider_tokens[id_token] = {
        "email": email.strip().lower(),
        "display_name": display_name,
        "photo_url": photo_url,
    }


def verify_provider_token(id_token: str) -> dict[str, Any]:
    identity = _provider_tokens.get(id_token)
    if identity is None:
        raise AuthError("Invalid or expired sign-in token.")
    with _lock:
        record = _users.get(identity["email"])
        if record is None:
            # Provider accounts are created on first sign-in and arrive verified
            record = _new_record(
                identity["email"],
                None,
                display_name=identity["display_name"],
                photo_url=identity["photo_url"],
                email_verified=True,
            )
            _users[identity["email"]] = record
    return _public(record)


def _find_by_uid(uid: str) -> dict[str, Any]:
    for record in _users.values():
        if record["uid"] == uid:
            return record
    raise AuthError("There is no user record corresponding to this identifier.")


def get_user(uid: str) -> dict[str, Any]:
    return _public(_find_by_uid(uid))


def update_profile(uid: str, display_name: str | None = None, photo_url: str | None = None) -> dict[str, Any]:
    with _lock:
        record = _find_by_uid(uid)
        if display_name:
            record["display_name"] = display_name
        if photo_url:
            record["photo_url"] = photo_url
    return _public(record)


def send_verification_email(uid: str) -> None:
    record = _find_by_uid(uid)
    _outbox.append({"uid": uid, "email": record["email"], "timestamp": time.time()})


def get_outbox() -> list[dict[str, Any]]:
    return _outbox


def reset_users() -> None:
    with _lock:
        _users.clear()
        _provider_tokens.clear()
        _outbox.clear()
    _seed_users()


class LocalAuthBackend:
    """In-process identity provider over the module-level account table."""

    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        user = authenticate(email, password)
        if user is None:
            raise AuthError("Invalid email or password.")
        return user

    def sign_up_with_password(self, email: str, password: str) -> dict[str, Any]:
        return create_account(email, password)

    def sign_in_with_provider(self, id_token: str) -> dict[str, Any]:
        return verify_provider_token(id_token)

    def send_verification_email(self, user: dict[str, Any]) -> None:
        send_verification_email(user["uid"])

    def update_profile(
        self, uid: str, display_name: str | None = None, photo_url: str | None = None,
    ) -> dict[str, Any]:
        return update_profile(uid, display_name, photo_url)


_seed_users()
