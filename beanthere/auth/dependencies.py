from __future__ import annotations

from fastapi import HTTPException, Request

from ..favorites.store import on_session_change
from ..preferences.client_store import get_client_store
from .identity import SESSION_USER_KEY, IdentityService, get_auth_backend, public_user


def get_current_user(request: Request) -> dict | None:
    """Return the signed-in user from the session, or ``None``."""
    return public_user(request.session.get(SESSION_USER_KEY))


def require_user(request: Request) -> dict:
    """Raise 401 if no user is signed in."""
    user = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_identity(request: Request) -> IdentityService:
    """Identity service bound to this request's session.

    The client-side cache follows every session change; the favorites list
    is reloaded on sign-in and dropped on sign-out.
    """
    identity = IdentityService(get_auth_backend(), request.session)
    store = get_client_store(request)
    identity.subscribe(store.mirror_session)
    identity.on_transition(on_session_change)
    return identity
