from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from pydantic import BaseModel

from ..config import DEFAULT_APP_CONFIG
from ..errors import AuthError

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"

SessionListener = Callable[[dict[str, Any] | None], None]
# (previous user, new user); called only on sign-in and sign-out
TransitionListener = Callable[[dict[str, Any] | None, dict[str, Any] | None], None]


class AuthBackend(Protocol):
    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]: ...

    def sign_up_with_password(self, email: str, password: str) -> dict[str, Any]: ...

    def sign_in_with_provider(self, id_token: str) -> dict[str, Any]: ...

    def send_verification_email(self, user: dict[str, Any]) -> None: ...

    def update_profile(
        self, uid: str, display_name: str | None = None, photo_url: str | None = None,
    ) -> dict[str, Any]: ...


class AuthResult(BaseModel):
    success: bool
    user: dict[str, Any] | None = None
    error: str | None = None


def public_user(user: dict[str, Any] | None) -> dict[str, Any] | None:
    """The session user without provider credentials."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k != "provider_token"}


class IdentityService:
    """Session-scoped façade over the identity provider.

    Listeners are told about the current session as soon as they subscribe
    and again after every sign-in, sign-out or profile change. Transition
    listeners hear only about sign-in and sign-out, never about the replay
    that every request's fresh service performs. No operation raises: failures
    come back as ``AuthResult(success=False, error=...)`` carrying the
    provider's own message.
    """

    def __init__(self, backend: AuthBackend, session: MutableMapping[str, Any]) -> None:
        self._backend = backend
        self._session = session
        self._listeners: list[SessionListener] = []
        self._transition_listeners: list[TransitionListener] = []

    @property
    def current_user(self) -> dict[str, Any] | None:
        return self._session.get(SESSION_USER_KEY)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.current_user)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_transition(self, listener: TransitionListener) -> None:
        self._transition_listeners.append(listener)

    def _set_user(self, user: dict[str, Any] | None, transition: bool = True) -> None:
        previous = self.current_user
        if user:
            self._session[SESSION_USER_KEY] = user
        else:
            self._session.pop(SESSION_USER_KEY, None)
        for listener in list(self._listeners):
            listener(user)
        if transition:
            for on_change in list(self._transition_listeners):
                on_change(previous, user)

    def _attempt(self, action: str, operation: Callable[[], dict[str, Any]]) -> AuthResult:
        try:
            user = operation()
        except AuthError as exc:
            logger.info("%s rejected: %s", action, exc.message)
            return AuthResult(success=False, error=exc.message)
        except Exception as exc:
            logger.warning("%s failed", action, exc_info=True)
            return AuthResult(success=False, error=str(exc) or f"{action} failed")
        self._set_user(user)
        return AuthResult(success=True, user=public_user(user))

    def sign_in_with_email(self, email: str, password: str) -> AuthResult:
        return self._attempt(
            "Email sign-in",
            lambda: self._backend.sign_in_with_password(email, password),
        )

    def sign_in_with_provider(self, id_token: str) -> AuthResult:
        return self._attempt(
            "Provider sign-in",
            lambda: self._backend.sign_in_with_provider(id_token),
        )

    def sign_up_with_email(self, email: str, password: str) -> AuthResult:
        result = self._attempt(
            "Sign-up",
            lambda: self._backend.sign_up_with_password(email, password),
        )
        if not result.success:
            return result
        # A new account is signed in straight away; a failed verification
        # send is still reported so the user can retry it.
        verification = self.resend_verification_email()
        if not verification.success:
            return AuthResult(success=False, user=result.user, error=verification.error)
        return result

    def sign_out(self) -> AuthResult:
        try:
            self._set_user(None)
        except Exception as exc:
            logger.warning("Sign-out failed", exc_info=True)
            return AuthResult(success=False, error=str(exc))
        return AuthResult(success=True)

    def resend_verification_email(self) -> AuthResult:
        user = self.current_user
        if not user:
            return AuthResult(success=False, error="No user is signed in")
        try:
            self._backend.send_verification_email(user)
        except AuthError as exc:
            return AuthResult(success=False, error=exc.message)
        except Exception as exc:
            logger.warning("Verification email failed", exc_info=True)
            return AuthResult(success=False, error=str(exc))
        return AuthResult(success=True, user=public_user(user))

    def update_profile(self, display_name: str | None = None, photo_url: str | None = None) -> dict[str, Any]:
        """Push profile changes to the provider and refresh the session copy.

        Raises ``AuthError``; callers outside the sign-in flows handle it.
        """
        user = self.current_user
        if not user:
            raise AuthError("No authenticated user")
        updated = self._backend.update_profile(user["uid"], display_name, photo_url)
        if user.get("provider_token"):
            updated["provider_token"] = user["provider_token"]
        self._set_user(updated, transition=False)
        return public_user(updated)


_backend: AuthBackend | None = None


def get_auth_backend() -> AuthBackend:
    global _backend
    if _backend is None:
        if DEFAULT_APP_CONFIG.uses_firebase:
            from .firebase_backend import FirebaseAuthBackend

            _backend = FirebaseAuthBackend()
        else:
            from .users import LocalAuthBackend

            _backend = LocalAuthBackend()
    return _backend
