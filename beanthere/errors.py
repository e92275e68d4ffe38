"""
Error taxonomy shared by the stores, the places client and the routes.

Each class carries the sentence shown to the user and its HTTP status;
``app.py`` maps the whole hierarchy to JSON so nothing reaches the client as
a bare 500 except through the catch-all.
"""
from __future__ import annotations

GENERIC_ERROR_MESSAGE = "Something went wrong. Please reload the page."


class BeanThereError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ConfigurationError(BeanThereError):
    """Required backend configuration is absent."""

    status_code = 503
    kind = "configuration"

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []

    def to_dict(self) -> dict:
        return {**super().to_dict(), "missing": self.missing}


class StoreError(BeanThereError):
    status_code = 502
    kind = "store"


class BackendUnavailableError(StoreError):
    """The document or blob store has not been provisioned."""

    status_code = 503
    kind = "backend_unavailable"


class NotFoundError(StoreError):
    status_code = 404
    kind = "not_found"


class DuplicateDocumentError(StoreError):
    status_code = 409
    kind = "duplicate"


class AuthError(BeanThereError):
    """The identity provider rejected the request; ``message`` is its own text."""

    status_code = 401
    kind = "auth"


class PermissionDeniedError(BeanThereError):
    status_code = 403
    kind = "permission_denied"


class InvalidInputError(BeanThereError):
    """Rejected before any network call; ``field`` names the offending input."""

    status_code = 400
    kind = "validation"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field}


class PlacesError(BeanThereError):
    status_code = 502
    kind = "places"


# Substrings the hosted store puts in its error text when the product is not
# enabled for the project.
_UNAVAILABLE_MARKERS = (
    "not available",
    "has not been used",
    "is disabled",
    "service_disabled",
    "does not exist",
    "not been enabled",
)


def is_backend_unavailable(exc: BaseException) -> bool:
    text = str(exc).lower()
    return any(marker in text for marker in _UNAVAILABLE_MARKERS)
